"""almondlink — client engine for the Securifi Almond WebSocket API.

Exports the building blocks a device-management layer needs:
  - AlmondClient      — connect / list devices / cancel / unsolicited events
  - RequestCorrelator — mii-based reply correlation
  - HubConnection     — WebSocket state machine
  - translate         — hub device record → capability schema
"""

from . import log_setup
from .client import AlmondClient
from .config import AlmondConfig, load_config, save_config
from .connection import ConnectionState, HubConnection
from .correlation import RequestCorrelator, RequestHandle
from .device_map import DEVICE_MAP
from .errors import (
    AlmondError,
    AlreadyConnectedError,
    CancelledRequest,
    CloseTimeoutError,
    ConfigError,
    HubConnectionError,
    NotConnectedError,
    ParseError,
    RequestTimeoutError,
    UnmatchedReplyWarning,
    UnsupportedDeviceType,
)
from .models import (
    CapabilityRecord,
    DeviceListResult,
    DeviceRecord,
    PropertySpec,
    Response,
    TranslatedDevice,
    Unsupported,
)
from .translator import translate, translate_device_list

__version__ = "0.1.0"
__all__ = [
    "log_setup",
    "AlmondClient",
    "AlmondConfig",
    "load_config",
    "save_config",
    "ConnectionState",
    "HubConnection",
    "RequestCorrelator",
    "RequestHandle",
    "DEVICE_MAP",
    "AlmondError",
    "AlreadyConnectedError",
    "CancelledRequest",
    "CloseTimeoutError",
    "ConfigError",
    "HubConnectionError",
    "NotConnectedError",
    "ParseError",
    "RequestTimeoutError",
    "UnmatchedReplyWarning",
    "UnsupportedDeviceType",
    "CapabilityRecord",
    "DeviceListResult",
    "DeviceRecord",
    "PropertySpec",
    "Response",
    "TranslatedDevice",
    "Unsupported",
    "translate",
    "translate_device_list",
]
