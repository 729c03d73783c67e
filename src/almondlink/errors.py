"""Error taxonomy for almondlink."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Response


class AlmondError(Exception):
    """Base error for almondlink."""


class ConfigError(AlmondError):
    """Raised when required connection settings are missing."""


class HubConnectionError(AlmondError, ConnectionError):
    """Raised when the hub socket fails to open or closes unexpectedly."""


class AlreadyConnectedError(HubConnectionError):
    """Raised when connecting while a connection is opening or open."""


class NotConnectedError(AlmondError):
    """Raised when an operation needs an open connection and there is none."""


class CloseTimeoutError(AlmondError, TimeoutError):
    """Raised when the hub did not acknowledge a close in time.

    The connection is already forced closed when this is raised.
    """


class RequestTimeoutError(AlmondError, TimeoutError):
    """Raised into a pending request that got no reply in time."""

    def __init__(self, mii: str, timeout: float) -> None:
        super().__init__(f"No reply for mii {mii} within {timeout:.1f}s")
        self.mii = mii
        self.timeout = timeout


class ParseError(AlmondError):
    """Raised when an inbound frame is not a JSON object."""


class UnmatchedReplyWarning(AlmondError):
    """Raised when a reply carries a mii with no pending request."""

    def __init__(self, mii: str) -> None:
        super().__init__(f"No pending request for mii {mii}")
        self.mii = mii


class UnsupportedDeviceType(AlmondError):
    """Raised when no capability schema exists for a device type code."""

    def __init__(self, type_code: str) -> None:
        super().__init__(f"Unsupported device type: {type_code}")
        self.type_code = type_code


class CancelledRequest(AlmondError):
    """Raised into a pending request that was cancelled locally."""

    def __init__(self, response: Response) -> None:
        super().__init__(f"Request {response.mii} cancelled")
        self.response = response
