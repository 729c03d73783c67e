"""Almond WebSocket API helpers — build and parse wire frames."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

from .errors import ParseError

DEFAULT_PORT = 7681
MII_FIELD = "MobileInternalIndex"
COMMAND_TYPE_FIELD = "CommandType"

DEVICE_LIST = "DeviceList"


def build_url(
    ip_address: str,
    username: str,
    password: str,
    port: int = DEFAULT_PORT,
) -> str:
    """Credentials travel as path segments; the hub has no other auth step."""
    user = quote(username, safe="")
    secret = quote(password, safe="")
    return f"ws://{ip_address}:{port}/{user}/{secret}"


def build_command(command_type: str, **fields: Any) -> dict[str, Any]:
    """Return an outbound command payload (without a mii)."""
    return {COMMAND_TYPE_FIELD: command_type, **fields}


def encode(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"))


def parse_frame(raw: str | bytes) -> dict[str, Any]:
    """Deserialise an inbound frame; anything but a JSON object is rejected."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Frame is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError(f"Frame is not a JSON object: {type(data).__name__}")
    return data


def frame_mii(frame: dict[str, Any]) -> str | None:
    """Return the transaction id of a frame, or None for unsolicited events."""
    mii = frame.get(MII_FIELD)
    if mii is None:
        return None
    return str(mii)
