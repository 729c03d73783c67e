"""Config file management for almondlink.

Files live under ~/.almondlink/:
  config.json  — hub address, credentials and engine tuning
  logs/        — rotating log files written by the CLI
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from .connection import CLOSE_TIMEOUT
from .correlation import MII_LENGTH, REQUEST_TIMEOUT
from .errors import ConfigError
from .protocol import DEFAULT_PORT

APP_DIR = Path.home() / ".almondlink"
CONFIG_FILE = APP_DIR / "config.json"
LOG_DIR = APP_DIR / "logs"


class AlmondConfig(BaseModel):
    ip_address: str = ""
    username: str = ""
    password: str = ""
    port: int = DEFAULT_PORT
    request_timeout: Optional[float] = REQUEST_TIMEOUT
    close_timeout: float = CLOSE_TIMEOUT
    mii_length: int = Field(default=MII_LENGTH, ge=1)
    log_level: str = "INFO"


def require_complete(config: AlmondConfig) -> AlmondConfig:
    """Fail fast when the hub address or credentials are missing."""
    missing = [
        name
        for name in ("ip_address", "username", "password")
        if not getattr(config, name)
    ]
    if missing:
        raise ConfigError(
            "Could not connect to Almond: configuration incomplete "
            f"(missing {', '.join(missing)})"
        )
    return config


def ensure_app_dir() -> Path:
    APP_DIR.mkdir(parents=True, exist_ok=True)
    return APP_DIR


def load_config(path: Path | None = None) -> AlmondConfig:
    path = path or CONFIG_FILE
    if path.exists():
        try:
            return AlmondConfig.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as exc:
            raise ConfigError(f"Invalid config file {path}: {exc.error_count()} error(s)") from exc
    return AlmondConfig()


def save_config(config: AlmondConfig, path: Path | None = None) -> Path:
    if path is None:
        ensure_app_dir()
        path = CONFIG_FILE
    path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
    return path
