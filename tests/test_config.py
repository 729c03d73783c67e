from __future__ import annotations

import logging

import pytest

from almondlink import log_setup
from almondlink.config import AlmondConfig, load_config, require_complete, save_config
from almondlink.errors import ConfigError


def test_require_complete_names_missing_fields() -> None:
    with pytest.raises(ConfigError) as excinfo:
        require_complete(AlmondConfig(ip_address="10.10.10.254"))
    assert "username" in str(excinfo.value)
    assert "password" in str(excinfo.value)


def test_defaults() -> None:
    config = AlmondConfig()
    assert config.port == 7681
    assert config.close_timeout == 5.0
    assert config.request_timeout == 60.0
    assert config.mii_length == 24


def test_config_round_trips_through_file(tmp_path) -> None:
    path = tmp_path / "config.json"
    save_config(
        AlmondConfig(ip_address="10.10.10.254", username="admin", password="pw", request_timeout=None),
        path,
    )

    loaded = load_config(path)
    assert loaded.ip_address == "10.10.10.254"
    assert loaded.request_timeout is None


def test_missing_file_gives_defaults(tmp_path) -> None:
    assert load_config(tmp_path / "absent.json") == AlmondConfig()


def test_log_setup_writes_component_file(tmp_path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        log_setup.init("cli", tmp_path, level="DEBUG", foreground=False)
        logging.getLogger("almondlink.test").info("hello hub")
        for handler in root.handlers:
            handler.flush()
        text = (tmp_path / "cli.log").read_text(encoding="utf-8")
        assert "almondlink.test: hello hub" in text
        assert logging.getLogger("websockets").level == logging.INFO
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


@pytest.mark.parametrize("content", ["{not json", '{"port": "seventy"}', "[]"])
def test_corrupt_file_raises_config_error(tmp_path, content: str) -> None:
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(path)
    assert str(path) in str(excinfo.value)
