from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from almondlink import cli
from almondlink.client import AlmondClient
from almondlink.config import AlmondConfig
from almondlink.connection import ConnectionState
from almondlink.device_map import DEVICE_MAP
from almondlink.errors import ConfigError
from almondlink.models import DeviceListResult, TranslatedDevice, Unsupported

from .conftest import FakeConnector


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli.log_setup, "init", lambda *args, **kwargs: None)


def _result() -> DeviceListResult:
    switch = DEVICE_MAP["1"]
    on = switch.properties["1"].model_copy(update={"value": True})
    return DeviceListResult(
        devices=[
            TranslatedDevice(
                id="1",
                name="Porch light",
                capabilities=switch.model_copy(update={"properties": {"1": on}}),
            )
        ],
        skipped=[Unsupported(device_id="2", type_code="999", reason="Unsupported device type: 999")],
    )


def test_types_lists_known_codes() -> None:
    runner = CliRunner()
    result = runner.invoke(cli.app, ["types"])
    assert result.exit_code == 0
    assert "OnOffSwitch" in result.stdout
    assert "NestProtect" in result.stdout


def test_devices_requires_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "load_config", lambda: AlmondConfig())
    runner = CliRunner()
    result = runner.invoke(cli.app, ["devices"], env={})
    assert result.exit_code == 2
    assert "configuration incomplete" in result.stdout


def test_devices_json_output(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setattr(cli, "load_config", lambda: AlmondConfig())

    async def fake_fetch(client):
        return _result()

    monkeypatch.setattr(cli, "_fetch_devices", fake_fetch)
    runner = CliRunner()
    result = runner.invoke(
        cli.app,
        ["devices", "--ip", "10.10.10.254", "-u", "admin", "-p", "s3cret", "--json", "--log-dir", str(tmp_path)],
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["devices"][0]["capabilities"]["properties"]["1"]["value"] is True
    assert payload["skipped"][0]["type_code"] == "999"


def test_devices_table_output(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setattr(cli, "load_config", lambda: AlmondConfig())

    async def fake_fetch(client):
        return _result()

    monkeypatch.setattr(cli, "_fetch_devices", fake_fetch)
    runner = CliRunner()
    result = runner.invoke(
        cli.app,
        ["devices", "--ip", "10.10.10.254", "-u", "admin", "-p", "s3cret", "--log-dir", str(tmp_path)],
    )

    assert result.exit_code == 0
    assert "Porch light" in result.stdout
    assert "Skipped device 2" in result.stdout


def test_setup_saves_config(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    saved: list[AlmondConfig] = []
    monkeypatch.setattr(cli, "load_config", lambda: AlmondConfig())

    def fake_save(config):
        saved.append(config)
        return tmp_path / "config.json"

    monkeypatch.setattr(cli, "save_config", fake_save)
    runner = CliRunner()
    result = runner.invoke(cli.app, ["setup", "--ip", "10.10.10.254", "-u", "admin", "-p", "s3cret"])

    assert result.exit_code == 0
    assert saved[0].ip_address == "10.10.10.254"
    assert saved[0].password == "s3cret"


def _corrupt_config():
    raise ConfigError("Invalid config file config.json: 1 error(s)")


def test_devices_with_corrupt_config_exits_cleanly(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "load_config", _corrupt_config)
    runner = CliRunner()
    result = runner.invoke(cli.app, ["devices", "--ip", "10.10.10.254", "-u", "admin", "-p", "s3cret"])

    assert result.exit_code == 2
    assert "Invalid config file" in result.stdout
    assert not isinstance(result.exception, ConfigError)


def test_setup_rewrites_a_corrupt_config(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    saved: list[AlmondConfig] = []
    monkeypatch.setattr(cli, "load_config", _corrupt_config)
    monkeypatch.setattr(cli, "save_config", lambda config: saved.append(config) or tmp_path / "config.json")
    runner = CliRunner()
    result = runner.invoke(cli.app, ["setup", "--ip", "10.10.10.254", "-u", "admin", "-p", "s3cret"])

    assert result.exit_code == 0
    assert saved[0].username == "admin"
    assert saved[0].port == 7681


@pytest.mark.asyncio
async def test_watch_prints_events_until_deadline(config: AlmondConfig) -> None:
    connector = FakeConnector()
    connector.ws.push({"CommandType": "DynamicIndexUpdated", "Devices": {}})
    client = AlmondClient(config, connector=connector)

    assert await cli._watch(client, 0.05) == 1
    assert client.state is ConnectionState.CLOSED
