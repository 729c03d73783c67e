"""Typer CLI entrypoint for almondlink.

Commands:
  setup    — store hub address and credentials in ~/.almondlink/config.json
  devices  — list the hub's devices as capability schemas
  watch    — print unsolicited events pushed by the hub
  types    — show the device types the translator understands
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import log_setup
from .client import AlmondClient
from .config import CONFIG_FILE, LOG_DIR, AlmondConfig, load_config, save_config
from .device_map import DEVICE_MAP, known_type_codes
from .errors import AlmondError, ConfigError
from .models import DeviceListResult

app = typer.Typer(
    name="almondlink",
    help="Talk to a Securifi Almond hub over its WebSocket API.",
    add_completion=False,
)
console = Console()

_IP_OPTION = typer.Option(None, "--ip", help="Almond IP address.", envvar="ALMOND_IP")
_USER_OPTION = typer.Option(None, "--username", "-u", help="Almond username.", envvar="ALMOND_USERNAME")
_PASSWORD_OPTION = typer.Option(None, "--password", "-p", help="Almond password.", envvar="ALMOND_PASSWORD")
_LOG_DIR_OPTION = typer.Option(LOG_DIR, "--log-dir", help="Directory for rotating log files.")
_VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Debug logging to the terminal.")
_POLL_INTERVAL = 1.0  # seconds between connection checks while watching


def _resolve_config(
    ip: Optional[str], username: Optional[str], password: Optional[str]
) -> AlmondConfig:
    overrides = {
        key: value
        for key, value in (("ip_address", ip), ("username", username), ("password", password))
        if value
    }
    try:
        config = load_config()
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        console.print("Fix the file or run [bold]almondlink setup[/bold] to rewrite it.")
        raise typer.Exit(2) from exc
    return config.model_copy(update=overrides)


def _init_logging(config: AlmondConfig, log_dir: Path, verbose: bool) -> None:
    log_setup.init(
        "cli",
        log_dir,
        level="DEBUG" if verbose else config.log_level,
        foreground=verbose,
    )


def _make_client(config: AlmondConfig) -> AlmondClient:
    try:
        return AlmondClient(config)
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        console.print("Run [bold]almondlink setup[/bold] or pass --ip/--username/--password.")
        raise typer.Exit(2) from exc


# ---------------------------------------------------------------------------
# setup
# ---------------------------------------------------------------------------

@app.command()
def setup(
    ip: Optional[str] = _IP_OPTION,
    username: Optional[str] = _USER_OPTION,
    password: Optional[str] = _PASSWORD_OPTION,
) -> None:
    """Store the hub address and credentials."""
    console.print("[bold cyan]almondlink setup[/bold cyan]")
    try:
        existing = load_config()
    except ConfigError as exc:
        console.print(f"[yellow]{exc}; starting from defaults[/yellow]")
        existing = AlmondConfig()

    if ip is None:
        ip = typer.prompt("Almond IP address", default=existing.ip_address or None)
    if username is None:
        username = typer.prompt("Username", default=existing.username or None)
    if password is None:
        password = typer.prompt("Password", hide_input=True)

    config = existing.model_copy(update={"ip_address": ip, "username": username, "password": password})
    path = save_config(config)
    console.print(f"[green]Config saved to[/green] {path}")
    console.print(f"  ip_address: [bold]{config.ip_address}[/bold]")
    console.print(f"  username  : [bold]{config.username}[/bold]")


# ---------------------------------------------------------------------------
# devices
# ---------------------------------------------------------------------------

async def _fetch_devices(client: AlmondClient) -> DeviceListResult:
    async with client:
        return await client.list_devices()


def _print_devices(result: DeviceListResult) -> None:
    table = Table(title="Almond devices")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Properties")

    for device in result.devices:
        props = ", ".join(
            f"{prop.name}={prop.value}"
            for prop in device.capabilities.properties.values()
            if prop.value is not None
        )
        table.add_row(
            device.id,
            device.name,
            ", ".join(device.capabilities.semantic_types),
            props or "—",
        )
    console.print(table)

    for skipped in result.skipped:
        console.print(
            f"[yellow]Skipped device {skipped.device_id or '?'}[/yellow] "
            f"[dim]({skipped.reason})[/dim]"
        )


@app.command()
def devices(
    ip: Optional[str] = _IP_OPTION,
    username: Optional[str] = _USER_OPTION,
    password: Optional[str] = _PASSWORD_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print capability schemas as JSON."),
    log_dir: Path = _LOG_DIR_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Connect, list devices, and disconnect."""
    config = _resolve_config(ip, username, password)
    _init_logging(config, log_dir, verbose)
    client = _make_client(config)

    try:
        result = asyncio.run(_fetch_devices(client))
    except AlmondError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    if as_json:
        payload = {
            "devices": [
                {"id": d.id, "name": d.name, "capabilities": d.capabilities.to_schema()}
                for d in result.devices
            ],
            "skipped": [s.model_dump(mode="json") for s in result.skipped],
        }
        typer.echo(json.dumps(payload, indent=2))
        return
    _print_devices(result)


# ---------------------------------------------------------------------------
# watch
# ---------------------------------------------------------------------------

async def _watch(client: AlmondClient, seconds: Optional[float]) -> int:
    seen = 0
    async with client:
        loop = asyncio.get_running_loop()
        deadline = None if seconds is None else loop.time() + seconds
        while client.is_connected:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                break
            wait = _POLL_INTERVAL if remaining is None else min(remaining, _POLL_INTERVAL)
            try:
                frame = await asyncio.wait_for(client.events.get(), wait)
            except asyncio.TimeoutError:
                continue
            seen += 1
            console.print_json(data=frame)
    return seen


@app.command()
def watch(
    ip: Optional[str] = _IP_OPTION,
    username: Optional[str] = _USER_OPTION,
    password: Optional[str] = _PASSWORD_OPTION,
    seconds: Optional[float] = typer.Option(
        None, "--seconds", "-s", help="Stop after this many seconds (default: until Ctrl-C)."
    ),
    log_dir: Path = _LOG_DIR_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Print events the hub pushes without being asked."""
    config = _resolve_config(ip, username, password)
    _init_logging(config, log_dir, verbose)
    client = _make_client(config)

    try:
        seen = asyncio.run(_watch(client, seconds))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
        return
    except AlmondError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    console.print(f"[dim]{seen} event(s) received.[/dim]")


# ---------------------------------------------------------------------------
# types
# ---------------------------------------------------------------------------

@app.command()
def types() -> None:
    """List the Almond device types that can be translated."""
    table = Table(title="Supported device types", box=None, padding=(0, 2))
    table.add_column("Code", style="bold")
    table.add_column("@type")
    table.add_column("Description")
    table.add_column("Properties", justify="right")

    for code in known_type_codes():
        record = DEVICE_MAP[code]
        table.add_row(
            code,
            ", ".join(record.semantic_types),
            record.description,
            str(len(record.properties)),
        )
    console.print(table)
    console.print(f"[dim]Config file: {CONFIG_FILE}[/dim]")


if __name__ == "__main__":
    app()
