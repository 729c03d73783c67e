"""AlmondClient — the façade a device-management layer talks to.

Usage::

    client = AlmondClient(load_config())
    async with client:
        result = await client.list_devices()
        for device in result.devices:
            print(device.id, device.name, device.capabilities.semantic_types)

Unsolicited hub pushes (device state changes) arrive on ``client.events``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from types import TracebackType
from typing import Any

from .config import AlmondConfig, require_complete
from .connection import ConnectionState, Connector, HubConnection
from .correlation import RequestCorrelator, RequestHandle
from .errors import CloseTimeoutError, NotConnectedError
from .models import DeviceListResult, Response
from .protocol import DEVICE_LIST, build_command
from .translator import translate_device_list

logger = logging.getLogger(__name__)


class AlmondClient:
    """One hub, one connection, one correlator."""

    def __init__(self, config: AlmondConfig, *, connector: Connector | None = None) -> None:
        self._config = require_complete(config)
        self._connection = HubConnection(
            config.ip_address,
            config.username,
            config.password,
            port=config.port,
            close_timeout=config.close_timeout,
            connector=connector,
        )
        self._correlator = RequestCorrelator(
            self._connection.send,
            mii_length=config.mii_length,
            request_timeout=config.request_timeout,
        )
        self._reader_task: asyncio.Task[None] | None = None
        # At most one in-flight request per named operation
        self._outstanding: dict[str, RequestHandle] = {}
        self._named_lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._connection.state

    @property
    def is_connected(self) -> bool:
        return self._connection.is_open

    @property
    def events(self) -> asyncio.Queue[dict[str, Any]]:
        """Unsolicited frames pushed by the hub, in delivery order."""
        return self._correlator.events

    def pending_ids(self) -> frozenset[str]:
        return self._correlator.pending_ids()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> AlmondClient:
        await self._connection.connect()
        self._reader_task = asyncio.create_task(self._read_frames(), name="almond-reader")
        return self

    async def disconnect(self) -> None:
        """Close the hub connection.

        Raises ``NotConnectedError`` when already closed and
        ``CloseTimeoutError`` when the hub did not acknowledge in time; in the
        latter case the client is closed anyway.
        """
        try:
            await self._connection.disconnect()
        finally:
            await self._stop_reader()

    async def __aenter__(self) -> AlmondClient:
        return await self.connect()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self._connection.is_open:
            await self._stop_reader()
            return
        try:
            await self.disconnect()
        except CloseTimeoutError as close_exc:
            logger.warning("%s", close_exc)

    async def _read_frames(self) -> None:
        try:
            async for raw in self._connection.frames():
                self._correlator.on_frame(raw)
        except NotConnectedError:
            logger.debug("Connection closed before the reader started")
        finally:
            self._correlator.fail_all("Connection to Almond closed")

    async def _stop_reader(self) -> None:
        task, self._reader_task = self._reader_task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def send_request(self, payload: Mapping[str, Any]) -> RequestHandle:
        """Send a raw command; the returned handle can be awaited or cancelled."""
        return await self._correlator.send_request(payload)

    def cancel_request(self, mii: str) -> bool:
        return self._correlator.cancel(mii)

    async def send_command(self, command_type: str, **fields: Any) -> Response:
        """Send ``CommandType`` plus *fields* and wait for the hub's reply."""
        handle = await self._correlator.send_request(build_command(command_type, **fields))
        return await handle

    async def _named_request(self, name: str, payload: Mapping[str, Any]) -> Response:
        async with self._named_lock:
            handle = self._outstanding.get(name)
            if handle is not None and not handle.done():
                logger.info("%s already in flight (mii %s), sharing it", name, handle.mii)
            else:
                handle = self._correlator.register(payload)
                self._outstanding[name] = handle
                handle.future.add_done_callback(
                    lambda _fut, h=handle: self._clear_outstanding(name, h)
                )
                await self._correlator.transmit(handle)
        return await asyncio.shield(handle.future)

    def _clear_outstanding(self, name: str, handle: RequestHandle) -> None:
        if self._outstanding.get(name) is handle:
            del self._outstanding[name]

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    async def list_devices(self) -> DeviceListResult:
        """Ask the hub for its devices and translate them.

        A call made while another ``list_devices()`` is outstanding shares
        that request's result. Raises ``CancelledRequest`` if
        ``cancel_list_devices()`` runs first.
        """
        logger.info("Getting device list...")
        response = await self._named_request(DEVICE_LIST, build_command(DEVICE_LIST))
        devices = (response.received or {}).get("Devices")
        if not isinstance(devices, dict):
            return DeviceListResult()
        return translate_device_list(devices)

    def cancel_list_devices(self) -> bool:
        handle = self._outstanding.pop(DEVICE_LIST, None)
        if handle is None:
            logger.info("Pairing mode already stopped")
            return False
        return self._correlator.cancel(handle.mii)
