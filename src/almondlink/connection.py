"""HubConnection — owns the WebSocket to the Almond hub.

The connection is an explicit state machine::

    CLOSED -> OPENING -> OPEN -> CLOSING -> CLOSED

It knows nothing about requests or replies: it opens and closes the socket,
hands text frames to it, and exposes the inbound frames as an async stream.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from .errors import AlreadyConnectedError, CloseTimeoutError, HubConnectionError, NotConnectedError
from .protocol import DEFAULT_PORT, build_url

logger = logging.getLogger(__name__)

CLOSE_TIMEOUT = 5.0  # seconds to wait for the hub to acknowledge a close
OPEN_TIMEOUT = 10.0
PING_INTERVAL = 30.0

Connector = Callable[[str], Awaitable[Any]]


class ConnectionState(enum.Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"


async def _default_connector(url: str) -> Any:
    # close_timeout=None: the close wait is bounded by HubConnection.disconnect()
    return await ws_connect(
        url,
        open_timeout=OPEN_TIMEOUT,
        ping_interval=PING_INTERVAL,
        close_timeout=None,
    )


def _abort(ws: Any) -> None:
    transport = getattr(ws, "transport", None)
    if transport is not None:
        transport.abort()


class HubConnection:
    """A single WebSocket connection to an Almond hub."""

    def __init__(
        self,
        ip_address: str,
        username: str,
        password: str,
        *,
        port: int = DEFAULT_PORT,
        close_timeout: float = CLOSE_TIMEOUT,
        connector: Connector | None = None,
    ) -> None:
        self._url = build_url(ip_address, username, password, port)
        self._display_url = f"ws://{ip_address}:{port}/{username}/***"
        self._close_timeout = close_timeout
        self._connector = connector or _default_connector
        self._ws: Any = None
        self._state = ConnectionState.CLOSED
        self._stream_claimed = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> HubConnection:
        """Open the socket. Credentials are part of the URL."""
        if self._state is not ConnectionState.CLOSED:
            raise AlreadyConnectedError(
                f"Cannot connect: connection is {self._state.value}"
            )

        self._state = ConnectionState.OPENING
        logger.info("Connecting to Almond: %s", self._display_url)
        try:
            ws = await self._connector(self._url)
        except (OSError, ValueError, asyncio.TimeoutError, WebSocketException) as exc:
            self._state = ConnectionState.CLOSED
            logger.error("Websocket could not be opened: %s", exc)
            raise HubConnectionError(f"Could not connect to Almond: {exc}") from exc
        except BaseException:
            self._state = ConnectionState.CLOSED
            raise

        self._ws = ws
        self._stream_claimed = False
        self._state = ConnectionState.OPEN
        logger.info("Websocket opened")
        return self

    async def disconnect(self) -> None:
        """Close gracefully, forcing the socket shut after ``close_timeout``.

        Raises ``CloseTimeoutError`` when the hub never acknowledged the close;
        the connection is ``CLOSED`` either way.
        """
        if self._state is not ConnectionState.OPEN or self._ws is None:
            raise NotConnectedError("Not connected to Almond")

        ws = self._ws
        self._state = ConnectionState.CLOSING
        logger.info("Closing websocket")
        try:
            await asyncio.wait_for(ws.close(), timeout=self._close_timeout)
        except asyncio.TimeoutError:
            _abort(ws)
            logger.warning(
                "Timed out after %.1fs attempting to disconnect; socket discarded",
                self._close_timeout,
            )
            raise CloseTimeoutError(
                "Timed out attempting to disconnect from websocket"
            ) from None
        finally:
            self._ws = None
            self._state = ConnectionState.CLOSED
        logger.info("Websocket closed")

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    async def send(self, raw: str) -> None:
        if self._state is not ConnectionState.OPEN or self._ws is None:
            raise NotConnectedError("Not connected to Almond")
        try:
            await self._ws.send(raw)
        except ConnectionClosed as exc:
            self._mark_closed(self._ws)
            raise HubConnectionError(f"Connection closed while sending: {exc}") from exc

    async def frames(self) -> AsyncIterator[str]:
        """Yield inbound text frames until the socket closes.

        One stream per opened socket; a new ``connect()`` yields a new one.
        """
        ws = self._ws
        if self._state is not ConnectionState.OPEN or ws is None:
            raise NotConnectedError("Not connected to Almond")
        if self._stream_claimed:
            raise RuntimeError("Frame stream already taken for this connection")
        self._stream_claimed = True

        try:
            async for raw in ws:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8", errors="replace")
                yield raw
        except ConnectionClosed as exc:
            logger.warning("Websocket closed with error: %s", exc)
        finally:
            self._mark_closed(ws)

    def _mark_closed(self, ws: Any) -> None:
        # Only an unexpected close of the current socket changes state here;
        # disconnect() handles its own transition.
        if self._ws is ws and self._state is ConnectionState.OPEN:
            logger.warning("Almond connection closed unexpectedly")
            self._ws = None
            self._state = ConnectionState.CLOSED
