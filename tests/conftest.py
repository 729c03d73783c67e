from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import pytest

from almondlink.config import AlmondConfig

_CLOSED = object()


class FakeTransport:
    def __init__(self, ws: FakeWebSocket) -> None:
        self.aborted = False
        self._ws = ws

    def abort(self) -> None:
        self.aborted = True
        self._ws._inbound.put_nowait(_CLOSED)


class FakeWebSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self, *, ack_close: bool = True) -> None:
        self.sent: list[str] = []
        self.ack_close = ack_close
        self.close_calls = 0
        self.transport = FakeTransport(self)
        self.on_send: Callable[[dict[str, Any]], None] | None = None
        self._inbound: asyncio.Queue[Any] = asyncio.Queue()

    async def send(self, raw: str) -> None:
        self.sent.append(raw)
        if self.on_send is not None:
            self.on_send(json.loads(raw))

    async def close(self) -> None:
        self.close_calls += 1
        if not self.ack_close:
            await asyncio.Event().wait()
        self._inbound.put_nowait(_CLOSED)

    def push(self, frame: dict[str, Any] | str) -> None:
        self._inbound.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def drop(self) -> None:
        """Simulate the hub closing the socket."""
        self._inbound.put_nowait(_CLOSED)

    def sent_frames(self) -> list[dict[str, Any]]:
        return [json.loads(raw) for raw in self.sent]

    def __aiter__(self) -> FakeWebSocket:
        return self

    async def __anext__(self) -> str:
        item = await self._inbound.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class FakeConnector:
    def __init__(self, ws: FakeWebSocket | None = None, error: BaseException | None = None) -> None:
        self.ws = ws or FakeWebSocket()
        self.error = error
        self.urls: list[str] = []

    async def __call__(self, url: str) -> FakeWebSocket:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.ws


async def settle(rounds: int = 10) -> None:
    """Let the reader task and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def config() -> AlmondConfig:
    return AlmondConfig(
        ip_address="10.10.10.254",
        username="admin",
        password="s3cret",
        close_timeout=0.05,
    )


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def switch_record() -> dict[str, Any]:
    return {
        "Data": {"ID": "1", "Type": "1", "Name": "Porch light"},
        "DeviceValues": {"1": {"Name": "SWITCH BINARY", "Value": "true"}},
    }


@pytest.fixture
def unknown_record() -> dict[str, Any]:
    return {
        "Data": {"ID": "2", "Type": "999", "Name": "Mystery box"},
        "DeviceValues": {"1": {"Value": "7"}},
    }
