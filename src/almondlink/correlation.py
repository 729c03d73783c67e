"""RequestCorrelator — matches hub replies to the requests that caused them.

Every outbound command gets a random decimal ``MobileInternalIndex`` (mii).
The hub echoes it in the reply, which may arrive in any order. Frames without
a mii are unsolicited events and go to ``events`` instead.

All state lives on the event loop that owns the correlator: requests are sent
from any task, frames are fed by a single reader task, and both touch the
pending table only from that loop's thread.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Awaitable, Callable, Generator, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .errors import CancelledRequest, HubConnectionError, ParseError, RequestTimeoutError, UnmatchedReplyWarning
from .models import Response
from .protocol import COMMAND_TYPE_FIELD, MII_FIELD, encode, frame_mii, parse_frame

logger = logging.getLogger(__name__)

MII_LENGTH = 24  # digits; ids span [10**23, 10**24 - 1]
REQUEST_TIMEOUT = 60.0  # seconds; None disables per-request expiry

Sender = Callable[[str], Awaitable[None]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PendingRequest:
    mii: str
    sent: dict[str, Any]
    sent_at: datetime
    future: asyncio.Future[Response]
    timer: asyncio.TimerHandle | None = None


@dataclass(frozen=True)
class RequestHandle:
    """The mii and payload of a request and the future of its ``Response``."""

    mii: str
    sent: dict[str, Any]
    future: asyncio.Future[Response]

    def __await__(self) -> Generator[Any, None, Response]:
        return self.future.__await__()

    def done(self) -> bool:
        return self.future.done()


class RequestCorrelator:
    """Owns the pending-request table for one hub connection."""

    def __init__(
        self,
        send: Sender,
        *,
        mii_length: int = MII_LENGTH,
        request_timeout: float | None = REQUEST_TIMEOUT,
    ) -> None:
        if mii_length < 1:
            raise ValueError("mii_length must be at least 1")
        self._send = send
        self._mii_length = mii_length
        self._request_timeout = request_timeout
        self._pending: dict[str, PendingRequest] = {}
        self.events: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def generate_mii(self) -> str:
        """Return a fresh ``mii_length``-digit id not used by a pending request."""
        low = 10 ** (self._mii_length - 1)
        span = 10 ** self._mii_length - low
        while True:
            mii = str(low + secrets.randbelow(span))
            if mii not in self._pending:
                return mii
            logger.debug("mii %s collides with a pending request, regenerating", mii)

    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def register(self, payload: Mapping[str, Any]) -> RequestHandle:
        """Tag a copy of *payload* with a new mii and record it as pending.

        Nothing is sent; follow with ``transmit()``. Registering first lets a
        caller remember the handle before the socket write can suspend.
        """
        loop = asyncio.get_running_loop()
        mii = self.generate_mii()
        sent = {**payload, MII_FIELD: mii}
        future: asyncio.Future[Response] = loop.create_future()
        pending = PendingRequest(mii=mii, sent=sent, sent_at=_now(), future=future)
        self._pending[mii] = pending
        future.add_done_callback(lambda fut: self._forget_if_cancelled(mii, fut))
        if self._request_timeout is not None:
            pending.timer = loop.call_later(self._request_timeout, self._expire, mii)
        return RequestHandle(mii=mii, sent=sent, future=future)

    async def transmit(self, handle: RequestHandle) -> None:
        """Send a registered request; a failed send drops it from the table."""
        logger.debug("Sending data with mii %s: %s", handle.mii, handle.sent)
        try:
            await self._send(encode(handle.sent))
        except BaseException:
            pending = self._pending.get(handle.mii)
            if pending is not None and pending.future is handle.future:
                self._pop(handle.mii)
            if not handle.future.done():
                handle.future.cancel()
            raise

    async def send_request(self, payload: Mapping[str, Any]) -> RequestHandle:
        """Tag *payload* with a new mii, send it, and return its handle.

        The caller's mapping is not modified.
        """
        handle = self.register(payload)
        await self.transmit(handle)
        return handle

    def cancel(self, mii: str) -> bool:
        """Reject a pending request with ``CancelledRequest``.

        Returns False when there is nothing to cancel (unknown or finished).
        """
        pending = self._pop(mii)
        if pending is None:
            logger.info("Nothing to cancel for mii %s (already resolved?)", mii)
            return False

        response = Response(
            mii=mii,
            sent=pending.sent,
            received=None,
            cancelled=True,
            sent_at=pending.sent_at,
            received_at=_now(),
        )
        if not pending.future.done():
            pending.future.set_exception(CancelledRequest(response))
        logger.info("Request %s cancelled", mii)
        return True

    def fail_all(self, reason: str) -> int:
        """Fail every pending request with ``HubConnectionError``."""
        failed = 0
        for mii in list(self._pending):
            pending = self._pop(mii)
            if pending is not None and not pending.future.done():
                pending.future.set_exception(HubConnectionError(reason))
                failed += 1
        if failed:
            logger.warning("Failed %d pending request(s): %s", failed, reason)
        return failed

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def on_frame(self, raw: str | bytes) -> None:
        """Route one inbound frame to its pending request or to ``events``."""
        try:
            frame = parse_frame(raw)
        except ParseError as exc:
            logger.warning("Dropping frame: %s (%.200r)", exc, raw)
            return

        mii = frame_mii(frame)
        if mii is None:
            logger.debug("Unsolicited event: %s", frame.get(COMMAND_TYPE_FIELD, "?"))
            self.events.put_nowait(frame)
            return

        try:
            self._resolve(mii, frame)
        except UnmatchedReplyWarning as exc:
            logger.warning("%s; reply dropped", exc)

    def _resolve(self, mii: str, frame: dict[str, Any]) -> None:
        pending = self._pop(mii)
        if pending is None:
            raise UnmatchedReplyWarning(mii)

        response = Response(
            mii=mii,
            sent=pending.sent,
            received=frame,
            cancelled=False,
            sent_at=pending.sent_at,
            received_at=_now(),
        )
        if not pending.future.done():
            pending.future.set_result(response)
        logger.debug("Request %s resolved", mii)

    # ------------------------------------------------------------------
    # Table bookkeeping
    # ------------------------------------------------------------------

    def _pop(self, mii: str) -> PendingRequest | None:
        pending = self._pending.pop(mii, None)
        if pending is not None and pending.timer is not None:
            pending.timer.cancel()
        return pending

    def _expire(self, mii: str) -> None:
        pending = self._pop(mii)
        if pending is None:
            return
        timeout = self._request_timeout or 0.0
        logger.warning("Request %s got no reply within %.1fs", mii, timeout)
        if not pending.future.done():
            pending.future.set_exception(RequestTimeoutError(mii, timeout))

    def _forget_if_cancelled(self, mii: str, fut: asyncio.Future[Response]) -> None:
        # A caller cancelling its awaiting task cancels the future too.
        if fut.cancelled():
            pending = self._pending.get(mii)
            if pending is not None and pending.future is fut:
                self._pop(mii)
