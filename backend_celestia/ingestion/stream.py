"""
Push channel ingestion: WebSocket -> parse -> queue -> single consumer -> session.

The data service sends {"type": "initial", "data": [tx, ...]} once per
connection and {"type": "update", "data": tx} per new transaction. Every
record is queued in arrival order; one consumer drains the queue in small
batches and applies each batch to the session with a single regroup, so
updates are never interleaved.

Fault tolerance: reconnect after a delay (fixed, or exponential when
backoff > 1) up to a bounded number of attempts. Once exhausted the channel
is "failed" and stays idle until retry() is called. Already-applied state is
never touched by a disconnect.
"""

from __future__ import annotations

import asyncio
import enum
import json
from dataclasses import dataclass
from typing import Any, Callable

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from backend_celestia.celestia_logging import get_logger
from backend_celestia.core.exceptions import ChannelDisconnected
from backend_celestia.universe.session import UniverseSession

logger = get_logger(__name__)

MESSAGE_INITIAL = "initial"
MESSAGE_UPDATE = "update"

DEFAULT_RECONNECT_DELAY_SEC = 2.0
DEFAULT_MAX_RECONNECT_ATTEMPTS = 5
DEFAULT_RECONNECT_MAX_SEC = 60.0
DEFAULT_BATCH_WINDOW_SEC = 0.25
DEFAULT_MAX_BATCH = 1000
DEFAULT_WS_PING_INTERVAL = 30.0
DEFAULT_WS_PING_TIMEOUT = 10.0
_WS_CLOSE_TIMEOUT = 5.0
_CONSUMER_POLL_SEC = 1.0


class ConnectionStatus(str, enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    FAILED = "failed"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ChannelMessage:
    type: str
    records: list[Any]
    total: int | None = None


def parse_channel_message(raw: str | bytes) -> ChannelMessage | None:
    """Decode one channel frame; None for unknown types or undecodable frames."""
    try:
        msg = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        logger.warning("channel_message_undecodable", error=str(e))
        return None
    if not isinstance(msg, dict):
        logger.warning("channel_message_not_object")
        return None
    msg_type = msg.get("type")
    data = msg.get("data")
    total = msg.get("total") if isinstance(msg.get("total"), int) else None
    if msg_type == MESSAGE_INITIAL:
        if not isinstance(data, list):
            logger.warning("channel_initial_without_list")
            return None
        return ChannelMessage(type=MESSAGE_INITIAL, records=data, total=total)
    if msg_type == MESSAGE_UPDATE:
        if data is None:
            logger.warning("channel_update_without_data")
            return None
        return ChannelMessage(type=MESSAGE_UPDATE, records=[data], total=total)
    logger.info("channel_message_unknown_type", message_type=str(msg_type))
    return None


@dataclass(frozen=True)
class ReconnectPolicy:
    """Delay before reconnect attempt n (1-based) and the bound on attempts."""

    delay_sec: float = DEFAULT_RECONNECT_DELAY_SEC
    backoff: float = 1.0
    max_delay_sec: float = DEFAULT_RECONNECT_MAX_SEC
    max_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS

    def delay_for(self, attempt: int) -> float:
        if attempt < 1:
            return 0.0
        return min(self.delay_sec * (self.backoff ** (attempt - 1)), self.max_delay_sec)

    def exhausted(self, attempt: int) -> bool:
        return attempt > self.max_attempts


class TransactionStream:
    """
    Push channel client feeding raw transaction records into a queue.

    Args:
        url: ws:// or wss:// URL of the data service.
        queue: Destination for raw records, in arrival order.
        policy: Reconnect delay and attempt bound.
        connect: websockets.connect-compatible factory (injectable for tests).
    """

    def __init__(
        self,
        url: str,
        queue: asyncio.Queue[Any],
        policy: ReconnectPolicy | None = None,
        *,
        connect: Callable[..., Any] | None = None,
        ping_interval: float | None = DEFAULT_WS_PING_INTERVAL,
        ping_timeout: float | None = DEFAULT_WS_PING_TIMEOUT,
    ) -> None:
        if not url.strip():
            raise ValueError("url must be non-empty")
        self._url = url.strip()
        self._queue = queue
        self._policy = policy or ReconnectPolicy()
        self._connect = connect or websockets.connect
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._status = ConnectionStatus.IDLE
        self._attempt = 0
        self._stop = asyncio.Event()
        self._wake = asyncio.Event()
        self.messages_received = 0
        self.records_enqueued = 0

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def reconnect_attempts(self) -> int:
        return self._attempt

    def stop(self) -> None:
        """Signal the stream to stop after the current frame or wait."""
        self._stop.set()
        self._wake.set()

    def retry(self) -> bool:
        """User-triggered retry of a failed channel. Returns False when not failed."""
        if self._status is not ConnectionStatus.FAILED:
            return False
        logger.info("stream_retry_requested", url=self._url)
        self._wake.set()
        return True

    def _set_status(self, status: ConnectionStatus) -> None:
        if status is not self._status:
            logger.info("stream_status", status=status.value, attempt=self._attempt)
        self._status = status

    async def run(self) -> None:
        """Connect, enqueue records, reconnect per policy. Exits when stop() is called."""
        try:
            while not self._stop.is_set():
                self._set_status(
                    ConnectionStatus.CONNECTING if self._attempt == 0 else ConnectionStatus.RECONNECTING
                )
                try:
                    await self._connect_once()
                except ChannelDisconnected as e:
                    if self._stop.is_set():
                        break
                    logger.warning(
                        "stream_disconnected",
                        url=self._url,
                        close_code=e.close_code,
                        reason=e.reason or str(e),
                    )
                    await self._after_disconnect()
        finally:
            self._set_status(ConnectionStatus.STOPPED)
            logger.info("stream_stopped", url=self._url)

    async def _after_disconnect(self) -> None:
        self._attempt += 1
        if self._policy.exhausted(self._attempt):
            self._set_status(ConnectionStatus.FAILED)
            logger.error(
                "stream_retries_exhausted",
                url=self._url,
                max_attempts=self._policy.max_attempts,
            )
            self._wake.clear()
            await self._wake.wait()
            self._attempt = 0
            return
        delay = self._policy.delay_for(self._attempt)
        self._set_status(ConnectionStatus.RECONNECTING)
        logger.info(
            "stream_reconnect",
            attempt=self._attempt,
            max_attempts=self._policy.max_attempts,
            backoff_sec=round(delay, 2),
        )
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _connect_once(self) -> None:
        """One connection lifetime; always ends in ChannelDisconnected unless stopped."""
        try:
            async with self._connect(
                self._url,
                ping_interval=self._ping_interval,
                ping_timeout=self._ping_timeout,
                close_timeout=_WS_CLOSE_TIMEOUT,
            ) as ws:
                self._attempt = 0
                self._set_status(ConnectionStatus.CONNECTED)
                logger.info("stream_connected", url=self._url)
                async for raw in ws:
                    if self._stop.is_set():
                        return
                    self._handle_frame(raw)
        except ConnectionClosed as e:
            rcvd = getattr(e, "rcvd", None)
            raise ChannelDisconnected(
                "push channel closed",
                close_code=getattr(rcvd, "code", None),
                reason=getattr(rcvd, "reason", None),
            ) from e
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            raise ChannelDisconnected(f"push channel connect failed: {e}") from e
        if not self._stop.is_set():
            raise ChannelDisconnected("push channel closed by server")

    def _handle_frame(self, raw: str | bytes) -> None:
        message = parse_channel_message(raw)
        if message is None:
            return
        self.messages_received += 1
        for record in message.records:
            self._queue.put_nowait(record)
        self.records_enqueued += len(message.records)
        logger.debug(
            "stream_message_received",
            message_type=message.type,
            records=len(message.records),
            upstream_total=message.total,
        )


async def _collect_batch(
    queue: asyncio.Queue[Any],
    first: Any,
    window_sec: float,
    max_batch: int,
) -> list[Any]:
    """Coalesce records arriving within window_sec after the first one."""
    batch = [first]
    loop = asyncio.get_running_loop()
    deadline = loop.time() + window_sec
    while len(batch) < max_batch:
        remaining = deadline - loop.time()
        if remaining <= 0:
            try:
                batch.append(queue.get_nowait())
            except asyncio.QueueEmpty:
                break
            continue
        try:
            batch.append(await asyncio.wait_for(queue.get(), timeout=remaining))
        except asyncio.TimeoutError:
            break
    return batch


async def run_update_consumer(
    queue: asyncio.Queue[Any],
    session: UniverseSession,
    stop_event: asyncio.Event,
    *,
    batch_window_sec: float = DEFAULT_BATCH_WINDOW_SEC,
    max_batch: int = DEFAULT_MAX_BATCH,
) -> None:
    """
    Single consumer: apply queued records to the session in arrival order.

    Records arriving within batch_window_sec are applied together with one
    regroup. A failing batch is logged and dropped; the consumer keeps going.
    Exits when stop_event is set.
    """
    while not stop_event.is_set():
        try:
            first = await asyncio.wait_for(queue.get(), timeout=_CONSUMER_POLL_SEC)
        except asyncio.TimeoutError:
            continue
        batch = await _collect_batch(queue, first, batch_window_sec, max_batch)
        try:
            report = session.ingest_records(batch)
        except Exception as e:
            logger.exception("updates_apply_failed", batch_size=len(batch), error=str(e))
            continue
        finally:
            for _ in batch:
                queue.task_done()
        logger.info(
            "updates_applied",
            batch_size=len(batch),
            accepted=report.accepted,
            duplicates=report.duplicates,
            invalid=report.invalid,
            version=session.version,
        )
