"""
Ingestion service: initial REST load plus push channel and consumer tasks.

start() launches three asyncio tasks on the running loop: the initial load,
the channel reader, and the single update consumer. stop() signals and
cancels them. All session mutations happen on the event loop thread.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from backend_celestia.celestia_logging import get_logger
from backend_celestia.config.settings import Settings
from backend_celestia.core.exceptions import UpstreamFetchFailed
from backend_celestia.ingestion.api_client import TransactionApiClient
from backend_celestia.ingestion.stream import (
    ConnectionStatus,
    ReconnectPolicy,
    TransactionStream,
    run_update_consumer,
)
from backend_celestia.universe.session import IngestReport, UniverseSession

logger = get_logger(__name__)

SHUTDOWN_TIMEOUT_SEC = 5.0


async def load_initial(session: UniverseSession, api_client: TransactionApiClient) -> IngestReport:
    """
    Fetch the full transaction set and apply it to the session.

    On UpstreamFetchFailed the error is recorded on the session (for the
    API's loading error) and re-raised; no automatic retry.
    """
    try:
        records = await api_client.fetch_all()
    except UpstreamFetchFailed as e:
        session.mark_load_failed(e)
        logger.error(
            "initial_load_failed",
            url=e.url,
            status_code=e.status_code,
            error=str(e),
        )
        raise
    report = session.ingest_records(records)
    session.mark_loaded()
    logger.info(
        "initial_load_complete",
        fetched=len(records),
        accepted=report.accepted,
        duplicates=report.duplicates,
        invalid=report.invalid,
    )
    return report


class IngestionService:
    """Owns the queue, stream, and background tasks for one session."""

    def __init__(
        self,
        session: UniverseSession,
        settings: Settings,
        *,
        api_client: TransactionApiClient | None = None,
        connect: Callable[..., Any] | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._api_client = api_client or TransactionApiClient(
            settings.api_url,
            page_size=settings.page_size,
            timeout_sec=settings.request_timeout_sec,
        )
        self._stream = TransactionStream(
            settings.ws_url,
            self._queue,
            ReconnectPolicy(
                delay_sec=settings.reconnect_delay_sec,
                backoff=settings.reconnect_backoff,
                max_delay_sec=settings.reconnect_max_sec,
                max_attempts=settings.max_reconnect_attempts,
            ),
            connect=connect,
        )
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task[Any]] = []

    @property
    def queue(self) -> asyncio.Queue[Any]:
        return self._queue

    @property
    def stream(self) -> TransactionStream:
        return self._stream

    @property
    def channel_status(self) -> ConnectionStatus:
        return self._stream.status

    def retry_channel(self) -> bool:
        return self._stream.retry()

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._initial_load(), name="celestia-initial-load"),
            asyncio.create_task(self._stream.run(), name="celestia-stream"),
            asyncio.create_task(
                run_update_consumer(
                    self._queue,
                    self._session,
                    self._stop_event,
                    batch_window_sec=self._settings.batch_window_sec,
                ),
                name="celestia-update-consumer",
            ),
        ]
        logger.info("ingestion_started", api_url=self._settings.api_url, ws_url=self._settings.ws_url)

    async def _initial_load(self) -> None:
        try:
            await load_initial(self._session, self._api_client)
        except UpstreamFetchFailed:
            # Recorded on the session; the channel keeps delivering updates.
            pass

    async def stop(self) -> None:
        self._stop_event.set()
        self._stream.stop()
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            done, pending = await asyncio.wait(self._tasks, timeout=SHUTDOWN_TIMEOUT_SEC)
            if pending:
                logger.warning("ingestion_shutdown_timeout", pending=len(pending))
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    logger.warning("ingestion_task_error", task=task.get_name(), error=str(task.exception()))
        self._tasks = []
        await self._api_client.aclose()
        logger.info("ingestion_stopped")
