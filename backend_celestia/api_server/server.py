"""
FastAPI server: read-only layout API over the live universe session.

Lifespan builds the session from settings and, unless
CELESTIA_INGESTION_ENABLED=0, starts ingestion (initial REST load, push
channel, update consumer) as background tasks on the server's event loop.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from backend_celestia import __version__
from backend_celestia.api_server.schemas import HealthResponse, RetryResponse, TransactionOut
from backend_celestia.api_server.universe_routes import get_session
from backend_celestia.api_server.universe_routes import router as universe_router
from backend_celestia.celestia_logging import get_logger
from backend_celestia.config.settings import Settings, get_settings
from backend_celestia.core.exceptions import CelestiaError
from backend_celestia.ingestion.service import IngestionService
from backend_celestia.ingestion.stream import ConnectionStatus
from backend_celestia.universe.layout import SpiralLayout
from backend_celestia.universe.session import UniverseSession

logger = get_logger(__name__)


def build_session(settings: Settings) -> UniverseSession:
    """Session wired with the configured capacities, layout geometry and RNG seed."""
    return UniverseSession(
        grouping=settings.grouping_config(),
        layout=SpiralLayout(settings.layout_config(), rng=settings.layout_rng()),
    )


def get_ingestion(request: Request) -> IngestionService | None:
    return request.app.state.ingestion


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the session; start ingestion when enabled; stop it on shutdown."""
    settings = get_settings()
    session = build_session(settings)
    app.state.session = session
    app.state.ingestion = None
    logger.info(
        "api_session_created",
        session_id=session.session_id,
        max_galaxy_amount=settings.max_galaxy_amount,
        ingestion_enabled=settings.ingestion_enabled,
    )

    service: IngestionService | None = None
    if settings.ingestion_enabled:
        service = IngestionService(session, settings)
        service.start()
        app.state.ingestion = service

    yield

    if service is not None:
        await service.stop()
    logger.info("api_session_closed", session_id=session.session_id, transactions=session.transaction_count)


app = FastAPI(
    title="Celestia API",
    description="Galaxies, solitary planets and their positions for the live transaction universe.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(universe_router)


@app.get("/health", response_model=HealthResponse)
async def health(
    session: UniverseSession = Depends(get_session),
    ingestion: IngestionService | None = Depends(get_ingestion),
) -> HealthResponse:
    """Liveness plus connectivity: channel status and processed transaction count."""
    channel = ingestion.channel_status if ingestion is not None else ConnectionStatus.IDLE
    return HealthResponse(
        status="ok",
        channel=channel.value,
        processed_transactions=session.transaction_count,
        version=session.version,
        loaded=session.loaded,
        load_error=str(session.load_error) if session.load_error else None,
    )


@app.get("/api/transactions", response_model=list[TransactionOut])
async def list_transactions(session: UniverseSession = Depends(get_session)) -> list[TransactionOut]:
    """Working set in arrival order, in the data service's wire shape."""
    return [TransactionOut.from_tx(tx) for tx in session.transactions()]


@app.post("/stream/retry", response_model=RetryResponse)
async def retry_stream(ingestion: IngestionService | None = Depends(get_ingestion)) -> RetryResponse:
    """Retry a push channel that exhausted its reconnect attempts."""
    if ingestion is None:
        raise HTTPException(status_code=409, detail="Ingestion is disabled")
    retrying = ingestion.retry_channel()
    return RetryResponse(retrying=retrying, channel=ingestion.channel_status.value)


@app.exception_handler(CelestiaError)
def celestia_error_handler(request: Any, exc: CelestiaError) -> JSONResponse:
    """Consistent JSON error response for domain errors escaping a handler."""
    logger.warning("api_domain_error", code=exc.code, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "code": exc.code},
    )


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
