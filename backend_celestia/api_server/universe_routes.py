"""
FastAPI router: GET /universe, /universe/summary, /universe/wallet/{address}, /universe/search.

Read-only views over the session's current grouping and position cache.
Handlers are async so they run on the event loop alongside the update
consumer and never observe a half-applied batch.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from backend_celestia.api_server.schemas import (
    GalaxyOut,
    SearchResponse,
    SolitaryPlanetOut,
    SummaryResponse,
    TransactionOut,
    UniverseResponse,
    WalletTransactionsResponse,
)
from backend_celestia.celestia_logging import get_logger
from backend_celestia.universe.analytics import (
    locate_transaction,
    summarize,
    top_transactions,
    transactions_for_wallet,
)
from backend_celestia.universe.session import KIND_GALAXY, UniverseSession

logger = get_logger(__name__)

router = APIRouter(prefix="/universe", tags=["universe"])


def get_session(request: Request) -> UniverseSession:
    """Dependency: the session created by the app lifespan."""
    return request.app.state.session


@router.get("", response_model=UniverseResponse)
async def get_universe(session: UniverseSession = Depends(get_session)) -> UniverseResponse:
    """
    Return every galaxy and solitary planet with its cached position.

    503 while the initial load has failed and nothing has been received yet.
    """
    if session.load_error is not None and session.transaction_count == 0:
        raise HTTPException(
            status_code=503,
            detail=f"Transactions unavailable: {session.load_error}",
        )
    galaxies: list[GalaxyOut] = []
    solitary: list[SolitaryPlanetOut] = []
    for placement in session.placements():
        if placement.kind == KIND_GALAXY:
            galaxies.append(GalaxyOut.from_placement(placement))
        else:
            solitary.append(SolitaryPlanetOut.from_placement(placement))
    return UniverseResponse(
        version=session.version,
        transaction_count=session.transaction_count,
        galaxies=galaxies,
        solitary_planets=solitary,
    )


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    limit: int = Query(3, ge=0, le=100, description="Number of top transactions"),
    session: UniverseSession = Depends(get_session),
) -> SummaryResponse:
    result = session.result
    summary = summarize(result, session.grouping.target_capacity)
    return SummaryResponse(
        **summary.to_dict(),
        top_transactions=[TransactionOut.from_tx(tx) for tx in top_transactions(result, limit)],
    )


@router.get("/wallet/{address}", response_model=WalletTransactionsResponse)
async def get_wallet_transactions(
    address: str,
    session: UniverseSession = Depends(get_session),
) -> WalletTransactionsResponse:
    """Transactions received by a wallet, largest first. 404 when there are none."""
    address = address.strip()
    if not address:
        raise HTTPException(status_code=400, detail="address must be non-empty")
    matches = transactions_for_wallet(session.result, address)
    if not matches:
        raise HTTPException(status_code=404, detail="No transactions found for this wallet")
    logger.info("wallet_lookup", wallet_id=address[:16], matches=len(matches))
    return WalletTransactionsResponse(
        address=address,
        transactions=[TransactionOut.from_tx(tx) for tx in matches],
    )


@router.get("/search", response_model=SearchResponse)
async def search_transaction(
    q: str = Query("", description="Full or partial transaction hash"),
    session: UniverseSession = Depends(get_session),
) -> SearchResponse:
    """Locate the first transaction whose hash contains q; galaxies are searched first."""
    if not q.strip():
        raise HTTPException(status_code=400, detail="q must be non-empty")
    result = session.result
    location = locate_transaction(result, q)
    if location is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    position = session.position_for(location.placement_index, result.placement_count)
    return SearchResponse(
        kind=location.kind,
        placement_index=location.placement_index,
        position=position,
        galaxy_index=location.galaxy_index,
        solitary_index=location.solitary_index,
        transaction=TransactionOut.from_tx(location.transaction),
    )
