"""
Response models for the layout API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from backend_celestia.universe.models import Galaxy, Transaction
from backend_celestia.universe.session import Placement


class TransactionOut(BaseModel):
    hash: str = Field(..., description="Transaction hash")
    amount: float = Field(..., ge=0, description="Transferred amount")
    timestamp: str | None = Field(None, description="ISO 8601 time of the transfer")
    toAddress: str | None = Field(None, description="Destination wallet")

    @classmethod
    def from_tx(cls, tx: Transaction) -> "TransactionOut":
        return cls(**tx.to_dict())


class GalaxyOut(BaseModel):
    index: int = Field(..., description="Placement index (stable position key)")
    position: tuple[float, float, float]
    total_amount: float
    transactions: list[TransactionOut]

    @classmethod
    def from_placement(cls, placement: Placement) -> "GalaxyOut":
        galaxy: Galaxy = placement.galaxy  # type: ignore[assignment]
        return cls(
            index=placement.index,
            position=placement.position,
            total_amount=galaxy.total_amount,
            transactions=[TransactionOut.from_tx(tx) for tx in galaxy.transactions],
        )


class SolitaryPlanetOut(BaseModel):
    index: int = Field(..., description="Placement index (follows all galaxies)")
    position: tuple[float, float, float]
    transaction: TransactionOut

    @classmethod
    def from_placement(cls, placement: Placement) -> "SolitaryPlanetOut":
        return cls(
            index=placement.index,
            position=placement.position,
            transaction=TransactionOut.from_tx(placement.transaction),  # type: ignore[arg-type]
        )


class UniverseResponse(BaseModel):
    """GET /universe: every galaxy and solitary planet with its position."""

    version: int = Field(..., description="Regroup counter; changes whenever the layout does")
    transaction_count: int
    galaxies: list[GalaxyOut] = Field(default_factory=list)
    solitary_planets: list[SolitaryPlanetOut] = Field(default_factory=list)


class SummaryResponse(BaseModel):
    galaxy_count: int
    planet_count: int
    solitary_count: int
    total_volume: float
    largest_galaxy_amount: float
    mean_fill_ratio: float | None = None
    top_transactions: list[TransactionOut] = Field(default_factory=list)


class WalletTransactionsResponse(BaseModel):
    address: str
    transactions: list[TransactionOut]


class SearchResponse(BaseModel):
    kind: str = Field(..., description="galaxy | solitary")
    placement_index: int
    position: tuple[float, float, float]
    galaxy_index: int | None = None
    solitary_index: int | None = None
    transaction: TransactionOut


class HealthResponse(BaseModel):
    status: str
    channel: str = Field(..., description="Push channel status")
    processed_transactions: int
    version: int
    loaded: bool
    load_error: str | None = None


class RetryResponse(BaseModel):
    retrying: bool
    channel: str
