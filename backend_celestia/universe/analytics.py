"""
Read-only views over a grouping result: summary stats, wallet and hash lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from backend_celestia.universe.models import GroupingResult, Transaction
from backend_celestia.universe.session import KIND_GALAXY, KIND_SOLITARY


@dataclass(frozen=True)
class UniverseSummary:
    galaxy_count: int
    planet_count: int
    solitary_count: int
    total_volume: float
    largest_galaxy_amount: float
    mean_fill_ratio: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "galaxy_count": self.galaxy_count,
            "planet_count": self.planet_count,
            "solitary_count": self.solitary_count,
            "total_volume": self.total_volume,
            "largest_galaxy_amount": self.largest_galaxy_amount,
            "mean_fill_ratio": self.mean_fill_ratio,
        }


@dataclass(frozen=True)
class TransactionLocation:
    """Where a transaction sits: its galaxy, or its solitary slot, plus the placement index."""

    kind: str
    placement_index: int
    transaction: Transaction
    galaxy_index: int | None = None
    solitary_index: int | None = None


def summarize(result: GroupingResult, target_capacity: float | None = None) -> UniverseSummary:
    """Counts and volume; every transaction counts as a planet, in a galaxy or not."""
    volume = sum(tx.amount for tx in result.all_transactions())
    largest = max((g.total_amount for g in result.galaxies), default=0.0)
    fill = result.mean_fill_ratio(target_capacity) if target_capacity else None
    return UniverseSummary(
        galaxy_count=len(result.galaxies),
        planet_count=result.transaction_count,
        solitary_count=len(result.solitary),
        total_volume=volume,
        largest_galaxy_amount=largest,
        mean_fill_ratio=fill,
    )


def top_transactions(result: GroupingResult, limit: int = 3) -> list[Transaction]:
    if limit <= 0:
        return []
    return sorted(result.all_transactions(), key=lambda tx: (-tx.amount, tx.hash))[:limit]


def transactions_for_wallet(result: GroupingResult, address: str) -> list[Transaction]:
    """
    Transactions sent to ``address`` (case-insensitive), unique by hash, largest first.

    Galaxies are scanned before solitary planets; records without a
    destination never match.
    """
    needle = address.strip().lower()
    if not needle:
        return []
    seen: set[str] = set()
    matches: list[Transaction] = []
    for tx in result.all_transactions():
        if tx.to_address is None or tx.to_address.lower() != needle:
            continue
        if tx.hash in seen:
            continue
        seen.add(tx.hash)
        matches.append(tx)
    matches.sort(key=lambda tx: -tx.amount)
    return matches


def locate_transaction(result: GroupingResult, query: str) -> TransactionLocation | None:
    """First transaction whose hash contains ``query`` (case-insensitive); galaxies first."""
    needle = query.strip().lower()
    if not needle:
        return None
    for gi, galaxy in enumerate(result.galaxies):
        for tx in galaxy.transactions:
            if needle in tx.hash.lower():
                return TransactionLocation(
                    kind=KIND_GALAXY,
                    placement_index=gi,
                    transaction=tx,
                    galaxy_index=gi,
                )
    offset = len(result.galaxies)
    for si, tx in enumerate(result.solitary):
        if needle in tx.hash.lower():
            return TransactionLocation(
                kind=KIND_SOLITARY,
                placement_index=offset + si,
                transaction=tx,
                solitary_index=si,
            )
    return None
