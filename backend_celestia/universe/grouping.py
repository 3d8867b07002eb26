"""
Transaction grouper: partition transactions into galaxies and solitary planets.

Greedy descending-size bin packing against ``max_capacity``. Transactions
larger than the capacity can never fit a galaxy and become solitary planets.
Exact packing is not the goal; the greedy pass keeps galaxy sizes visually
balanced and is deterministic for a given multiset of transactions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from backend_celestia.celestia_logging import get_logger
from backend_celestia.core.exceptions import InvalidRecord
from backend_celestia.universe.models import Galaxy, GroupingResult, Transaction

logger = get_logger(__name__)

DEFAULT_MAX_GALAXY_AMOUNT = 7000.0
DEFAULT_TARGET_GALAXY_AMOUNT = 6000.0


@dataclass(frozen=True)
class GroupingConfig:
    """Capacity settings for galaxies; target_capacity is a soft tuning knob only."""

    max_capacity: float = DEFAULT_MAX_GALAXY_AMOUNT
    target_capacity: float | None = DEFAULT_TARGET_GALAXY_AMOUNT

    def __post_init__(self) -> None:
        if self.max_capacity <= 0:
            raise ValueError("max_capacity must be positive")
        if self.target_capacity is not None:
            if self.target_capacity <= 0:
                raise ValueError("target_capacity must be positive")
            if self.target_capacity > self.max_capacity:
                raise ValueError("target_capacity must not exceed max_capacity")


def dedupe_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Keep the first record for each hash, in first-seen order."""
    seen: set[str] = set()
    out: list[Transaction] = []
    for tx in transactions:
        if tx.hash in seen:
            continue
        seen.add(tx.hash)
        out.append(tx)
    return out


def _sort_key(tx: Transaction) -> tuple[float, str]:
    # Hash breaks ties so ordering depends only on the multiset.
    return (-tx.amount, tx.hash)


def group_transactions(
    transactions: Iterable[Transaction],
    config: GroupingConfig | None = None,
) -> GroupingResult:
    """
    Partition transactions into galaxies and solitary planets.

    1. Deduplicate by hash (first-write-wins).
    2. Sort by amount descending.
    3. amount > max_capacity -> solitary.
    4. Pack the rest greedily: admit while current_sum + amount <= max_capacity,
       otherwise close the current galaxy and start a new one with the item.

    Args:
        transactions: Any iterable of Transaction, possibly with duplicate hashes.
        config: Capacity settings; defaults to GroupingConfig().

    Returns:
        GroupingResult with galaxies in creation order and solitary planets
        in descending amount order.
    """
    config = config or GroupingConfig()
    ordered = sorted(dedupe_transactions(transactions), key=_sort_key)

    galaxies: list[Galaxy] = []
    solitary: list[Transaction] = []
    current: list[Transaction] = []
    current_sum = 0.0

    for tx in ordered:
        if tx.amount > config.max_capacity:
            solitary.append(tx)
            continue
        if current_sum + tx.amount <= config.max_capacity:
            current.append(tx)
            current_sum += tx.amount
            continue
        if current:
            galaxies.append(Galaxy(transactions=tuple(current), total_amount=current_sum))
        current = [tx]
        current_sum = tx.amount

    if current:
        galaxies.append(Galaxy(transactions=tuple(current), total_amount=current_sum))

    return GroupingResult(galaxies=galaxies, solitary=solitary)


def parse_records(records: Iterable[Any]) -> tuple[list[Transaction], int]:
    """
    Convert raw records to Transactions, skipping malformed ones.

    Returns:
        (transactions, invalid_count). Each skipped record is logged.
    """
    out: list[Transaction] = []
    invalid = 0
    for record in records:
        try:
            out.append(Transaction.from_record(record))
        except InvalidRecord as e:
            invalid += 1
            raw_hash = record.get("hash") if isinstance(record, dict) else None
            logger.warning(
                "transaction_invalid_skipped",
                reason=e.reason,
                tx_hash=str(raw_hash)[:16] if raw_hash else None,
            )
    return out, invalid


def group_records(
    records: Iterable[Any],
    config: GroupingConfig | None = None,
) -> GroupingResult:
    """Group raw data-service records; malformed records are skipped, not fatal."""
    transactions, _ = parse_records(records)
    return group_transactions(transactions, config)
