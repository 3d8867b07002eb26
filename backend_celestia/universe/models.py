"""
Data models for the universe: transactions, galaxies, grouping results.

Transactions are immutable once received. Galaxies and grouping results are
produced wholesale by the grouper and superseded, never mutated, when the
working set changes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping

from backend_celestia.core.exceptions import InvalidRecord

Position = tuple[float, float, float]


def _parse_amount(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise InvalidRecord(f"amount must be a number, got {value!r}")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidRecord(f"amount must be a number, got {value!r}") from None
    except OverflowError:
        raise InvalidRecord("amount out of range") from None
    if not math.isfinite(amount):
        raise InvalidRecord(f"amount must be finite, got {value!r}")
    if amount < 0:
        raise InvalidRecord(f"amount must be non-negative, got {value!r}")
    return amount


def _parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string, Unix seconds, or datetime -> UTC-aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise InvalidRecord(f"timestamp not understood: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise InvalidRecord(f"timestamp out of range: {value!r}") from None
    if isinstance(value, str):
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            raise InvalidRecord(f"timestamp not understood: {value!r}") from None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise InvalidRecord(f"timestamp not understood: {value!r}")


@dataclass(frozen=True)
class Transaction:
    """
    A single token transfer as observed by the data service.

    ``hash`` is the natural key for deduplication; ``amount`` drives grouping
    and visual size; ``to_address`` is only read by wallet lookups.
    """

    hash: str
    amount: float
    timestamp: datetime | None = None
    to_address: str | None = None

    @classmethod
    def from_record(cls, record: Any) -> "Transaction":
        """Build from a raw data-service record; raise InvalidRecord when malformed."""
        if not isinstance(record, Mapping):
            raise InvalidRecord(f"record must be an object, got {type(record).__name__}", record)
        raw_hash = record.get("hash")
        if not isinstance(raw_hash, str) or not raw_hash.strip():
            raise InvalidRecord("missing hash", record)
        if "amount" not in record:
            raise InvalidRecord("missing amount", record)
        try:
            amount = _parse_amount(record.get("amount"))
            timestamp = _parse_timestamp(record.get("timestamp"))
        except InvalidRecord as e:
            raise InvalidRecord(e.reason, record) from None
        to_address = record.get("toAddress", record.get("to_address"))
        if to_address is not None and not isinstance(to_address, str):
            to_address = str(to_address)
        return cls(
            hash=raw_hash.strip(),
            amount=amount,
            timestamp=timestamp,
            to_address=to_address or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire shape, matching the data service's field names."""
        return {
            "hash": self.hash,
            "amount": self.amount,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "toAddress": self.to_address,
        }


@dataclass(frozen=True)
class Galaxy:
    """A capacity-bounded group of transactions."""

    transactions: tuple[Transaction, ...]
    total_amount: float

    def __len__(self) -> int:
        return len(self.transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.transactions)

    def fill_ratio(self, target_capacity: float) -> float:
        """How full this galaxy is relative to the soft target (1.0 = on target)."""
        if target_capacity <= 0:
            return 0.0
        return self.total_amount / target_capacity

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_amount": self.total_amount,
            "transactions": [tx.to_dict() for tx in self.transactions],
        }


@dataclass(frozen=True)
class GroupingResult:
    """Output of one grouping pass: galaxies plus solitary (overflow) planets."""

    galaxies: list[Galaxy] = field(default_factory=list)
    solitary: list[Transaction] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return sum(len(g) for g in self.galaxies) + len(self.solitary)

    @property
    def placement_count(self) -> int:
        """Number of positioned objects: one per galaxy, one per solitary planet."""
        return len(self.galaxies) + len(self.solitary)

    def all_transactions(self) -> Iterator[Transaction]:
        for galaxy in self.galaxies:
            yield from galaxy.transactions
        yield from self.solitary

    def hashes(self) -> set[str]:
        return {tx.hash for tx in self.all_transactions()}

    def mean_fill_ratio(self, target_capacity: float) -> float | None:
        if not self.galaxies:
            return None
        return sum(g.fill_ratio(target_capacity) for g in self.galaxies) / len(self.galaxies)
