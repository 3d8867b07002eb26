"""
Universe session: owns the working set, seen-hash guard, and position cache.

One session per live view. Incremental insertion is a thin wrapper around a
full regroup of the working set, so streaming and initial-load paths can never
diverge. Updates must be applied one batch at a time (see
ingestion.stream.run_update_consumer); the session itself does no locking.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Iterable

from backend_celestia.celestia_logging import bind_session
from backend_celestia.core.exceptions import DuplicateRecord, UpstreamFetchFailed
from backend_celestia.universe.grouping import GroupingConfig, group_transactions, parse_records
from backend_celestia.universe.layout import SpiralLayout
from backend_celestia.universe.models import Galaxy, GroupingResult, Position, Transaction

KIND_GALAXY = "galaxy"
KIND_SOLITARY = "solitary"


@dataclass(frozen=True)
class Placement:
    """One positioned object: a galaxy or a solitary planet."""

    kind: str
    index: int
    position: Position
    galaxy: Galaxy | None = None
    transaction: Transaction | None = None


@dataclass(frozen=True)
class IngestReport:
    """Outcome of applying a batch of raw records."""

    accepted: int
    duplicates: int
    invalid: int


class UniverseSession:
    """
    Working set of transactions plus its current grouping and layout.

    Args:
        grouping: Capacity configuration for the grouper.
        layout: Position cache; a fresh SpiralLayout if omitted.
        session_id: Bound into every log line; random if omitted.
    """

    def __init__(
        self,
        grouping: GroupingConfig | None = None,
        layout: SpiralLayout | None = None,
        *,
        session_id: str | None = None,
    ) -> None:
        self.grouping = grouping or GroupingConfig()
        self.layout = layout or SpiralLayout()
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self._log = bind_session(self.session_id)
        self._working: dict[str, Transaction] = {}
        self._result = GroupingResult()
        self._version = 0
        self.loaded = False
        self.load_error: UpstreamFetchFailed | None = None

    @property
    def result(self) -> GroupingResult:
        """Current grouping snapshot; replaced, never mutated, on every regroup."""
        return self._result

    @property
    def version(self) -> int:
        return self._version

    @property
    def transaction_count(self) -> int:
        return len(self._working)

    def has_seen(self, tx_hash: str) -> bool:
        return tx_hash in self._working

    def transactions(self) -> list[Transaction]:
        """Working set in arrival order."""
        return list(self._working.values())

    def add_transaction(self, tx: Transaction, *, strict: bool = False) -> bool:
        """
        Add one transaction and regroup.

        Returns False (no-op) when the hash was already processed, or raises
        DuplicateRecord when strict=True.
        """
        if tx.hash in self._working:
            if strict:
                raise DuplicateRecord(tx.hash)
            return False
        self._working[tx.hash] = tx
        self._regroup(added=1)
        return True

    def add_transactions(self, transactions: Iterable[Transaction]) -> int:
        """Add a batch in order with a single regroup. Returns the number newly added."""
        added = 0
        for tx in transactions:
            if tx.hash in self._working:
                continue
            self._working[tx.hash] = tx
            added += 1
        if added:
            self._regroup(added=added)
        return added

    def ingest_records(self, records: Iterable[Any]) -> IngestReport:
        """Apply raw records: malformed ones are skipped and logged, duplicates ignored."""
        parsed, invalid = parse_records(records)
        accepted = self.add_transactions(parsed)
        report = IngestReport(
            accepted=accepted,
            duplicates=len(parsed) - accepted,
            invalid=invalid,
        )
        if report.duplicates or report.invalid:
            self._log.debug(
                "session_ingest_skipped",
                duplicates=report.duplicates,
                invalid=report.invalid,
            )
        return report

    def mark_loaded(self) -> None:
        self.loaded = True
        self.load_error = None

    def mark_load_failed(self, error: UpstreamFetchFailed) -> None:
        self.load_error = error

    def position_for(self, index: int, total: int) -> Position:
        return self.layout.position_for(index, total)

    def placements(self) -> list[Placement]:
        """
        Position every galaxy (index i) and solitary planet (index len(galaxies) + j).

        All objects share total = galaxies + solitary planets, so a planet's
        index follows the galaxies in the same cache.
        """
        result = self._result
        total = result.placement_count
        out: list[Placement] = []
        for i, galaxy in enumerate(result.galaxies):
            out.append(
                Placement(
                    kind=KIND_GALAXY,
                    index=i,
                    position=self.layout.position_for(i, total),
                    galaxy=galaxy,
                )
            )
        offset = len(result.galaxies)
        for j, tx in enumerate(result.solitary):
            index = offset + j
            out.append(
                Placement(
                    kind=KIND_SOLITARY,
                    index=index,
                    position=self.layout.position_for(index, total),
                    transaction=tx,
                )
            )
        return out

    def _regroup(self, *, added: int) -> None:
        self._result = group_transactions(self._working.values(), self.grouping)
        self._version += 1
        self._log.info(
            "universe_regrouped",
            added=added,
            transactions=len(self._working),
            galaxies=len(self._result.galaxies),
            solitary=len(self._result.solitary),
            version=self._version,
        )
