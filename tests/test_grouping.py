"""
Tests for the transaction grouper (group_transactions, dedupe, raw record handling).
"""

from __future__ import annotations

import random

import pytest

from backend_celestia.core.exceptions import InvalidRecord
from backend_celestia.universe.grouping import (
    GroupingConfig,
    dedupe_transactions,
    group_records,
    group_transactions,
)
from backend_celestia.universe.models import Transaction

CAP_100 = GroupingConfig(max_capacity=100, target_capacity=80)


def _tx(tx_hash: str, amount: float) -> Transaction:
    return Transaction(hash=tx_hash, amount=amount)


def _hashes(galaxy) -> list[str]:
    return [t.hash for t in galaxy.transactions]


def test_worked_example():
    """MAX=100: d(150) is solitary; a(60) alone; b(50)+c(40) together."""
    txs = [_tx("a", 60), _tx("b", 50), _tx("c", 40), _tx("d", 150)]
    result = group_transactions(txs, CAP_100)
    assert [_hashes(g) for g in result.galaxies] == [["a"], ["b", "c"]]
    assert [g.total_amount for g in result.galaxies] == [60, 90]
    assert [t.hash for t in result.solitary] == ["d"]


def test_empty_input():
    result = group_transactions([], CAP_100)
    assert result.galaxies == []
    assert result.solitary == []
    assert result.transaction_count == 0


def test_single_oversized_transaction_is_only_solitary():
    result = group_transactions([_tx("big", 101)], CAP_100)
    assert result.galaxies == []
    assert [t.hash for t in result.solitary] == ["big"]


def test_amount_equal_to_capacity_fits_a_galaxy():
    result = group_transactions([_tx("edge", 100)], CAP_100)
    assert [_hashes(g) for g in result.galaxies] == [["edge"]]
    assert result.solitary == []


def test_identical_amounts_within_capacity_form_one_galaxy():
    txs = [_tx(f"t{i}", 10) for i in range(10)]
    result = group_transactions(txs, CAP_100)
    assert len(result.galaxies) == 1
    assert result.galaxies[0].total_amount == 100
    assert len(result.galaxies[0]) == 10


def test_duplicate_hashes_collapse():
    result = group_transactions([_tx("x", 10), _tx("x", 10)], CAP_100)
    assert [_hashes(g) for g in result.galaxies] == [["x"]]
    assert result.transaction_count == 1


def test_dedupe_is_first_write_wins():
    first = _tx("x", 10)
    second = _tx("x", 99)
    out = dedupe_transactions([first, _tx("y", 5), second])
    assert out == [first, _tx("y", 5)]


def test_zero_amount_transactions_are_grouped():
    result = group_transactions([_tx("z1", 0), _tx("z2", 0)], CAP_100)
    assert len(result.galaxies) == 1
    assert result.galaxies[0].total_amount == 0


def test_ties_are_ordered_by_hash():
    result = group_transactions([_tx("b", 50), _tx("a", 50), _tx("c", 50)], CAP_100)
    assert [_hashes(g) for g in result.galaxies] == [["a", "b"], ["c"]]


def test_properties_on_random_sets():
    """Capacity bound, no empty galaxy, oversized -> solitary, unique count, determinism."""
    rng = random.Random(1234)
    for _ in range(50):
        pool = [_tx(f"h{rng.randint(0, 80)}", round(rng.uniform(0, 160), 2)) for _ in range(rng.randint(0, 60))]
        unique = {t.hash for t in pool}
        result = group_transactions(pool, CAP_100)

        for galaxy in result.galaxies:
            assert len(galaxy) > 0
            assert sum(t.amount for t in galaxy) <= 100
            assert galaxy.total_amount == pytest.approx(sum(t.amount for t in galaxy))
        for t in result.solitary:
            assert t.amount > 100
        galaxy_hashes = {t.hash for g in result.galaxies for t in g}
        assert all(t.hash not in galaxy_hashes for t in result.solitary)
        assert result.transaction_count == len(unique)
        assert result.hashes() == unique

        shuffled = dedupe_transactions(pool)
        rng.shuffle(shuffled)
        again = group_transactions(shuffled, CAP_100)
        assert again == result


def test_config_validation():
    with pytest.raises(ValueError):
        GroupingConfig(max_capacity=0)
    with pytest.raises(ValueError):
        GroupingConfig(max_capacity=100, target_capacity=150)
    with pytest.raises(ValueError):
        GroupingConfig(max_capacity=100, target_capacity=-1)
    assert GroupingConfig(max_capacity=100, target_capacity=None).target_capacity is None


def test_group_records_skips_malformed():
    records = [
        {"hash": "a", "amount": 60},
        {"amount": 20},
        {"hash": "b", "amount": "not-a-number"},
        {"hash": "c"},
        "garbage",
        {"hash": "d", "amount": 150, "timestamp": "2024-05-01T12:00:00Z", "toAddress": "W"},
    ]
    result = group_records(records, CAP_100)
    assert result.hashes() == {"a", "d"}
    assert [t.hash for t in result.solitary] == ["d"]


def test_fill_ratio_does_not_change_admission():
    loose = GroupingConfig(max_capacity=100, target_capacity=10)
    tight = GroupingConfig(max_capacity=100, target_capacity=100)
    txs = [_tx("a", 40), _tx("b", 30), _tx("c", 20)]
    assert group_transactions(txs, loose) == group_transactions(txs, tight)
    result = group_transactions(txs, tight)
    assert result.galaxies[0].fill_ratio(100) == pytest.approx(0.9)
    assert result.mean_fill_ratio(100) == pytest.approx(0.9)


def test_transaction_from_record_errors():
    with pytest.raises(InvalidRecord, match="missing hash"):
        Transaction.from_record({"hash": "  ", "amount": 1})
    with pytest.raises(InvalidRecord, match="non-negative"):
        Transaction.from_record({"hash": "h", "amount": -1})
    with pytest.raises(InvalidRecord, match="finite"):
        Transaction.from_record({"hash": "h", "amount": float("nan")})
    with pytest.raises(InvalidRecord, match="number"):
        Transaction.from_record({"hash": "h", "amount": True})
    with pytest.raises(InvalidRecord, match="out of range"):
        Transaction.from_record({"hash": "h", "amount": 10**400})
    with pytest.raises(InvalidRecord, match="finite"):
        Transaction.from_record({"hash": "h", "amount": "1e400"})
    with pytest.raises(InvalidRecord, match="timestamp"):
        Transaction.from_record({"hash": "h", "amount": 1, "timestamp": "yesterday"})


def test_transaction_from_record_normalizes_fields():
    t = Transaction.from_record(
        {"hash": " abc ", "amount": "12.5", "timestamp": 1700000000, "toAddress": "Wallet1"}
    )
    assert t.hash == "abc"
    assert t.amount == 12.5
    assert t.timestamp is not None and t.timestamp.tzinfo is not None
    assert t.to_address == "Wallet1"
    wire = t.to_dict()
    assert wire["hash"] == "abc"
    assert wire["toAddress"] == "Wallet1"
    assert wire["timestamp"].startswith("2023-11-14")

    snake = Transaction.from_record({"hash": "h2", "amount": 1, "to_address": "W2"})
    assert snake.to_address == "W2"
    assert snake.timestamp is None
