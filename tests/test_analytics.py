"""
Tests for universe analytics: summary, top transactions, wallet lookup, hash search.
"""

from __future__ import annotations

import pytest

from backend_celestia.universe.analytics import (
    locate_transaction,
    summarize,
    top_transactions,
    transactions_for_wallet,
)
from backend_celestia.universe.grouping import GroupingConfig, group_transactions
from backend_celestia.universe.models import GroupingResult, Transaction

WALLET_A = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
WALLET_B = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"


@pytest.fixture
def result() -> GroupingResult:
    txs = [
        Transaction(hash="aaa111", amount=60, to_address=WALLET_A),
        Transaction(hash="bbb222", amount=50, to_address=WALLET_B),
        Transaction(hash="ccc333", amount=40, to_address=WALLET_A),
        Transaction(hash="ddd444", amount=150, to_address=WALLET_A.lower()),
        Transaction(hash="eee555", amount=5),
    ]
    return group_transactions(txs, GroupingConfig(max_capacity=100, target_capacity=80))


def test_summarize(result):
    s = summarize(result, target_capacity=80)
    assert s.galaxy_count == 2
    assert s.planet_count == 5
    assert s.solitary_count == 1
    assert s.total_volume == pytest.approx(305)
    assert s.largest_galaxy_amount == pytest.approx(95)
    # galaxies: [a60] and [b50, c40, e5] -> (60/80 + 95/80) / 2
    assert s.mean_fill_ratio == pytest.approx((60 / 80 + 95 / 80) / 2)
    assert s.to_dict()["galaxy_count"] == 2


def test_summarize_empty():
    s = summarize(GroupingResult(), target_capacity=80)
    assert s.galaxy_count == 0
    assert s.planet_count == 0
    assert s.total_volume == 0
    assert s.largest_galaxy_amount == 0
    assert s.mean_fill_ratio is None


def test_top_transactions(result):
    assert [t.hash for t in top_transactions(result, 3)] == ["ddd444", "aaa111", "bbb222"]
    assert top_transactions(result, 0) == []


def test_transactions_for_wallet_case_insensitive(result):
    matches = transactions_for_wallet(result, WALLET_A.upper())
    assert [t.hash for t in matches] == ["ddd444", "aaa111", "ccc333"]
    assert transactions_for_wallet(result, "unknown") == []
    assert transactions_for_wallet(result, "  ") == []


def test_locate_transaction_in_galaxy(result):
    loc = locate_transaction(result, "CCC")
    assert loc is not None
    assert loc.kind == "galaxy"
    assert loc.galaxy_index == 1
    assert loc.placement_index == 1
    assert loc.transaction.hash == "ccc333"


def test_locate_transaction_solitary(result):
    loc = locate_transaction(result, "ddd4")
    assert loc is not None
    assert loc.kind == "solitary"
    assert loc.solitary_index == 0
    assert loc.placement_index == len(result.galaxies)


def test_locate_transaction_missing(result):
    assert locate_transaction(result, "zzz") is None
    assert locate_transaction(result, "") is None
