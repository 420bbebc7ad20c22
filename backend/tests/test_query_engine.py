import pytest

from amlsentinel.domain.risk import RiskLevel
from amlsentinel.services.query_engine import (
    SortDirection,
    SortKey,
    TransactionQuery,
    paginate,
    query,
    related_transactions,
)

from conftest import make_tx


@pytest.fixture
def txs():
    return (
        make_tx(1, from_account="ACC-A1", to_account="ACC-Z9", amount="500", score=0.9),
        make_tx(2, from_account="ACC-B1", to_account="ACC-Y8", amount="20000", score=0.5),
        make_tx(3, from_account="ACC-C1", to_account="ACC-A1", amount="75", score=0.1),
        make_tx(4, from_account="ACC-D1", to_account="ACC-X7", amount="500", score=0.5),
    )


def test_search_is_case_insensitive_over_id_and_accounts(txs):
    assert [t.id for t in query(txs, TransactionQuery(search="a1"))] == ["TXN-000001", "TXN-000003"]
    assert [t.id for t in query(txs, TransactionQuery(search="txn-000004"))] == ["TXN-000004"]
    assert query(txs, TransactionQuery(search="nobody")) == ()


def test_search_on_sender_only_matches_first(txs):
    pair = txs[:2]
    result = query(pair, TransactionQuery(search="A1", risk_level="all"))
    assert [t.from_account for t in result] == ["ACC-A1"]


def test_filters_are_and_combined(txs):
    q = TransactionQuery(search="acc", risk_level="MEDIUM")
    assert [t.id for t in query(txs, q)] == ["TXN-000002", "TXN-000004"]
    assert TransactionQuery(risk_level="high").risk_level == "HIGH"
    assert TransactionQuery(risk_level=RiskLevel.LOW).risk_level == "LOW"
    assert TransactionQuery(risk_level="").risk_level == "all"


def test_unknown_level_is_rejected():
    with pytest.raises(ValueError):
        TransactionQuery(risk_level="CRITICAL")


def test_default_sort_is_risk_score_desc_with_stable_ties(txs):
    assert [t.id for t in query(txs)] == ["TXN-000001", "TXN-000002", "TXN-000004", "TXN-000003"]


def test_numeric_sort_on_amount(txs):
    asc = query(txs, TransactionQuery(sort_key=SortKey.AMOUNT, direction=SortDirection.ASC))
    assert [str(t.amount) for t in asc] == ["75", "500", "500", "20000"]
    assert [t.id for t in asc][1:3] == ["TXN-000001", "TXN-000004"]


def test_risk_level_sorts_as_text_not_severity(txs):
    asc = query(txs, TransactionQuery(sort_key="risk_level", direction="asc"))
    assert [t.risk_level.value for t in asc] == ["HIGH", "LOW", "MEDIUM", "MEDIUM"]


def test_query_is_idempotent_and_pure(txs):
    q = TransactionQuery(search="acc", sort_key=SortKey.FROM_ACCOUNT)
    before = tuple(txs)
    assert query(txs, q) == query(txs, q)
    assert txs == before


def test_desc_is_reverse_of_asc_without_ties(txs):
    asc = query(txs, TransactionQuery(sort_key=SortKey.ID, direction=SortDirection.ASC))
    desc = query(txs, TransactionQuery(sort_key=SortKey.ID, direction=SortDirection.DESC))
    assert desc == tuple(reversed(asc))


def test_toggle_flips_active_key_and_resets_new_key():
    q = TransactionQuery()
    assert q.sort_key is SortKey.RISK_SCORE and q.direction is SortDirection.DESC

    flipped = q.toggled(SortKey.RISK_SCORE)
    assert flipped.direction is SortDirection.ASC
    assert flipped.toggled("risk_score").direction is SortDirection.DESC

    other = flipped.toggled("amount")
    assert other.sort_key is SortKey.AMOUNT
    assert other.direction is SortDirection.DESC


def test_related_transactions(txs):
    assert [t.id for t in related_transactions(txs, "ACC-A1")] == ["TXN-000001", "TXN-000003"]
    assert related_transactions(txs, "UNKNOWN") == ()


def test_paginate(txs):
    items, total = paginate(txs, page=2, page_size=3)
    assert total == 4
    assert [t.id for t in items] == ["TXN-000004"]
    assert paginate(txs, page=5, page_size=3) == ([], 4)
