import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from amlsentinel.core.errors import IngestionInProgress, ScoringUnavailable, ValidationError
from amlsentinel.domain.risk import RiskLevel, TransactionStatus, quantize
from amlsentinel.domain.validation import validate_batch
from amlsentinel.services.query_engine import SortDirection, SortKey, TransactionQuery, query
from amlsentinel.services.scoring_gateway import ScoringGateway
from amlsentinel.services.transaction_store import TransactionStore, format_transaction_id

from conftest import FlakyScorer, SlowScorer, run

FIXED_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def _store(scorer, **kwargs):
    gw = ScoringGateway(scorer, timeout_s=2.0, max_retries=1, backoff_s=0, concurrency=4)
    return TransactionStore(gw, clock=lambda: FIXED_NOW, **kwargs)


def test_format_transaction_id():
    assert format_transaction_id(1) == "TXN-000001"
    assert format_transaction_id(123456) == "TXN-123456"


def test_ingest_appends_in_order_with_consistent_levels(static_scorer, sample_batch):
    store = _store(static_scorer)

    added = run(store.ingest(sample_batch))

    assert [tx.id for tx in added] == ["TXN-000001", "TXN-000002", "TXN-000003", "TXN-000004"]
    assert [tx.from_account for tx in added] == [r["from_account"] for r in sample_batch]
    assert store.all() == added
    for tx in added:
        assert tx.risk_level is quantize(tx.risk_score)
    assert added[0].risk_level is RiskLevel.HIGH
    assert added[0].status is TransactionStatus.FLAGGED
    assert added[2].status is TransactionStatus.PENDING
    assert store.get("TXN-000002") is added[1]
    assert store.get("TXN-999999") is None


def test_ids_continue_across_batches(static_scorer, sample_batch):
    store = _store(static_scorer)
    run(store.ingest(sample_batch[:2]))
    second = run(store.ingest(sample_batch[2:]))

    assert [tx.id for tx in second] == ["TXN-000003", "TXN-000004"]
    assert len(store) == 4


def test_missing_timestamp_uses_ingestion_time(static_scorer):
    store = _store(static_scorer)
    (tx,) = run(store.ingest([{"amount": "5", "from_account": "X", "to_account": "Y"}]))
    assert tx.timestamp == FIXED_NOW


def test_invalid_batch_leaves_store_unchanged(static_scorer, sample_batch):
    store = _store(static_scorer)
    run(store.ingest(sample_batch[:1]))
    version = store.version

    bad = sample_batch[1:] + [{"amount": "-5", "from_account": "A", "to_account": "B"}]
    with pytest.raises(ValidationError) as ei:
        run(store.ingest(bad))

    assert ei.value.record_indexes == [3]
    assert len(store) == 1
    assert store.version == version
    assert static_scorer.calls == 1


def test_scoring_failure_leaves_store_unchanged_and_burns_no_id(sample_batch):
    store = _store(FlakyScorer(failures=100))

    with pytest.raises(ScoringUnavailable):
        run(store.ingest(sample_batch))
    assert store.all() == ()
    assert not store.ingesting

    store.gateway.scorer = FlakyScorer(failures=0, score=0.1)
    (tx,) = run(store.ingest(sample_batch[:1]))
    assert tx.id == "TXN-000001"


def test_cancelled_ingest_commits_nothing(sample_batch):
    store = _store(SlowScorer(delay=1.0))

    async def scenario():
        task = asyncio.create_task(store.ingest(sample_batch))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    run(scenario())
    assert store.all() == ()
    assert not store.ingesting


def test_clear_is_rejected_while_ingesting(sample_batch):
    store = _store(SlowScorer(delay=0.05))

    async def scenario():
        task = asyncio.create_task(store.ingest(sample_batch))
        await asyncio.sleep(0)
        assert store.ingesting
        with pytest.raises(IngestionInProgress):
            store.clear()
        await task

    run(scenario())
    assert len(store) == len(sample_batch)

    store.clear()
    assert store.all() == ()
    assert store.get("TXN-000001") is None


def test_clear_restarts_numbering(static_scorer, sample_batch):
    store = _store(static_scorer)
    run(store.ingest(sample_batch))
    store.clear()

    (tx,) = run(store.ingest(sample_batch[:1]))
    assert tx.id == "TXN-000001"


def test_replace_swaps_contents(static_scorer, sample_batch):
    store = _store(static_scorer)
    run(store.ingest(sample_batch))

    added = run(store.ingest(sample_batch[2:3], replace=True))

    assert [tx.id for tx in added] == ["TXN-000001"]
    assert store.all() == added
    assert store.get("TXN-000004") is None


def test_failed_replace_keeps_previous_contents(static_scorer, sample_batch):
    store = _store(static_scorer)
    run(store.ingest(sample_batch))

    with pytest.raises(ValidationError):
        run(store.ingest([{"amount": "x", "from_account": "A", "to_account": "B"}], replace=True))
    assert len(store) == len(sample_batch)


def test_snapshots_are_not_affected_by_later_ingests(static_scorer, sample_batch):
    store = _store(static_scorer)
    run(store.ingest(sample_batch[:2]))
    snapshot = store.all()

    run(store.ingest(sample_batch[2:]))

    assert len(snapshot) == 2
    assert isinstance(snapshot, tuple)
    assert len(store.all()) == 4


def test_features_see_previous_records_of_the_same_batch(static_scorer):
    store = _store(static_scorer)
    batch = [
        {"amount": "100", "from_account": "S", "to_account": "R1", "timestamp": "2026-03-01T10:00:00Z"},
        {"amount": "100", "from_account": "S", "to_account": "R2", "timestamp": "2026-03-01T10:05:00Z"},
    ]
    records = store._prepare(validate_batch(batch), ())

    assert records[0].features["sender_tx_count_24h"] == 0
    assert records[1].features["sender_tx_count_24h"] == 1
    assert records[1].features["is_new_recipient"] is True


def test_huge_amount_is_ingested(static_scorer):
    store = _store(static_scorer)
    (tx,) = run(store.ingest([{"amount": "1e31", "from_account": "A", "to_account": "B"}]))
    assert tx.amount == Decimal("1e31")


def test_timestamp_sort_follows_instants_across_offsets(static_scorer):
    store = _store(static_scorer)
    run(
        store.ingest(
            [
                {"amount": "1", "from_account": "A", "to_account": "B", "timestamp": "2026-03-01T10:00:00+05:00"},
                {"amount": "1", "from_account": "C", "to_account": "D", "timestamp": "2026-03-01T06:00:00Z"},
            ]
        )
    )
    ordered = query(store.all(), TransactionQuery(sort_key=SortKey.TIMESTAMP, direction=SortDirection.ASC))
    assert [tx.id for tx in ordered] == ["TXN-000001", "TXN-000002"]
