"""Shared pytest fixtures for the AML Sentinel tests."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest

from amlsentinel.core.settings import Settings
from amlsentinel.domain.models import RiskAssessment, ScoringRequest
from amlsentinel.scoring.base import RiskScorer
from amlsentinel.scoring.static import StaticRiskScorer
from amlsentinel.services.session import AnalysisSession


def make_settings(**overrides: Any) -> Settings:
    """Settings isolés du .env local, sans backoff (tests rapides)."""
    values: Dict[str, Any] = {
        "SCORING_BACKOFF_S": 0.0,
        "SCORING_TIMEOUT_S": 1.0,
        "SCORING_MAX_RETRIES": 2,
        "SCORING_CONCURRENCY": 4,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def run(coro):
    return asyncio.run(coro)


class FlakyScorer(RiskScorer):
    """Échoue sur les `failures` premiers appels, puis renvoie `score`."""

    name = "flaky"

    def __init__(self, failures: int, score: float = 0.5) -> None:
        self.failures = failures
        self.score_value = score
        self.calls = 0

    async def score(self, request: ScoringRequest) -> RiskAssessment:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("scorer unreachable")
        return RiskAssessment.build(self.score_value, ["LARGE_AMOUNT"])


class SlowScorer(RiskScorer):
    """Attend `delay` secondes avant de répondre (timeouts / annulation)."""

    name = "slow"

    def __init__(self, delay: float, score: float = 0.2) -> None:
        self.delay = delay
        self.score_value = score
        self.started = 0

    async def score(self, request: ScoringRequest) -> RiskAssessment:
        self.started += 1
        await asyncio.sleep(self.delay)
        return RiskAssessment.build(self.score_value)


@pytest.fixture
def cfg() -> Settings:
    return make_settings()


@pytest.fixture
def static_scorer() -> StaticRiskScorer:
    return StaticRiskScorer(
        0.1,
        by_account={"A": 0.85, "ACC-HIGH": 0.9, "ACC-MED": 0.55},
        reasons=["LARGE_AMOUNT"],
    )


@pytest.fixture
def session(static_scorer, cfg) -> AnalysisSession:
    return AnalysisSession(static_scorer, cfg=cfg)


@pytest.fixture
def sample_batch() -> List[Dict[str, Any]]:
    return [
        {"amount": "10000", "from_account": "ACC-HIGH", "to_account": "ACC-B1", "timestamp": "2026-03-01T10:00:00Z"},
        {"amount": "250.50", "from_account": "ACC-MED", "to_account": "ACC-HIGH", "timestamp": "2026-03-01T11:00:00Z"},
        {"amount": "75", "from_account": "ACC-C1", "to_account": "ACC-B1", "timestamp": "2026-03-01T12:00:00Z"},
        {"amount": "3000", "from_account": "ACC-HIGH", "to_account": "ACC-B1", "timestamp": "2026-03-01T13:00:00Z"},
    ]


def make_tx(
    seq: int,
    *,
    amount: str = "100",
    from_account: str = "A",
    to_account: str = "B",
    score: float = 0.1,
    hour: int = 12,
):
    """Transaction annotée construite directement (tests des vues pures)."""
    from datetime import datetime, timezone
    from decimal import Decimal

    from amlsentinel.domain.models import Transaction
    from amlsentinel.services.transaction_store import format_transaction_id

    request = ScoringRequest(
        amount=Decimal(amount),
        from_account=from_account,
        to_account=to_account,
        timestamp=datetime(2026, 3, 1, hour, seq % 60, tzinfo=timezone.utc),
    )
    return Transaction.from_assessment(format_transaction_id(seq), request, RiskAssessment.build(score, ["RULE"]))
