import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from amlsentinel.core.errors import ScoringUnavailable
from amlsentinel.domain.models import RiskAssessment, ScoringRequest
from amlsentinel.domain.risk import RiskLevel
from amlsentinel.scoring.base import RiskScorer
from amlsentinel.services.scoring_gateway import ScoringGateway

from conftest import FlakyScorer, SlowScorer, run

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _req(sender="A", amount="100"):
    return ScoringRequest(amount=Decimal(amount), from_account=sender, to_account="B", timestamp=T0)


class RawScoreScorer(RiskScorer):
    """Renvoie un objet arbitraire (contournement de RiskAssessment.build)."""

    name = "raw"

    def __init__(self, result):
        self.result = result

    async def score(self, request):
        return self.result


class TrackingScorer(RiskScorer):
    """Mesure la concurrence ; les premiers enregistrements terminent en dernier."""

    name = "tracking"

    def __init__(self, total):
        self.total = total
        self.in_flight = 0
        self.max_in_flight = 0

    async def score(self, request):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        index = int(request.from_account)
        await asyncio.sleep(0.002 * (self.total - index))
        self.in_flight -= 1
        return RiskAssessment.build(index / 100)


def test_retries_then_succeeds():
    scorer = FlakyScorer(failures=2, score=0.8)
    gw = ScoringGateway(scorer, max_retries=2, backoff_s=0)

    a = run(gw.assess(_req()))

    assert scorer.calls == 3
    assert a.risk_level is RiskLevel.HIGH


def test_exhausted_retries_raise_scoring_unavailable():
    scorer = FlakyScorer(failures=10)
    gw = ScoringGateway(scorer, max_retries=1, backoff_s=0)

    with pytest.raises(ScoringUnavailable) as ei:
        run(gw.assess(_req(), index=4))

    assert scorer.calls == 2
    assert ei.value.index == 4
    assert ei.value.attempts == 2
    assert isinstance(ei.value.__cause__, ConnectionError)


def test_timeout_counts_as_failed_attempt():
    gw = ScoringGateway(SlowScorer(delay=1.0), timeout_s=0.01, max_retries=0, backoff_s=0)

    with pytest.raises(ScoringUnavailable) as ei:
        run(gw.assess(_req()))
    assert ei.value.attempts == 1


@pytest.mark.parametrize("result", [RiskAssessment.build(0.2), None])
def test_non_assessment_results_are_rejected_or_renormalized(result):
    gw = ScoringGateway(RawScoreScorer(result), max_retries=0, backoff_s=0)
    if result is None:
        with pytest.raises(ScoringUnavailable):
            run(gw.assess(_req()))
    else:
        assert run(gw.assess(_req())).risk_score == 0.2


def test_out_of_range_score_is_scoring_failure():
    class OutOfRange(RiskScorer):
        name = "oor"

        async def score(self, request):
            return RiskAssessment.build(1.5)

    with pytest.raises(ScoringUnavailable):
        run(ScoringGateway(OutOfRange(), max_retries=1, backoff_s=0).assess(_req()))


def test_batch_results_follow_input_order_and_bounded_concurrency():
    total = 8
    scorer = TrackingScorer(total)
    gw = ScoringGateway(scorer, concurrency=3, backoff_s=0)

    results = run(gw.assess_batch([_req(sender=str(i)) for i in range(total)]))

    assert [r.risk_score for r in results] == [i / 100 for i in range(total)]
    assert 1 <= scorer.max_in_flight <= 3


def test_batch_failure_cancels_remaining_calls():
    class FailFirst(RiskScorer):
        name = "fail-first"

        def __init__(self):
            self.finished = 0

        async def score(self, request):
            if request.from_account == "0":
                raise RuntimeError("boom")
            await asyncio.sleep(0.5)
            self.finished += 1
            return RiskAssessment.build(0.1)

    scorer = FailFirst()
    gw = ScoringGateway(scorer, max_retries=0, backoff_s=0, concurrency=4)

    with pytest.raises(ScoringUnavailable) as ei:
        run(gw.assess_batch([_req(sender=str(i)) for i in range(4)]))

    assert ei.value.index == 0
    assert scorer.finished == 0


def test_empty_batch():
    assert run(ScoringGateway(SlowScorer(0)).assess_batch([])) == []
