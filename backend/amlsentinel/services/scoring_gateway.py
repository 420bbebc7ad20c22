from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from amlsentinel.core.errors import ScoringUnavailable
from amlsentinel.core.settings import Settings
from amlsentinel.domain.models import RiskAssessment, ScoringRequest
from amlsentinel.scoring.base import RiskScorer

"""
Scoring Gateway.

Rôle (fonctionnel) :
- Point d’appel unique du Risk Scorer pour le cœur (ingestion ET simulation).
- Applique la politique d’appel :
  - timeout par tentative
  - retries bornés avec backoff exponentiel
  - au-delà : ScoringUnavailable (distinct de ValidationError : l’appelant peut
    relancer sans corriger ses données)
- Re-normalise chaque évaluation (score borné, niveau recalculé, raisons dédoublonnées)
  quelle que soit l’implémentation du scorer.
- Score un batch en concurrence bornée (Semaphore) et restitue les résultats
  dans l’ordre d’entrée, indépendamment de l’ordre de complétion.

Annulation :
- Au premier échec (ou si l’appelant est annulé), les appels restants du batch
  sont annulés : aucun résultat partiel ne sort du gateway.
"""

log = logging.getLogger("amlsentinel.scoring")


class ScoringGateway:
    def __init__(
        self,
        scorer: RiskScorer,
        *,
        timeout_s: float = 5.0,
        max_retries: int = 2,
        backoff_s: float = 0.25,
        concurrency: int = 8,
    ) -> None:
        self.scorer = scorer
        self.timeout_s = timeout_s
        self.max_retries = max(0, int(max_retries))
        self.backoff_s = max(0.0, backoff_s)
        self.concurrency = max(1, int(concurrency))

    @classmethod
    def from_settings(cls, scorer: RiskScorer, cfg: Settings) -> "ScoringGateway":
        return cls(
            scorer,
            timeout_s=cfg.SCORING_TIMEOUT_S,
            max_retries=cfg.SCORING_MAX_RETRIES,
            backoff_s=cfg.SCORING_BACKOFF_S,
            concurrency=cfg.SCORING_CONCURRENCY,
        )

    @staticmethod
    def _normalize(result: object) -> RiskAssessment:
        if not isinstance(result, RiskAssessment):
            raise TypeError(f"le scorer doit renvoyer un RiskAssessment, reçu {type(result).__name__}")
        return RiskAssessment.build(result.risk_score, result.reason_codes, result.explanation)

    async def assess(self, request: ScoringRequest, *, index: Optional[int] = None) -> RiskAssessment:
        """Score une transaction (retries + timeout). Lève ScoringUnavailable."""
        attempts = self.max_retries + 1
        last_exc: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                result = await asyncio.wait_for(self.scorer.score(request), timeout=self.timeout_s)
                return self._normalize(result)
            except Exception as exc:
                last_exc = exc
                log.warning(
                    "scoring attempt failed: %s",
                    exc.__class__.__name__,
                    extra={"record_index": index, "attempt": attempt, "scorer": self.scorer.name},
                )
                if attempt < attempts and self.backoff_s:
                    await asyncio.sleep(self.backoff_s * (2 ** (attempt - 1)))

        where = f" (enregistrement #{index})" if index is not None else ""
        raise ScoringUnavailable(
            f"Scorer indisponible après {attempts} tentative(s){where}: {last_exc!r}",
            index=index,
            attempts=attempts,
        ) from last_exc

    async def assess_batch(self, requests: Sequence[ScoringRequest]) -> List[RiskAssessment]:
        """Score un batch en concurrence bornée ; résultats dans l’ordre d’entrée."""
        if not requests:
            return []

        sem = asyncio.Semaphore(self.concurrency)

        async def _one(i: int, req: ScoringRequest) -> RiskAssessment:
            async with sem:
                return await self.assess(req, index=i)

        tasks = [asyncio.create_task(_one(i, req)) for i, req in enumerate(requests)]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
