from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence

from amlsentinel.domain.models import RiskAssessment, ScoringRequest
from amlsentinel.scoring.base import RiskScorer

"""
Static Risk Scorer.

Rôle (fonctionnel) :
- Scorer déterministe : le score dépend uniquement de l’expéditeur (table fournie),
  sinon du score par défaut.
- Sert de double de test (invariants du cœur vérifiables sans modèle)
  et de scorer de démonstration.
"""


class StaticRiskScorer(RiskScorer):
    name = "static"

    def __init__(
        self,
        default: float = 0.1,
        *,
        by_account: Optional[Mapping[str, float]] = None,
        reasons: Sequence[str] = (),
    ) -> None:
        self.default = default
        self.by_account: Dict[str, float] = dict(by_account or {})
        self.reasons = tuple(reasons)
        self.calls = 0

    async def score(self, request: ScoringRequest) -> RiskAssessment:
        self.calls += 1
        value = self.by_account.get(request.from_account, self.default)
        return RiskAssessment.build(value, self.reasons)
