from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from amlsentinel.domain.models import RiskAssessment, ScoringRequest
from amlsentinel.domain.risk import quantize
from amlsentinel.ml.inference import infer_probability
from amlsentinel.scoring.base import RiskScorer
from amlsentinel.scoring.rules import RulesRiskScorer, explain

"""
Hybrid Risk Scorer (règles + ML optionnel).

Principe de fusion :
- Les règles servent de baseline compréhensible (reason codes lisibles).
- Si un modèle est disponible : final_score = max(score_règles, score_ML)
  -> le ML ne “désamorce” jamais un signal détecté par les règles.
- Si le ML domine, le code MODEL_ANOMALY est ajouté en tête des raisons.

Mode dégradé :
- Pas de modèle, ou erreur d’inférence : règles seules (erreur loggée).
"""

log = logging.getLogger("amlsentinel.scoring")


class HybridRiskScorer(RiskScorer):
    name = "hybrid"

    def __init__(self, rules: RulesRiskScorer | None = None, *, models_dir: Optional[Path] = None) -> None:
        self.rules = rules or RulesRiskScorer()
        self.models_dir = models_dir
        self.model_version: str | None = None

    async def score(self, request: ScoringRequest) -> RiskAssessment:
        features = dict(request.features)
        rules_score, reasons = self.rules.apply_rules(features)
        final_score = rules_score

        try:
            # joblib.load + inférence sont bloquants : hors de la boucle asyncio
            ml = await asyncio.to_thread(infer_probability, features, models_dir=self.models_dir)
        except Exception:
            log.warning("ML inference failed, falling back to rules", exc_info=True, extra={"scorer": self.name})
            ml = None

        self.model_version = ml.model_version if ml is not None else None
        if ml is not None and ml.probability > rules_score:
            final_score = ml.probability
            reasons = ["MODEL_ANOMALY"] + reasons

        reasons = reasons[: self.rules.max_reasons]
        return RiskAssessment.build(final_score, reasons, explain(quantize(final_score).value, reasons))
