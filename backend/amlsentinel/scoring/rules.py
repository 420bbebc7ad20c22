from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from amlsentinel.domain.models import RiskAssessment, ScoringRequest
from amlsentinel.domain.risk import quantize
from amlsentinel.scoring.base import RiskScorer

"""
Rules Risk Scorer.

Rôle (fonctionnel) :
- Calcule un score de risque 0..1 à partir des features (FeatureBuilder) par règles lisibles.
- Produit des reason codes courts (LARGE_AMOUNT, STRUCTURING…) + une explication.

Objectif :
- Avoir une baseline déterministe et interprétable, même sans modèle ML.
- Servir de socle au HybridRiskScorer (le ML ne peut que relever ce score).
"""

REASON_LABELS = {
    "LARGE_AMOUNT": "large amount",
    "STRUCTURING": "amount just under the reporting threshold",
    "ROUND_AMOUNT": "round amount",
    "UNUSUAL_TIME": "unusual time of day",
    "NEW_RECIPIENT": "new recipient for this sender",
    "HIGH_VELOCITY": "rapid succession of transfers",
    "UNUSUAL_AMOUNT": "amount far above the sender's average",
    "CROSS_BORDER": "cross-border transfer",
    "MODEL_ANOMALY": "anomalous pattern detected by the model",
}

CROSS_BORDER_TYPES = ("international", "wire", "cross_border", "swift")


def explain(level: str, reasons: Tuple[str, ...] | List[str]) -> str:
    """Phrase lisible pour l’UI / le rapport."""
    base = f"This transaction has a {level.lower()} risk profile"
    if not reasons:
        return base + " based on amount, timing, and recipient analysis."
    labels = [REASON_LABELS.get(r, r.lower().replace("_", " ")) for r in reasons]
    return base + " due to: " + ", ".join(labels) + "."


class RulesRiskScorer(RiskScorer):
    """Scoring déterministe par règles, configurable (seuils injectables pour tests)."""

    name = "rules"

    def __init__(
        self,
        *,
        large_amount: float = 10_000.0,
        very_large_amount: float = 50_000.0,
        cross_border_types: Tuple[str, ...] = CROSS_BORDER_TYPES,
        max_reasons: int = 5,
    ) -> None:
        self.large_amount = large_amount
        self.very_large_amount = very_large_amount
        self.cross_border_types = tuple(t.lower() for t in cross_border_types)
        self.max_reasons = max_reasons

    def apply_rules(self, f: Mapping[str, Any]) -> Tuple[float, List[str]]:
        """Retourne (score 0..1, reason codes)."""
        score = 0.05
        reasons: List[str] = []

        amount = float(f.get("amount") or 0.0)
        hour = int(f.get("hour") or 0)
        count_24h = int(f.get("sender_tx_count_24h") or 0)
        avg_7d = f.get("sender_avg_amount_7d")
        tx_type = str(f.get("transaction_type") or "").lower()

        # 1) Montant (paliers)
        if amount >= self.very_large_amount:
            score += 0.5
            reasons.append("LARGE_AMOUNT")
        elif amount >= self.large_amount:
            score += 0.35
            reasons.append("LARGE_AMOUNT")
        elif f.get("is_near_threshold"):
            score += 0.3
            reasons.append("STRUCTURING")

        # 2) Montant rond
        if f.get("is_round_amount"):
            score += 0.1
            reasons.append("ROUND_AMOUNT")

        # 3) Heure atypique (nuit UTC)
        if hour <= 5:
            score += 0.15
            reasons.append("UNUSUAL_TIME")

        # 4) Vélocité de l’expéditeur (24h)
        if count_24h >= 5:
            score += 0.2
            reasons.append("HIGH_VELOCITY")
        elif count_24h >= 3:
            score += 0.1
            reasons.append("HIGH_VELOCITY")

        # 5) Montant vs habitude de l’expéditeur (7j)
        if avg_7d is not None and float(avg_7d) > 0 and amount >= 3.0 * float(avg_7d):
            score += 0.15
            reasons.append("UNUSUAL_AMOUNT")

        # 6) Nouveau bénéficiaire
        if f.get("is_new_recipient"):
            score += 0.1
            reasons.append("NEW_RECIPIENT")

        # 7) Transfrontalier
        if tx_type in self.cross_border_types:
            score += 0.15
            reasons.append("CROSS_BORDER")

        score = max(0.0, min(1.0, round(score, 4)))
        return score, reasons[: self.max_reasons]

    def assess_features(self, features: Dict[str, Any]) -> RiskAssessment:
        score, reasons = self.apply_rules(features)
        return RiskAssessment.build(score, reasons, explain(quantize(score).value, reasons))

    async def score(self, request: ScoringRequest) -> RiskAssessment:
        return self.assess_features(dict(request.features))
