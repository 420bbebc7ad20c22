"""
amlsentinel.scoring

Implémentations du Risk Scorer (contrat : amlsentinel.scoring.base.RiskScorer).

- RulesRiskScorer : règles déterministes et explicables
- HybridRiskScorer : règles + modèle ML optionnel (max des deux)
- RemoteRiskScorer : service de scoring distant (HTTP)
- StaticRiskScorer : scores fixés à l’avance (double de test, démo)

build_scorer() choisit l’implémentation selon settings.SCORER_KIND.
"""

from amlsentinel.scoring.base import RiskScorer
from amlsentinel.scoring.factory import build_scorer
from amlsentinel.scoring.hybrid import HybridRiskScorer
from amlsentinel.scoring.remote import RemoteRiskScorer
from amlsentinel.scoring.rules import RulesRiskScorer
from amlsentinel.scoring.static import StaticRiskScorer

__all__ = [
    "HybridRiskScorer",
    "RemoteRiskScorer",
    "RiskScorer",
    "RulesRiskScorer",
    "StaticRiskScorer",
    "build_scorer",
]
