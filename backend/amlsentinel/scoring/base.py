from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from amlsentinel.domain.models import RiskAssessment, ScoringRequest

"""
Contrat Risk Scorer.

Rôle (fonctionnel) :
- Une seule opération : score(request) -> RiskAssessment.
- Le scorer est une boîte noire (règles, modèle, service distant, stub de test).

Ce que le cœur exige (et vérifie dans ScoringGateway) :
- risk_score dans [0, 1] (le déterminisme n’est pas exigé).
- Le niveau est recalculé par le cœur à partir du score : le niveau “propre” au scorer est ignoré.
- Les erreurs (timeout, réseau, contrat) sont des exceptions : le gateway retente puis
  lève ScoringUnavailable.
"""


class RiskScorer(ABC):
    """Interface commune aux scorers (async : un scorer peut attendre le réseau)."""

    name: str = "scorer"
    # Version du modèle ayant servi au dernier score (None : pas de modèle ML)
    model_version: Optional[str] = None

    @abstractmethod
    async def score(self, request: ScoringRequest) -> RiskAssessment:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Libère les ressources éventuelles (client HTTP…)."""
        return None
