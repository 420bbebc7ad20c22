"""
amlsentinel.domain

Modèle de données du cœur d’analyse AML (objets immuables) + règle de
quantification du risque + validation des enregistrements bruts.
"""

from amlsentinel.domain.models import (
    AccountEdge,
    AccountGraph,
    AccountNode,
    RiskAssessment,
    ScoringRequest,
    Transaction,
)
from amlsentinel.domain.risk import RiskLevel, TransactionStatus, quantize

__all__ = [
    "AccountEdge",
    "AccountGraph",
    "AccountNode",
    "RiskAssessment",
    "RiskLevel",
    "ScoringRequest",
    "Transaction",
    "TransactionStatus",
    "quantize",
]
