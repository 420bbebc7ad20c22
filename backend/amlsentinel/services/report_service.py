from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence, Tuple

from amlsentinel.domain.models import AccountGraph, Transaction
from amlsentinel.domain.risk import RiskLevel, TransactionStatus

"""
Report Service.

Rôle (fonctionnel) :
- Calcule la “vue agrégée” de la session (1 appel = 1 objet complet) :
  - compteurs (total, flaggées, par niveau)
  - score moyen, pourcentage de transactions flaggées
  - taille du graphe (comptes, arêtes suspectes)
- Assemble les données consommées par le collaborateur “rapport” (PDF hors périmètre) :
  résumé + snapshot des transactions + graphe.

Notes :
- Les comptes par niveau s’appuient sur risk_level déjà quantifié (pas de seuils ici).
- Session vide : moyennes et pourcentages à 0 (pas de division par zéro).
"""


@dataclass(frozen=True)
class SessionSummary:
    total_transactions: int
    flagged_count: int
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int
    average_risk_score: float
    risk_percentage: float
    account_count: int
    suspicious_edge_count: int


@dataclass(frozen=True)
class ReportData:
    """Vue lecture seule pour la génération de rapport."""
    summary: SessionSummary
    transactions: Tuple[Transaction, ...]
    graph: AccountGraph
    generated_at: datetime


def summarize(transactions: Sequence[Transaction], graph: AccountGraph) -> SessionSummary:
    total = len(transactions)
    by_level = {level: 0 for level in RiskLevel}
    flagged = 0
    score_sum = 0.0

    for tx in transactions:
        by_level[tx.risk_level] += 1
        score_sum += tx.risk_score
        if tx.status is TransactionStatus.FLAGGED:
            flagged += 1

    return SessionSummary(
        total_transactions=total,
        flagged_count=flagged,
        high_risk_count=by_level[RiskLevel.HIGH],
        medium_risk_count=by_level[RiskLevel.MEDIUM],
        low_risk_count=by_level[RiskLevel.LOW],
        average_risk_score=round(score_sum / total, 4) if total else 0.0,
        risk_percentage=round(flagged / total * 100, 1) if total else 0.0,
        account_count=len(graph.nodes),
        suspicious_edge_count=graph.suspicious_edge_count,
    )


def build_report_data(transactions: Sequence[Transaction], graph: AccountGraph) -> ReportData:
    snapshot = tuple(transactions)
    return ReportData(
        summary=summarize(snapshot, graph),
        transactions=snapshot,
        graph=graph,
        generated_at=datetime.now(timezone.utc),
    )
