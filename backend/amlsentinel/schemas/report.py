from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict

from amlsentinel.schemas.graph import GraphOut
from amlsentinel.schemas.transactions import TransactionOut

"""
Schemas Report (Pydantic).

Rôle (fonctionnel) :
- Résumé de session (KPI du dashboard / page de garde du rapport).
- Données complètes pour le collaborateur “rapport” : résumé + transactions + graphe.
"""


class SummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    total_transactions: int
    flagged_count: int
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int
    average_risk_score: float
    risk_percentage: float
    account_count: int
    suspicious_edge_count: int


class ReportOut(BaseModel):
    generated_at: datetime
    summary: SummaryOut
    transactions: List[TransactionOut]
    graph: GraphOut
