from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from amlsentinel.domain.risk import RiskLevel, TransactionStatus
from amlsentinel.schemas.graph import GraphOut

"""
Schemas Transactions (Pydantic).

Rôle (fonctionnel) :
- Upload : batch d’enregistrements bruts (mapping colonne -> valeur, issus du parsing CSV).
  La validation métier (montant, comptes, timestamp) est faite par le cœur : elle
  renvoie l’index et le champ fautifs pour chaque enregistrement.
- Liste paginée (filtre + tri) et détail d’une transaction.

Notes :
- extra="forbid" sur les payloads d’entrée : contrat strict.
- Les enregistrements eux-mêmes acceptent des colonnes supplémentaires (CSV libre).
"""


class UploadRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    records: List[Dict[str, Any]] = Field(..., max_length=50_000)
    replace: bool = False


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Decimal
    from_account: str
    to_account: str
    timestamp: datetime
    risk_score: float
    risk_level: RiskLevel
    reason_codes: List[str]
    status: TransactionStatus
    transaction_type: str
    explanation: str


class UploadResponse(BaseModel):
    added: List[TransactionOut]
    total: int
    graph: GraphOut


class PageMeta(BaseModel):
    page: int
    page_size: int
    total: int


class QueryEcho(BaseModel):
    """Paramètres effectivement appliqués (après normalisation)."""
    search: str
    risk_level: str
    sort: str
    direction: str


class TransactionListResponse(BaseModel):
    data: List[TransactionOut]
    meta: PageMeta
    query: QueryEcho


class ClearResponse(BaseModel):
    cleared: bool
    total: int
