from __future__ import annotations

from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from amlsentinel.domain.models import AccountGraph
from amlsentinel.domain.risk import RiskLevel

"""
Schemas Graph (Pydantic).

Rôle (fonctionnel) :
- Sérialise le graphe de comptes pour la vue réseau.
- Les arêtes exposent "from" / "to" (mots réservés en Python : champs source / target
  côté code, alias en sortie).
"""


class AccountNodeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    risk_level: RiskLevel
    total_volume: Decimal
    account_type: str
    tx_count: int
    total_sent: Decimal
    total_received: Decimal


class AccountEdgeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_id: str
    source: str = Field(serialization_alias="from")
    target: str = Field(serialization_alias="to")
    amount: Decimal
    suspicious: bool


class GraphOut(BaseModel):
    nodes: List[AccountNodeOut]
    edges: List[AccountEdgeOut]

    @classmethod
    def from_graph(cls, graph: AccountGraph) -> "GraphOut":
        return cls(
            nodes=[AccountNodeOut.model_validate(n) for n in graph.nodes.values()],
            edges=[AccountEdgeOut.model_validate(e) for e in graph.edges],
        )
