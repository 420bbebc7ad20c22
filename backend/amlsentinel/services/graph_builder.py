from __future__ import annotations

import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence

import networkx as nx

from amlsentinel.domain.models import AccountEdge, AccountGraph, AccountNode, Transaction
from amlsentinel.domain.risk import RiskLevel, max_level

"""
Graph Builder.

Rôle (fonctionnel) :
- Dérive le graphe de comptes à partir des transactions du store :
  - nœuds = comptes (expéditeurs + destinataires)
  - arêtes = transactions (1 arête par transaction : multigraphe orienté)
- Reconstruction complète à chaque changement du store : le graphe est une vue
  matérialisée, sans état propre à synchroniser.

Agrégats par compte :
- total_volume : somme des montants entrants + sortants (une transaction comptée une fois,
  y compris un self-transfer)
- risk_level : sévérité max des transactions touchant le compte (HIGH > MEDIUM > LOW)
- tx_count, total_sent, total_received
- account_type : registre de comptes optionnel, sinon type par défaut

Hors périmètre : positions / rendu (présentation).
"""

log = logging.getLogger("amlsentinel.graph")

ZERO = Decimal("0")


def build_multigraph(transactions: Sequence[Transaction]) -> nx.MultiDiGraph:
    """MultiDiGraph networkx : une arête par transaction, clé = id de transaction."""
    G = nx.MultiDiGraph()
    for tx in transactions:
        G.add_edge(
            tx.from_account,
            tx.to_account,
            key=tx.id,
            amount=tx.amount,
            risk_level=tx.risk_level,
            suspicious=tx.risk_level is RiskLevel.HIGH,
        )
    return G


def _touching(G: nx.MultiDiGraph, account: str) -> Dict[str, Dict[str, Any]]:
    """Arêtes entrantes + sortantes d’un compte, dédoublonnées par clé (self-loop)."""
    out: Dict[str, Dict[str, Any]] = {}
    for _, _, key, data in G.out_edges(account, keys=True, data=True):
        out[key] = data
    for _, _, key, data in G.in_edges(account, keys=True, data=True):
        out[key] = data
    return out


class GraphBuilder:
    def __init__(
        self,
        *,
        default_account_type: str = "Standard",
        account_types: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.default_account_type = default_account_type
        self.account_types = dict(account_types or {})

    def account_type(self, account_id: str) -> str:
        return self.account_types.get(account_id, self.default_account_type)

    def build(self, transactions: Sequence[Transaction]) -> AccountGraph:
        G = build_multigraph(transactions)

        edges = tuple(
            AccountEdge(
                transaction_id=key,
                source=u,
                target=v,
                amount=data["amount"],
                suspicious=data["suspicious"],
            )
            for u, v, key, data in G.edges(keys=True, data=True)
        )
        # G.edges regroupe par nœud source : on remet l’ordre d’insertion du store
        order = {tx.id: i for i, tx in enumerate(transactions)}
        edges = tuple(sorted(edges, key=lambda e: order[e.transaction_id]))

        nodes: Dict[str, AccountNode] = {}
        for account in G.nodes():
            touching = _touching(G, account)
            nodes[account] = AccountNode(
                id=account,
                risk_level=max_level(d["risk_level"] for d in touching.values()),
                total_volume=sum((d["amount"] for d in touching.values()), ZERO),
                account_type=self.account_type(account),
                tx_count=len(touching),
                total_sent=sum((d["amount"] for _, _, d in G.out_edges(account, data=True)), ZERO),
                total_received=sum((d["amount"] for _, _, d in G.in_edges(account, data=True)), ZERO),
            )

        log.debug("graph rebuilt", extra={"node_count": len(nodes), "edge_count": len(edges)})
        return AccountGraph(nodes=MappingProxyType(nodes), edges=edges)
