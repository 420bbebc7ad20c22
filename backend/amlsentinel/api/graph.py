from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from amlsentinel.api.deps import get_session
from amlsentinel.schemas.graph import GraphOut
from amlsentinel.schemas.transactions import TransactionOut
from amlsentinel.services.session import AnalysisSession

"""
API Graph.

Rôle (fonctionnel) :
- Graphe de comptes (nœuds + arêtes) pour la vue réseau.
- Transactions liées à un compte (clic sur un nœud) : liste vide si le compte est inconnu.
"""

router = APIRouter(prefix="/graph", tags=["graph"])


@router.get("", response_model=GraphOut)
async def get_graph(session: AnalysisSession = Depends(get_session)):
    return GraphOut.from_graph(session.graph())


@router.get("/accounts/{account_id}/transactions", response_model=List[TransactionOut])
async def account_transactions(account_id: str, session: AnalysisSession = Depends(get_session)):
    return [TransactionOut.model_validate(tx) for tx in session.related(account_id)]
