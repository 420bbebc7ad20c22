from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Query, Request

from amlsentinel.api.deps import DemoAuthDep, get_session
from amlsentinel.core.errors import AppHTTPException
from amlsentinel.schemas.graph import GraphOut
from amlsentinel.schemas.transactions import (
    ClearResponse,
    PageMeta,
    QueryEcho,
    TransactionListResponse,
    TransactionOut,
    UploadRequest,
    UploadResponse,
)
from amlsentinel.services.csv_records import parse_csv
from amlsentinel.services.query_engine import SortDirection, SortKey, TransactionQuery, paginate
from amlsentinel.services.session import AnalysisSession, UploadResult

"""
API Transactions.

Rôle (fonctionnel) :
- Upload d’un batch (validation + scoring + graphe) : tout ou rien.
  JSON (enregistrements déjà parsés) ou CSV brut.
- Liste filtrée / triée / paginée (vue tableau).
- Détail d’une transaction.
- Vidage de la session (refusé pendant une ingestion).

Notes :
- Les erreurs du cœur (ValidationError, ScoringUnavailable, IngestionInProgress)
  remontent sans être interceptées : les handlers de main.py produisent le payload standard.
"""

router = APIRouter(prefix="/transactions", tags=["transactions"])
log = logging.getLogger("amlsentinel.transactions")


def _upload_response(result: UploadResult) -> UploadResponse:
    return UploadResponse(
        added=[TransactionOut.model_validate(tx) for tx in result.added],
        total=len(result.transactions),
        graph=GraphOut.from_graph(result.graph),
    )


@router.post("/upload", response_model=UploadResponse, dependencies=[DemoAuthDep])
async def upload_transactions(payload: UploadRequest, session: AnalysisSession = Depends(get_session)):
    result = await session.upload(payload.records, replace=payload.replace)
    return _upload_response(result)


@router.post("/upload/csv", response_model=UploadResponse, dependencies=[DemoAuthDep])
async def upload_csv(
    request: Request,
    replace: bool = Query(False),
    session: AnalysisSession = Depends(get_session),
):
    """Corps brut text/csv (export tableur), même pipeline que /upload."""
    raw = await request.body()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise AppHTTPException(400, "BAD_ENCODING", "Le CSV doit être encodé en UTF-8") from exc

    # pandas est bloquant : parsing hors de la boucle asyncio
    records = await asyncio.to_thread(parse_csv, text)
    result = await session.upload(records, replace=replace)
    return _upload_response(result)


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    session: AnalysisSession = Depends(get_session),
    search: str = Query("", max_length=128),
    risk_level: str = Query("all", pattern=r"^(?i:all|high|medium|low)$"),
    sort: SortKey = SortKey.RISK_SCORE,
    direction: SortDirection = SortDirection.DESC,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
):
    q = TransactionQuery(search=search, risk_level=risk_level, sort_key=sort, direction=direction)
    items, total = paginate(session.query(q), page=page, page_size=page_size)

    return TransactionListResponse(
        data=[TransactionOut.model_validate(tx) for tx in items],
        meta=PageMeta(page=page, page_size=page_size, total=total),
        query=QueryEcho(search=q.search, risk_level=q.risk_level, sort=q.sort_key.value, direction=q.direction.value),
    )


@router.get("/{transaction_id}", response_model=TransactionOut)
async def get_transaction(transaction_id: str, session: AnalysisSession = Depends(get_session)):
    tx = session.get_transaction(transaction_id)
    if tx is None:
        raise AppHTTPException(404, "NOT_FOUND", "Transaction introuvable")
    return TransactionOut.model_validate(tx)


@router.delete("", response_model=ClearResponse, dependencies=[DemoAuthDep])
async def clear_transactions(session: AnalysisSession = Depends(get_session)):
    session.clear()
    log.info("session cleared")
    return ClearResponse(cleared=True, total=len(session.transactions()))
