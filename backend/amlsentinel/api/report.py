from __future__ import annotations

from fastapi import APIRouter, Depends

from amlsentinel.api.deps import get_session
from amlsentinel.schemas.graph import GraphOut
from amlsentinel.schemas.report import ReportOut, SummaryOut
from amlsentinel.schemas.transactions import TransactionOut
from amlsentinel.services.session import AnalysisSession

"""
API Report.

Rôle (fonctionnel) :
- /summary : KPI de la session (dashboard).
- /report : données complètes consommées par le générateur de rapport (PDF hors périmètre).
"""

router = APIRouter(tags=["report"])


@router.get("/summary", response_model=SummaryOut)
async def summary(session: AnalysisSession = Depends(get_session)):
    return SummaryOut.model_validate(session.summary())


@router.get("/report", response_model=ReportOut)
async def report(session: AnalysisSession = Depends(get_session)):
    data = session.report_data()
    return ReportOut(
        generated_at=data.generated_at,
        summary=SummaryOut.model_validate(data.summary),
        transactions=[TransactionOut.model_validate(tx) for tx in data.transactions],
        graph=GraphOut.from_graph(data.graph),
    )
