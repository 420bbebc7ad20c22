from __future__ import annotations

from fastapi import APIRouter, Depends

from amlsentinel.api.deps import get_session
from amlsentinel.schemas.simulation import SimulationRequest, SimulationResponse
from amlsentinel.services.session import AnalysisSession

"""
API Simulation (what-if).

Rôle (fonctionnel) :
- Évalue une transaction hypothétique avec le même scorer que l’ingestion.
- Rien n’est persisté : ni transaction, ni nœud / arête de graphe.
"""

router = APIRouter(tags=["simulation"])


@router.post("/simulate", response_model=SimulationResponse)
async def simulate(payload: SimulationRequest, session: AnalysisSession = Depends(get_session)):
    assessment = await session.simulate(payload.model_dump(exclude_none=True))
    return SimulationResponse(
        risk_score=assessment.risk_score,
        risk_level=assessment.risk_level,
        risk_factors=list(assessment.risk_factors),
        explanation=assessment.explanation,
    )
