from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from amlsentinel.domain.risk import RiskLevel

"""
Schemas Simulation (Pydantic).

Rôle (fonctionnel) :
- Transaction hypothétique du simulateur “what-if” (jamais persistée).
- Réponse : score, niveau, facteurs de risque, explication.

Note :
- amount est laissé libre ici (str / nombre) : le cœur le valide et signale le champ fautif.
"""


class SimulationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: Any
    from_account: str = Field(..., max_length=128)
    to_account: str = Field(..., max_length=128)
    transaction_type: str = Field(default="transfer", max_length=40)
    timestamp: Optional[str] = None


class SimulationResponse(BaseModel):
    risk_score: float
    risk_level: RiskLevel
    risk_factors: List[str]
    explanation: str
