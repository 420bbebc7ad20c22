from __future__ import annotations

from typing import Any, Optional

import httpx

from amlsentinel.domain.models import RiskAssessment, ScoringRequest
from amlsentinel.scoring.base import RiskScorer

"""
Remote Risk Scorer (HTTP).

Rôle (fonctionnel) :
- Délègue le scoring à un service distant : POST {base_url}/score.
- Requête : transaction validée + features (ScoringRequest.as_payload()).
- Réponse attendue :
  {"risk_score": 0.82, "reason_codes": ["LARGE_AMOUNT"], "explanation": "..."}
  ("risk_factors" est accepté à la place de "reason_codes").

Notes :
- Le niveau éventuellement renvoyé par le service est ignoré : le cœur le recalcule.
- Toute erreur (réseau, HTTP != 2xx, payload invalide) remonte telle quelle :
  ScoringGateway gère retries / backoff / ScoringUnavailable.
- Le client httpx est injectable (transport de test, pool partagé).
"""


class RemoteScorerError(RuntimeError):
    pass


class RemoteRiskScorer(RiskScorer):
    name = "remote"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not base_url:
            raise ValueError("SCORER_URL est requis pour le scorer distant")
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def score(self, request: ScoringRequest) -> RiskAssessment:
        r = await self._client.post(f"{self.base_url}/score", json=request.as_payload())
        r.raise_for_status()
        return self._parse(r.json())

    def _parse(self, data: Any) -> RiskAssessment:
        if not isinstance(data, dict) or "risk_score" not in data:
            raise RemoteScorerError(f"réponse de scoring invalide: {data!r}")

        reasons = data.get("reason_codes")
        if reasons is None:
            reasons = data.get("risk_factors") or []
        if not isinstance(reasons, list):
            raise RemoteScorerError("reason_codes doit être une liste")

        return RiskAssessment.build(data["risk_score"], [str(r) for r in reasons], str(data.get("explanation") or ""))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
