from __future__ import annotations

from fastapi import Depends, Request

from amlsentinel.core.security import require_api_key
from amlsentinel.services.session import AnalysisSession

"""
Dépendances API.

Rôle (fonctionnel) :
- Donne accès à la session d’analyse partagée (app.state.session).
- Protège les opérations qui modifient la session (clé API).
"""


def get_session(request: Request) -> AnalysisSession:
    return request.app.state.session


async def require_demo_auth(request: Request) -> None:
    await require_api_key(request)


# Dépendance prête à l’emploi pour protéger un endpoint
DemoAuthDep = Depends(require_demo_auth)
