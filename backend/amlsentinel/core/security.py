from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Request

from amlsentinel.core.errors import AppHTTPException
from amlsentinel.core.settings import settings

"""
Core Security (API Key).

Rôle (fonctionnel) :
- Protège les opérations qui modifient la session (upload, clear) par une clé API.
- Deux formats de headers acceptés :
  - Authorization: Bearer <token>
  - X-API-Key: <token>

Comportement :
- API_KEY configurée : la clé est requise.
- API_KEY vide et ENV != prod : bypass (dev / tests).
- API_KEY vide et ENV = prod : 500 (configuration serveur invalide).
"""


def _extract_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization")
    if auth:
        parts = auth.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1].strip()

    x_api_key = request.headers.get("x-api-key")
    if x_api_key:
        return x_api_key.strip()

    return None


async def require_api_key(request: Request) -> None:
    """Dépendance FastAPI : lève AppHTTPException si la clé est absente ou invalide."""
    expected = settings.API_KEY or ""

    if not expected:
        if str(settings.ENV).lower() == "prod":
            raise AppHTTPException(500, "SERVER_MISCONFIG", "API_KEY manquante côté serveur")
        return

    token = _extract_token(request)
    # compare_digest : comparaison à temps constant
    if not token or not secrets.compare_digest(token, expected):
        raise AppHTTPException(401, "UNAUTHORIZED", "Clé API invalide ou manquante")
