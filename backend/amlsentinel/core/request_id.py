from __future__ import annotations

import uuid
from contextvars import ContextVar

"""
Core Request ID.

Rôle (fonctionnel) :
- Conserve un identifiant de corrélation (request_id) dans un ContextVar.
- Une requête HTTP, un upload et tous les appels de scoring qu’il déclenche
  partagent ainsi le même request_id dans les logs.

Notes :
- Les tâches asyncio créées pendant un upload héritent du contexte courant :
  les logs du scoring concurrent restent corrélés au batch.
"""

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(rid: str | None) -> None:
    _request_id.set(rid)


def get_request_id() -> str | None:
    return _request_id.get()


def ensure_request_id(incoming: str | None = None) -> str:
    """Réutilise l’identifiant entrant (nettoyé) ou en génère un nouveau (UUID4)."""
    rid = (incoming or "").strip() or str(uuid.uuid4())
    set_request_id(rid)
    return rid
