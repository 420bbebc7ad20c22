from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException

"""
Core Errors.

Rôle (fonctionnel) :
- Définit la taxonomie d’erreurs du cœur d’analyse (sans dépendance HTTP) :
  - ValidationError : batch mal formé (corrigible par l’utilisateur), rejeté en entier
  - ScoringUnavailable : scorer en timeout / en erreur après les retries
  - IngestionInProgress : clear() demandé pendant une ingestion
- Standardise le format des erreurs renvoyées par l’API (payload homogène).
- Fournit AppHTTPException pour les erreurs propres à la couche HTTP (404, 401…).

Convention de réponse (exemple) :
{
  "error": {
    "code": "VALIDATION_ERROR",
    "message": "Batch rejeté : 1 enregistrement(s) invalide(s)",
    "status": 422,
    "request_id": "...",
    "timestamp": "...",
    "details": [{"index": 3, "field": "amount", "message": "..."}]
  }
}

Note :
- “Introuvable” n’est pas une erreur du cœur : un filtre ou un id inconnu
  renvoie un résultat vide / None. Seule l’API le traduit en 404.
"""


def now_iso() -> str:
    """Timestamp ISO-8601 en UTC (utilisé dans toutes les erreurs)."""
    return datetime.now(timezone.utc).isoformat()


def error_payload(
    *,
    code: str,
    message: str,
    status: int,
    request_id: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """Construit un payload d’erreur homogène pour l’API."""
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "status": status,
            "request_id": request_id,
            "timestamp": now_iso(),
        }
    }
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppHTTPException(HTTPException):
    """
    Exception HTTP applicative standardisée.

    Exemple :
        raise AppHTTPException(404, "NOT_FOUND", "Transaction introuvable")
    """

    def __init__(self, status_code: int, code: str, message: str, details: Any = None):
        super().__init__(status_code=status_code, detail={"code": code, "message": message, "details": details})


# -----------------------------
# Erreurs du domaine
# -----------------------------
class AmlError(Exception):
    """Base des erreurs du cœur d’analyse."""

    code = "AML_ERROR"


@dataclass(frozen=True)
class ValidationIssue:
    """Un problème sur un enregistrement : index dans le batch + champ fautif."""
    index: int
    field: str
    message: str

    def as_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "field": self.field, "message": self.message}


class ValidationError(AmlError):
    """Batch rejeté en entier : au moins un enregistrement est invalide."""

    code = "VALIDATION_ERROR"

    def __init__(self, issues: Sequence[ValidationIssue]):
        self.issues: List[ValidationIssue] = list(issues)
        records = sorted({i.index for i in self.issues})
        first = self.issues[0] if self.issues else None
        msg = f"Batch rejeté : {len(records)} enregistrement(s) invalide(s)"
        if first is not None:
            msg += f" (#{first.index} {first.field}: {first.message})"
        super().__init__(msg)

    @property
    def record_indexes(self) -> List[int]:
        return sorted({i.index for i in self.issues})


class ScoringUnavailable(AmlError):
    """Le scorer n’a pas répondu correctement après le budget de retries."""

    code = "SCORING_UNAVAILABLE"

    def __init__(self, message: str, *, index: int | None = None, attempts: int = 0):
        self.index = index
        self.attempts = attempts
        super().__init__(message)

    def as_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "attempts": self.attempts}


class IngestionInProgress(AmlError):
    """clear() refusé : une ingestion est en cours sur la session."""

    code = "INGESTION_IN_PROGRESS"
