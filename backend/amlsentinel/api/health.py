from fastapi import APIRouter, Depends

from amlsentinel.api.deps import get_session
from amlsentinel.core.settings import settings
from amlsentinel.services.session import AnalysisSession

"""
API Health.

Rôle (fonctionnel) :
- Vérifie que l’API répond.
- Expose quelques infos utiles en démo (env, scorer actif, version du modèle, taille de la session).
- model_version : modèle ML ayant servi au dernier score, sinon settings.MODEL_VERSION.
"""

router = APIRouter()


@router.get("/health")
def health(session: AnalysisSession = Depends(get_session)):
    return {
        "status": "ok",
        "env": settings.ENV,
        "scorer": session.scorer.name,
        "model_version": session.scorer.model_version or settings.MODEL_VERSION,
        "transactions": len(session.transactions()),
        "ingesting": session.store.ingesting,
    }
