from fastapi import APIRouter

from .health import router as health_router
from .transactions import router as transactions_router

from amlsentinel.api.graph import router as graph_router
from amlsentinel.api.report import router as report_router
from amlsentinel.api.simulate import router as simulate_router

"""
Router principal de l’API.

Rôle (fonctionnel) :
- Regroupe les routeurs par domaine (health, transactions, graphe, simulation, rapport).
- Point d’entrée unique pour l’inclusion dans l’application FastAPI.
"""

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(transactions_router)
api_router.include_router(graph_router)
api_router.include_router(simulate_router)
api_router.include_router(report_router)
