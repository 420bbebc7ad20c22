from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from amlsentinel.api.router import api_router
from amlsentinel.core.errors import (
    AppHTTPException,
    IngestionInProgress,
    ScoringUnavailable,
    ValidationError,
    error_payload,
)
from amlsentinel.core.logging import setup_logging
from amlsentinel.core.request_id import ensure_request_id, get_request_id, set_request_id
from amlsentinel.core.settings import settings
from amlsentinel.scoring.factory import build_scorer
from amlsentinel.services.session import AnalysisSession

"""
Application FastAPI (entrypoint).

Rôle (fonctionnel) :
- Configure l’application (settings, CORS, middlewares, routers).
- Crée la session d’analyse partagée (app.state.session) avec le scorer configuré.
- Centralise l’observabilité :
  - request_id propagé (X-Request-Id)
  - logs structurés JSON (timing, status, client_ip)
  - seuil de “slow request”
- Uniformise les erreurs côté client (format error_payload), y compris celles du cœur :
  - ValidationError -> 422 (index + champ de chaque enregistrement fautif)
  - ScoringUnavailable -> 503
  - IngestionInProgress -> 409

Ce fichier ne contient pas de logique métier :
- La logique métier est dans amlsentinel.services
- Les routes sont dans amlsentinel.api
- Les composants transverses sont dans amlsentinel.core
"""


class UTF8JSONResponse(JSONResponse):
    """Réponse JSON avec charset UTF-8 explicite (cohérent sur tous les endpoints)."""
    media_type = "application/json; charset=utf-8"


setup_logging(settings.LOG_LEVEL)

log = logging.getLogger("amlsentinel")
http_log = logging.getLogger("amlsentinel.http")

SLOW_MS = int(settings.SLOW_REQUEST_MS)


def _split_origins(value: str) -> list[str]:
    """Parse une liste d’origines CORS depuis une string 'a,b,c'."""
    if not value:
        return []
    return [o.strip() for o in value.split(",") if o.strip()]


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id() or str(uuid.uuid4())


def create_app(session: Optional[AnalysisSession] = None) -> FastAPI:
    """
    Construit l’application.

    session : session injectée (tests, scorer statique) ; sinon créée depuis les settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.session.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        default_response_class=UTF8JSONResponse,
        lifespan=lifespan,
    )

    app.state.session = session or AnalysisSession(build_scorer(settings), cfg=settings)

    default_dev_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_split_origins(settings.CORS_ORIGINS) or default_dev_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key", "X-Request-Id"],
    )

    app.include_router(api_router)

    # --- Middleware observabilité : request_id + timing + logs structurés ---
    @app.middleware("http")
    async def request_observability(request: Request, call_next):
        rid = ensure_request_id(request.headers.get("X-Request-Id"))
        request.state.request_id = rid

        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            response.headers["X-Request-Id"] = rid
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            level = logging.WARNING if duration_ms >= SLOW_MS else logging.INFO
            http_log.log(
                level,
                "request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": getattr(response, "status_code", None),
                    "duration_ms": duration_ms,
                    "client_ip": request.client.host if request.client else None,
                },
            )
            set_request_id(None)

    # --- Erreurs du cœur ---
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return UTF8JSONResponse(
            status_code=422,
            content=error_payload(
                code=exc.code,
                message=str(exc),
                status=422,
                request_id=_rid(request),
                details=[i.as_dict() for i in exc.issues],
            ),
        )

    @app.exception_handler(ScoringUnavailable)
    async def scoring_unavailable_handler(request: Request, exc: ScoringUnavailable):
        return UTF8JSONResponse(
            status_code=503,
            content=error_payload(
                code=exc.code,
                message="Service de scoring indisponible, réessayer plus tard",
                status=503,
                request_id=_rid(request),
                details=exc.as_dict(),
            ),
        )

    @app.exception_handler(IngestionInProgress)
    async def ingestion_in_progress_handler(request: Request, exc: IngestionInProgress):
        return UTF8JSONResponse(
            status_code=409,
            content=error_payload(code=exc.code, message=str(exc), status=409, request_id=_rid(request)),
        )

    # --- Erreurs HTTP : format standard, pas de stacktrace côté client ---
    @app.exception_handler(AppHTTPException)
    async def app_http_exception_handler(request: Request, exc: AppHTTPException):
        detail = exc.detail if isinstance(exc.detail, dict) else {}
        return UTF8JSONResponse(
            status_code=exc.status_code,
            content=error_payload(
                code=str(detail.get("code", "HTTP_ERROR")),
                message=str(detail.get("message", "Erreur HTTP")),
                status=exc.status_code,
                request_id=_rid(request),
                details=detail.get("details", None),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return UTF8JSONResponse(
            status_code=exc.status_code,
            content=error_payload(code=code, message=str(exc.detail), status=exc.status_code, request_id=_rid(request)),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return UTF8JSONResponse(
            status_code=422,
            content=error_payload(
                code="VALIDATION_ERROR",
                message="Requête invalide",
                status=422,
                request_id=_rid(request),
                details=jsonable_errors(exc),
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log.exception("Unhandled error: %s", exc)
        return UTF8JSONResponse(
            status_code=500,
            content=error_payload(
                code="INTERNAL_ERROR",
                message="Erreur interne du serveur",
                status=500,
                request_id=_rid(request),
            ),
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """exc.errors() peut contenir des objets non sérialisables (ctx) : on garde loc / msg / type."""
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]


app = create_app()
