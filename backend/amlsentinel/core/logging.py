from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .request_id import get_request_id

"""
Core Logging.

Rôle (fonctionnel) :
- Configure un logging JSON uniforme pour toute l’application (API, session, scoring, graphe).
- Injecte le request_id courant dans chaque log pour corréler un upload et ses appels de scoring.
- Supporte des “extras” structurés (batch_size, transaction_id, attempt, account_id…).

Notes :
- 1 event = 1 ligne JSON sur stdout (compatible ELK, Loki, Datadog…).
- Le root logger est configuré et uvicorn est aligné sur le même handler.
"""

# Extras autorisés dans le payload JSON (logger.info(..., extra={...}))
STRUCTURED_EXTRAS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
    "batch_size",
    "replace",
    "store_version",
    "transaction_id",
    "record_index",
    "attempt",
    "scorer",
    "account_id",
    "node_count",
    "edge_count",
    "issue_count",
)


class RequestIdFilter(logging.Filter):
    """Ajoute request_id au LogRecord (valeur '-' si absent)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


class JsonFormatter(logging.Formatter):
    """Formateur JSON pour logs structurés."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "msg": record.getMessage(),
        }

        for key in STRUCTURED_EXTRAS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """
    Initialise le logging global (root) en JSON.

    - Nettoie les handlers existants (évite les doublons avec --reload).
    - StreamHandler stdout + JsonFormatter + RequestIdFilter.
    - Aligne les loggers uvicorn sur le même handler.
    """
    lvl = level.upper()

    root = logging.getLogger()
    root.setLevel(lvl)

    if root.handlers:
        root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = root.handlers
        logger.setLevel(lvl)
