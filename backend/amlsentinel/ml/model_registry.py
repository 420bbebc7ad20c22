from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import joblib

from amlsentinel.core.settings import settings

"""
ML Model Registry.

Rôle (fonctionnel) :
- Localise les artefacts modèles (.joblib) dans settings.MODELS_DIR.
- Sélectionne le plus récent (date de modification), XGBoost prioritaire sur IsolationForest.
- Retourne un bundle typé (LoadedModel) : kind, version, modèle, spec, meta.

Conventions :
- Fichiers : <prefix>_*.joblib (ex : iforest_v1_20260301-0910.joblib).
- Bundle attendu : {"model": ..., "spec": {"transaction_types": [...]}, "meta": {...}}.

Notes :
- load_latest() est caché (lru_cache) : le modèle n’est chargé qu’une fois par process.
  reset_cache() force un rechargement (après un nouvel entraînement, ou en test).
"""


@dataclass(frozen=True)
class LoadedModel:
    kind: str                 # "xgboost" | "iforest"
    model_version: str
    model: Any
    spec: Dict[str, Any]
    meta: Dict[str, Any]


def _latest_file(models_dir: Path, prefix: str) -> Optional[Path]:
    if not models_dir.exists():
        return None
    files = sorted(models_dir.glob(f"{prefix}_*.joblib"), key=lambda p: p.stat().st_mtime, reverse=True)
    return files[0] if files else None


@lru_cache(maxsize=4)
def load_latest(models_dir: Optional[Path] = None) -> Optional[LoadedModel]:
    """Charge le modèle le plus récent, ou None (mode dégradé : règles seules)."""
    base = Path(models_dir) if models_dir is not None else Path(settings.MODELS_DIR)

    chosen = _latest_file(base, "xgboost") or _latest_file(base, "iforest")
    if not chosen:
        return None

    bundle = joblib.load(chosen)
    meta = bundle.get("meta", {})

    return LoadedModel(
        kind=meta.get("kind", "unknown"),
        model_version=meta.get("model_version", chosen.stem),
        model=bundle["model"],
        spec=bundle["spec"],
        meta=meta,
    )


def reset_cache() -> None:
    load_latest.cache_clear()
