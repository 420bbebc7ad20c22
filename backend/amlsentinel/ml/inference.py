from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from amlsentinel.ml.feature_vectorizer import FeatureSpec, vectorize
from amlsentinel.ml.model_registry import LoadedModel, load_latest

"""
ML Inference.

Rôle (fonctionnel) :
- Vectorise les features avec le FeatureSpec du modèle chargé.
- Exécute l’inférence et normalise la sortie en probabilité de risque 0..1.

Comportement :
- Aucun modèle : None (le scorer hybride reste sur les règles).
- xgboost : predict_proba -> probabilité de la classe “suspect”.
- iforest : decision_function inversée (anomalie) puis normalisée via q05/q95 du bundle.
"""


@dataclass(frozen=True)
class InferenceResult:
    probability: float
    model_version: str
    kind: str


def _spec_from_dict(d: Dict[str, Any]) -> FeatureSpec:
    return FeatureSpec(transaction_types=tuple(d.get("transaction_types", ())))


def infer_probability(
    features: Dict[str, Any],
    *,
    loaded: Optional[LoadedModel] = None,
    models_dir: Optional[Path] = None,
) -> Optional[InferenceResult]:
    loaded = loaded or load_latest(models_dir)
    if not loaded:
        return None

    X = [vectorize(features, _spec_from_dict(loaded.spec))]

    if loaded.kind == "xgboost":
        proba = float(loaded.model.predict_proba(X)[0][1])
        return InferenceResult(probability=max(0.0, min(1.0, proba)), model_version=loaded.model_version, kind="xgboost")

    if loaded.kind == "iforest":
        # decision_function élevé = normal -> on inverse pour obtenir une anomalie
        q05 = float(loaded.meta.get("q05", -0.2))
        q95 = float(loaded.meta.get("q95", 0.2))
        anomaly = -float(loaded.model.decision_function(X)[0])
        denom = (q95 - q05) if (q95 - q05) != 0 else 1.0
        norm = max(0.0, min(1.0, (anomaly - q05) / denom))
        return InferenceResult(probability=norm, model_version=loaded.model_version, kind="iforest")

    return None
