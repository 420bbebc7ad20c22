from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import joblib
import pandas as pd
from sklearn.ensemble import IsolationForest

from amlsentinel.core.settings import settings
from amlsentinel.domain.models import ScoringRequest
from amlsentinel.domain.validation import validate_batch
from amlsentinel.ml.feature_vectorizer import FeatureSpec, vectorize
from amlsentinel.ml.model_registry import reset_cache
from amlsentinel.services.csv_records import records_from_frame
from amlsentinel.services.feature_builder import FeatureBuilder

"""
Script CLI: train_iforest

Rôle (fonctionnel) :
- Entraîne un modèle d’anomaly detection (IsolationForest) sur un export CSV de transactions
  (colonnes minimales : amount, from_account, to_account ; timestamp, transaction_type optionnels).
- Reproduit exactement les features du runtime : les lignes passent par la même validation
  et le même FeatureBuilder que l’ingestion (train == inference).
- Exporte un bundle .joblib versionné dans settings.MODELS_DIR :
  - model (IsolationForest)
  - spec (vocabulaire transaction_type)
  - meta (kind, model_version, trained_at, calibration q05/q95)

Usage :
    python -m scripts.train_iforest --csv exports/transactions.csv --version v2

Notes :
- Modèle non supervisé (pas de label “blanchiment”).
- La calibration q05/q95 convertit decision_function en probabilité 0..1 à l’inférence.
"""


def build_feature_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Features par ligne, calculées dans l’ordre chronologique (comme une ingestion)."""
    records = validate_batch(records_from_frame(df), allow_self_transfers=True)
    now = datetime.now(timezone.utc)
    records = sorted(records, key=lambda r: r.timestamp or now)

    fb = FeatureBuilder()
    rows: List[Dict[str, Any]] = []
    for rec in records:
        ts = rec.timestamp or now
        feats = fb.build(
            amount=rec.amount,
            from_account=rec.from_account,
            to_account=rec.to_account,
            timestamp=ts,
            transaction_type=rec.transaction_type,
        )
        fb.remember(
            ScoringRequest(
                amount=rec.amount,
                from_account=rec.from_account,
                to_account=rec.to_account,
                timestamp=ts,
            )
        )
        rows.append(feats)
    return rows


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--csv", required=True, help="Export CSV des transactions d’entraînement")
    ap.add_argument("--version", default="v1", help="Tag de version (ex: v1, v2) pour le nom du modèle exporté")
    ap.add_argument("--contamination", type=float, default=0.05)
    args = ap.parse_args()

    df = pd.read_csv(args.csv, dtype=str)
    if df.empty:
        print("CSV vide : rien à entraîner.")
        return

    rows = build_feature_rows(df)

    # Vocab (top-N) ; les valeurs hors vocabulaire tombent dans "other" (vectorize)
    types = pd.Series([r["transaction_type"] for r in rows]).str.lower().value_counts().head(8)
    spec = FeatureSpec(transaction_types=tuple(types.index.tolist()))

    X = [vectorize(r, spec) for r in rows]

    model = IsolationForest(
        n_estimators=200,
        contamination=args.contamination,
        random_state=42,
    )
    model.fit(X)

    # Calibration : decision_function -> anomalie -> normalisation 0..1
    anomaly = pd.Series(-model.decision_function(X))
    q05 = float(anomaly.quantile(0.05))
    q95 = float(anomaly.quantile(0.95))

    now = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M")
    model_version = f"iforest_{args.version}_{now}"

    out_dir = Path(settings.MODELS_DIR)
    out_dir.mkdir(parents=True, exist_ok=True)

    bundle = {
        "model": model,
        "spec": {"transaction_types": list(spec.transaction_types)},
        "meta": {
            "kind": "iforest",
            "model_version": model_version,
            "trained_at": now,
            "rows": len(X),
            "q05": q05,
            "q95": q95,
        },
    }

    out_path = out_dir / f"{model_version}.joblib"
    joblib.dump(bundle, out_path)
    reset_cache()
    print("OK - saved:", out_path)


if __name__ == "__main__":
    main()
