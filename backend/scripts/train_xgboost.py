from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path

import joblib
import pandas as pd
from sklearn.model_selection import train_test_split
from xgboost import XGBClassifier

from amlsentinel.core.settings import settings
from amlsentinel.domain.risk import HIGH_THRESHOLD
from amlsentinel.ml.feature_vectorizer import FeatureSpec, vectorize
from amlsentinel.ml.model_registry import reset_cache
from amlsentinel.scoring.rules import RulesRiskScorer
from scripts.train_iforest import build_feature_rows

"""
Script CLI: train_xgboost

Rôle (fonctionnel) :
- Entraîne un modèle supervisé XGBoost (XGBClassifier) sur un export CSV de transactions.
- Pseudo-label de démo : suspect = 1 si le score des règles dépasse le seuil HIGH.
- Features identiques au runtime (build_feature_rows : validation + FeatureBuilder).
- Exporte un bundle .joblib versionné dans settings.MODELS_DIR :
  - model (XGBClassifier)
  - spec (vocabulaire transaction_type)
  - meta (kind, model_version, trained_at, règle de labeling)

Usage :
    python -m scripts.train_xgboost --csv exports/transactions.csv --version v1

Notes :
- Le pseudo-label n’est pas une vérité terrain : le modèle apprend à généraliser les règles
  (combinaisons de signaux), le scorer hybride garde max(règles, modèle).
- Le registry charge XGBoost en priorité sur IsolationForest.
- scale_pos_weight compense le déséquilibre (peu de transactions suspectes).
"""


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--csv", required=True, help="Export CSV des transactions d’entraînement")
    ap.add_argument("--version", default="v1", help="Tag de version (ex: v1, v2) pour le nom du modèle exporté")
    args = ap.parse_args()

    df = pd.read_csv(args.csv, dtype=str)
    if df.empty:
        print("CSV vide : rien à entraîner.")
        return

    rows = build_feature_rows(df)

    rules = RulesRiskScorer()
    y = pd.Series([int(rules.apply_rules(r)[0] > HIGH_THRESHOLD) for r in rows])
    if y.nunique() < 2:
        print("Une seule classe dans le pseudo-label : ajouter des transactions variées.")
        return

    types = pd.Series([r["transaction_type"] for r in rows]).str.lower().value_counts().head(8)
    spec = FeatureSpec(transaction_types=tuple(types.index.tolist()))

    X = [vectorize(r, spec) for r in rows]

    X_train, X_test, y_train, y_test = train_test_split(
        X,
        y,
        test_size=0.25,
        random_state=42,
        stratify=y,
    )

    pos = int(y_train.sum())
    neg = int(len(y_train) - pos)

    model = XGBClassifier(
        n_estimators=250,
        max_depth=4,
        learning_rate=0.08,
        subsample=0.9,
        colsample_bytree=0.9,
        eval_metric="logloss",
        random_state=42,
        scale_pos_weight=neg / max(pos, 1),
    )
    model.fit(X_train, y_train)
    accuracy = float(model.score(X_test, y_test))

    now = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M")
    model_version = f"xgboost_{args.version}_{now}"

    out_dir = Path(settings.MODELS_DIR)
    out_dir.mkdir(parents=True, exist_ok=True)

    bundle = {
        "model": model,
        "spec": {"transaction_types": list(spec.transaction_types)},
        "meta": {
            "kind": "xgboost",
            "model_version": model_version,
            "trained_at": now,
            "rows": len(X),
            "holdout_accuracy": accuracy,
            "labeling": f"rules_score > {HIGH_THRESHOLD}",
        },
    }

    out_path = out_dir / f"{model_version}.joblib"
    joblib.dump(bundle, out_path)
    reset_cache()
    print("OK - saved:", out_path, f"(holdout accuracy {accuracy:.3f})")


if __name__ == "__main__":
    main()
