import joblib
import pandas as pd
import pytest
from sklearn.ensemble import IsolationForest

from amlsentinel.ml.feature_vectorizer import NUMERIC_FEATURES, FeatureSpec, vectorize
from amlsentinel.ml.inference import infer_probability
from amlsentinel.ml.model_registry import LoadedModel, load_latest, reset_cache
from scripts.train_iforest import build_feature_rows


@pytest.fixture(autouse=True)
def _fresh_registry():
    reset_cache()
    yield
    reset_cache()


def _features(amount=100.0, tx_type="transfer"):
    return {
        "hour": 12,
        "amount": amount,
        "transaction_type": tx_type,
        "sender_tx_count_24h": 1,
        "sender_avg_amount_7d": None,
        "is_new_recipient": True,
        "is_round_amount": False,
    }


def test_vectorize_order_and_one_hot():
    spec = FeatureSpec(transaction_types=("transfer", "wire"))

    x = vectorize(_features(), spec)
    assert len(x) == len(NUMERIC_FEATURES) + 3
    assert x[:6] == [12.0, 100.0, 1.0, 0.0, 1.0, 0.0]
    assert x[6:] == [1.0, 0.0, 0.0]
    assert vectorize(_features(tx_type="crypto"), spec)[6:] == [0.0, 0.0, 1.0]


class _Proba:
    def predict_proba(self, X):
        return [[0.25, 0.75]]


def test_xgboost_kind_uses_positive_class_probability():
    loaded = LoadedModel(kind="xgboost", model_version="xgb_t", model=_Proba(), spec={"transaction_types": []}, meta={})
    result = infer_probability(_features(), loaded=loaded)
    assert result.probability == 0.75
    assert result.kind == "xgboost"


def test_unknown_kind_is_ignored():
    loaded = LoadedModel(kind="unknown", model_version="m", model=None, spec={}, meta={})
    assert infer_probability(_features(), loaded=loaded) is None


def test_no_artefact_means_no_model(tmp_path):
    assert load_latest(tmp_path) is None
    assert infer_probability(_features(), models_dir=tmp_path) is None


def test_iforest_bundle_round_trip(tmp_path):
    spec = FeatureSpec(transaction_types=("transfer",))
    X = [vectorize(_features(amount=float(100 + i)), spec) for i in range(40)]
    model = IsolationForest(n_estimators=20, random_state=0).fit(X)
    joblib.dump(
        {
            "model": model,
            "spec": {"transaction_types": ["transfer"]},
            "meta": {"kind": "iforest", "model_version": "iforest_test", "q05": -0.2, "q95": 0.2},
        },
        tmp_path / "iforest_test.joblib",
    )

    loaded = load_latest(tmp_path)
    assert loaded.kind == "iforest"
    assert loaded.model_version == "iforest_test"

    result = infer_probability(_features(amount=1_000_000.0, tx_type="crypto"), models_dir=tmp_path)
    assert 0.0 <= result.probability <= 1.0
    assert result.model_version == "iforest_test"


def test_training_rows_follow_runtime_features():
    df = pd.DataFrame(
        [
            {"amount": "200", "from_account": "A", "to_account": "C", "timestamp": "2026-03-01T11:00:00Z"},
            {"amount": "100", "from_account": "A", "to_account": "B", "timestamp": "2026-03-01T10:00:00Z"},
            {"amount": "5000", "from_account": "D", "to_account": "D", "timestamp": None},
        ]
    )
    rows = build_feature_rows(df)

    assert len(rows) == 3
    first, second = rows[0], rows[1]
    assert first["amount"] == 100.0
    assert second["sender_tx_count_24h"] == 1
    assert second["is_new_recipient"] is True
