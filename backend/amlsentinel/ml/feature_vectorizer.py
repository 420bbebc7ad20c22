from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

"""
ML Feature Vectorizer.

Rôle (fonctionnel) :
- Convertit le dictionnaire de features d’une transaction (FeatureBuilder) en vecteur numérique.
- Garantit la cohérence entraînement / inférence : même ordre, mêmes encodages, même vocabulaire.

Notes :
- Le vocabulaire (FeatureSpec) est stocké dans le bundle du modèle.
- Toute évolution de l’ordre des features doit être versionnée (impact modèle).
"""

NUMERIC_FEATURES = (
    "hour",
    "amount",
    "sender_tx_count_24h",
    "sender_avg_amount_7d",
    "is_new_recipient",
    "is_round_amount",
)


@dataclass(frozen=True)
class FeatureSpec:
    """Vocabulaire du one-hot sur transaction_type."""
    transaction_types: Tuple[str, ...]


def _one_hot(value: str, vocab: Tuple[str, ...]) -> List[float]:
    """Encode une valeur catégorielle en one-hot (dernier index réservé à 'other')."""
    value = (value or "").lower()
    out = [0.0] * (len(vocab) + 1)
    if value in vocab:
        out[vocab.index(value)] = 1.0
    else:
        out[-1] = 1.0
    return out


def vectorize(features: Dict[str, Any], spec: FeatureSpec) -> List[float]:
    """Vectorisation canonique utilisée par scripts/train_iforest.py et par l’inférence."""
    x: List[float] = []
    for name in NUMERIC_FEATURES:
        value = features.get(name)
        if isinstance(value, bool):
            x.append(1.0 if value else 0.0)
        else:
            x.append(float(value) if value is not None else 0.0)

    x += _one_hot(str(features.get("transaction_type") or ""), spec.transaction_types)
    return x
