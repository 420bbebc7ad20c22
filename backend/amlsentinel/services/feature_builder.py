from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Protocol, Tuple

"""
Feature Builder.

Rôle (fonctionnel) :
- Construit le dictionnaire de features envoyé au scorer pour une transaction.
- Combine :
  - signaux directs (montant, heure, type, montant rond, proximité du seuil 10 000)
  - signaux contextuels calculés sur l’historique de l’expéditeur (fenêtres 24h / 7 jours)

Historique :
- Les transactions déjà stockées (snapshot du store).
- Pendant un upload, les enregistrements précédents du même batch (remember()).

Notes :
- Le builder travaille sur une copie indexée de l’historique : construire des features
  (y compris pour une simulation) ne modifie jamais l’état de la session.
"""

REPORTING_THRESHOLD = Decimal("10000")
STRUCTURING_BAND = Decimal("0.9")  # [9 000 ; 10 000[


def is_round_amount(amount: Decimal) -> bool:
    """Multiple de 1 000 (>= 1 000), exact quel que soit le nombre de chiffres."""
    if amount < 1000:
        return False
    # Lecture directe des chiffres : aucune opération soumise à la précision du contexte
    _, digits, exponent = Decimal(amount).as_tuple()
    coefficient = "".join(str(d) for d in digits)
    trailing_zeros = len(coefficient) - len(coefficient.rstrip("0"))
    return exponent + trailing_zeros >= 3


class _Movement(Protocol):
    amount: Decimal
    from_account: str
    to_account: str
    timestamp: datetime


class FeatureBuilder:
    """
    Index de l’historique par expéditeur + calcul des features.

    Features calculées :
    - hour : heure UTC de la transaction
    - sender_tx_count_24h : envois du même compte sur les 24h précédentes
    - sender_avg_amount_7d : montant moyen envoyé sur 7 jours (None si aucun)
    - is_new_recipient : expéditeur connu, destinataire jamais payé auparavant
    - is_round_amount : multiple de 1 000 (>= 1 000)
    - is_near_threshold : montant juste sous le seuil déclaratif (structuring)
    """

    def __init__(self) -> None:
        self._sent: Dict[str, List[Tuple[datetime, Decimal, str]]] = defaultdict(list)

    @classmethod
    def from_history(cls, history: Iterable[_Movement]) -> "FeatureBuilder":
        fb = cls()
        for tx in history:
            fb.remember(tx)
        return fb

    def remember(self, tx: _Movement) -> None:
        self._sent[tx.from_account].append((tx.timestamp, Decimal(tx.amount), tx.to_account))

    def build(
        self,
        *,
        amount: Decimal,
        from_account: str,
        to_account: str,
        timestamp: datetime,
        transaction_type: str = "transfer",
    ) -> Dict[str, Any]:
        sent = self._sent.get(from_account, [])

        since_24h = timestamp - timedelta(hours=24)
        since_7d = timestamp - timedelta(days=7)

        count_24h = sum(1 for ts, _, _ in sent if since_24h <= ts <= timestamp)
        amounts_7d = [a for ts, a, _ in sent if since_7d <= ts <= timestamp]
        avg_7d = float(sum(amounts_7d) / len(amounts_7d)) if amounts_7d else None

        known_recipients = {to for _, _, to in sent}
        is_new_recipient = bool(sent) and to_account not in known_recipients

        features: Dict[str, Any] = {
            "hour": timestamp.astimezone(timezone.utc).hour,
            "amount": float(amount),
            "transaction_type": transaction_type,
            "sender_tx_count_24h": count_24h,
            "sender_avg_amount_7d": avg_7d,
            "is_new_recipient": is_new_recipient,
            "is_round_amount": is_round_amount(amount),
            "is_near_threshold": REPORTING_THRESHOLD * STRUCTURING_BAND <= amount < REPORTING_THRESHOLD,
        }
        return features
