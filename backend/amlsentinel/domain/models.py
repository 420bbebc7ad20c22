from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from amlsentinel.domain.risk import RiskLevel, TransactionStatus, initial_status, quantize

"""
Domain Models.

Rôle (fonctionnel) :
- Définit les objets du cœur d’analyse, tous immuables (frozen dataclasses) :
  - ScoringRequest : ce qui est envoyé au scorer (transaction validée + features)
  - RiskAssessment : sortie du scorer, cohérente par construction (niveau = f(score))
  - Transaction : transaction ingérée + annotation de risque
  - AccountNode / AccountEdge / AccountGraph : graphe de comptes dérivé

Invariants garantis ici (et donc partout) :
- 0.0 <= risk_score <= 1.0
- risk_level == quantize(risk_score)
- reason_codes sans doublon, non vide si HIGH
"""

# Code ajouté quand un scorer renvoie HIGH sans aucune raison
FALLBACK_HIGH_REASON = "HIGH_RISK_SCORE"


class ScoreOutOfRange(ValueError):
    """Le scorer a renvoyé un score hors [0, 1] (ou non numérique)."""


def _dedupe(codes: Iterable[str]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for code in codes:
        code = str(code).strip()
        if code:
            seen.setdefault(code, None)
    return tuple(seen)


@dataclass(frozen=True)
class ScoringRequest:
    """Transaction validée (pas encore d’id) + features de contexte, envoyée au scorer."""
    amount: Decimal
    from_account: str
    to_account: str
    timestamp: datetime
    transaction_type: str = "transfer"
    features: Mapping[str, Any] = field(default_factory=dict)

    def as_payload(self) -> Dict[str, Any]:
        """Forme JSON (scorer distant, logs)."""
        return {
            "amount": str(self.amount),
            "from_account": self.from_account,
            "to_account": self.to_account,
            "timestamp": self.timestamp.isoformat(),
            "transaction_type": self.transaction_type,
            "features": dict(self.features),
        }


@dataclass(frozen=True)
class RiskAssessment:
    """
    Évaluation de risque (sortie scorer).

    Construire via RiskAssessment.build(...) : le niveau est dérivé du score par la
    règle centrale, les codes sont dédoublonnés, et un code est ajouté si HIGH sans raison.
    """
    risk_score: float
    risk_level: RiskLevel
    reason_codes: Tuple[str, ...]
    explanation: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.risk_score, (int, float)) or isinstance(self.risk_score, bool):
            raise ScoreOutOfRange(f"score non numérique: {self.risk_score!r}")
        if math.isnan(self.risk_score) or not 0.0 <= self.risk_score <= 1.0:
            raise ScoreOutOfRange(f"score hors [0, 1]: {self.risk_score!r}")
        if RiskLevel(self.risk_level) is not quantize(self.risk_score):
            raise ValueError(f"niveau {self.risk_level} incohérent avec le score {self.risk_score}")
        if self.risk_level is RiskLevel.HIGH and not self.reason_codes:
            raise ValueError("une évaluation HIGH doit porter au moins une raison")

    @classmethod
    def build(cls, score: Any, reasons: Iterable[str] = (), explanation: str = "") -> "RiskAssessment":
        try:
            value = float(score)
        except (TypeError, ValueError) as exc:
            raise ScoreOutOfRange(f"score non numérique: {score!r}") from exc
        if math.isnan(value) or not 0.0 <= value <= 1.0:
            raise ScoreOutOfRange(f"score hors [0, 1]: {score!r}")

        level = quantize(value)
        codes = _dedupe(reasons)
        if level is RiskLevel.HIGH and not codes:
            codes = (FALLBACK_HIGH_REASON,)
        if not explanation:
            explanation = default_explanation(level)
        return cls(risk_score=value, risk_level=level, reason_codes=codes, explanation=explanation)

    @property
    def risk_factors(self) -> Tuple[str, ...]:
        """Nom utilisé pour une simulation (transaction non persistée)."""
        return self.reason_codes


def default_explanation(level: RiskLevel) -> str:
    return (
        f"This transaction has a {RiskLevel(level).value.lower()} risk profile "
        "based on amount, timing, and recipient analysis."
    )


@dataclass(frozen=True)
class Transaction:
    """Transaction ingérée et annotée. L’id est attribué par le store (TXN-000001…)."""
    id: str
    amount: Decimal
    from_account: str
    to_account: str
    timestamp: datetime
    risk_score: float
    risk_level: RiskLevel
    reason_codes: Tuple[str, ...]
    status: TransactionStatus
    transaction_type: str = "transfer"
    explanation: str = ""

    @classmethod
    def from_assessment(cls, tx_id: str, request: ScoringRequest, assessment: RiskAssessment) -> "Transaction":
        return cls(
            id=tx_id,
            amount=request.amount,
            from_account=request.from_account,
            to_account=request.to_account,
            timestamp=request.timestamp,
            risk_score=assessment.risk_score,
            risk_level=assessment.risk_level,
            reason_codes=assessment.reason_codes,
            status=initial_status(assessment.risk_level),
            transaction_type=request.transaction_type,
            explanation=assessment.explanation,
        )

    def touches(self, account_id: str) -> bool:
        return self.from_account == account_id or self.to_account == account_id


@dataclass(frozen=True)
class AccountNode:
    """Compte du graphe. id == label == identifiant de compte."""
    id: str
    risk_level: RiskLevel
    total_volume: Decimal
    account_type: str
    tx_count: int = 0
    total_sent: Decimal = Decimal("0")
    total_received: Decimal = Decimal("0")

    @property
    def label(self) -> str:
        return self.id


@dataclass(frozen=True)
class AccountEdge:
    """Contribution d’une transaction au graphe (multigraphe : 1 arête = 1 transaction)."""
    transaction_id: str
    source: str
    target: str
    amount: Decimal
    suspicious: bool


@dataclass(frozen=True)
class AccountGraph:
    """
    Vue matérialisée du graphe de comptes (reconstructible à tout moment depuis le store).

    nodes : mapping lecture seule account_id -> AccountNode
    edges : tuple d’arêtes, dans l’ordre d’insertion des transactions
    """
    nodes: Mapping[str, AccountNode] = field(default_factory=lambda: MappingProxyType({}))
    edges: Tuple[AccountEdge, ...] = ()

    def node(self, account_id: str) -> Optional[AccountNode]:
        return self.nodes.get(account_id)

    def edges_touching(self, account_id: str) -> Tuple[AccountEdge, ...]:
        return tuple(e for e in self.edges if e.source == account_id or e.target == account_id)

    def counterparties(self, account_id: str) -> Tuple[str, ...]:
        """Comptes voisins distincts (entrants + sortants), ordre de première apparition."""
        seen: Dict[str, None] = {}
        for e in self.edges:
            if e.source == account_id and e.target != account_id:
                seen.setdefault(e.target, None)
            elif e.target == account_id and e.source != account_id:
                seen.setdefault(e.source, None)
        return tuple(seen)

    @property
    def suspicious_edge_count(self) -> int:
        return sum(1 for e in self.edges if e.suspicious)
