from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, List, Sequence, Tuple

from amlsentinel.domain.models import Transaction
from amlsentinel.domain.risk import RiskLevel

"""
Query Engine.

Rôle (fonctionnel) :
- Filtre + tri d’un snapshot de transactions, à la demande (vue “tableau”).
- Transformation pure : ne modifie jamais le store, résultat identique pour des
  arguments identiques.

Filtre (ET logique) :
- search : sous-chaîne insensible à la casse sur id OU from_account OU to_account
  (vide = tout)
- risk_level : HIGH / MEDIUM / LOW ou "all"

Tri :
- Champs numériques (amount, risk_score) : comparaison numérique.
- Autres champs : comparaison de chaînes sensible à la casse. risk_level est
  comparé sur sa forme texte ("HIGH" < "LOW" < "MEDIUM"), pas sur la sévérité.
- Tri stable : à égalité, l’ordre d’insertion est conservé (dans les deux sens).
- Re-cliquer la colonne active inverse le sens ; une nouvelle colonne repart en “desc”.
"""

ALL_LEVELS = "all"


class SortKey(str, Enum):
    ID = "id"
    AMOUNT = "amount"
    FROM_ACCOUNT = "from_account"
    TO_ACCOUNT = "to_account"
    TIMESTAMP = "timestamp"
    RISK_SCORE = "risk_score"
    RISK_LEVEL = "risk_level"
    STATUS = "status"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.ASC if self is SortDirection.DESC else SortDirection.DESC


NUMERIC_KEYS = (SortKey.AMOUNT, SortKey.RISK_SCORE)


def _normalize_level(level: Any) -> str:
    if level is None:
        return ALL_LEVELS
    value = level.value if isinstance(level, Enum) else str(level).strip()
    if not value or value.lower() == ALL_LEVELS:
        return ALL_LEVELS
    return RiskLevel(value.upper()).value


@dataclass(frozen=True)
class TransactionQuery:
    """Paramètres explicites d’une requête tableau (plus d’état UI caché)."""
    search: str = ""
    risk_level: str = ALL_LEVELS
    sort_key: SortKey = SortKey.RISK_SCORE
    direction: SortDirection = SortDirection.DESC

    def __post_init__(self) -> None:
        object.__setattr__(self, "search", self.search or "")
        object.__setattr__(self, "risk_level", _normalize_level(self.risk_level))
        object.__setattr__(self, "sort_key", SortKey(self.sort_key))
        object.__setattr__(self, "direction", SortDirection(self.direction))

    def toggled(self, key: SortKey | str) -> "TransactionQuery":
        """Clic sur une colonne : même clé -> sens inversé ; nouvelle clé -> desc."""
        key = SortKey(key)
        if key is self.sort_key:
            return replace(self, direction=self.direction.flipped())
        return replace(self, sort_key=key, direction=SortDirection.DESC)


def matches(tx: Transaction, query: TransactionQuery) -> bool:
    needle = query.search.lower()
    if needle and not (
        needle in tx.id.lower() or needle in tx.from_account.lower() or needle in tx.to_account.lower()
    ):
        return False
    if query.risk_level != ALL_LEVELS and tx.risk_level.value != query.risk_level:
        return False
    return True


def sort_value(tx: Transaction, key: SortKey) -> Any:
    value = getattr(tx, key.value)
    if key in NUMERIC_KEYS:
        return value
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def query(transactions: Sequence[Transaction], q: TransactionQuery | None = None) -> Tuple[Transaction, ...]:
    """Filtre puis trie (stable) ; retourne un nouveau tuple, l’entrée n’est pas modifiée."""
    q = q or TransactionQuery()
    selected = [tx for tx in transactions if matches(tx, q)]
    selected.sort(key=lambda tx: sort_value(tx, q.sort_key), reverse=q.direction is SortDirection.DESC)
    return tuple(selected)


def related_transactions(transactions: Sequence[Transaction], account_id: str) -> Tuple[Transaction, ...]:
    """Sélection d’un nœud du graphe : transactions où le compte est expéditeur ou destinataire."""
    return tuple(tx for tx in transactions if tx.touches(account_id))


def paginate(items: Sequence[Transaction], page: int = 1, page_size: int = 20) -> Tuple[List[Transaction], int]:
    """Découpe une page (1-indexée) ; retourne (items de la page, total)."""
    page = max(1, int(page))
    page_size = max(1, int(page_size))
    start = (page - 1) * page_size
    return list(items[start : start + page_size]), len(items)
