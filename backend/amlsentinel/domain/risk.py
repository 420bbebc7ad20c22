from __future__ import annotations

from enum import Enum
from typing import Iterable

"""
Domain Risk.

Rôle (fonctionnel) :
- Porte la règle de quantification score -> niveau (HIGH / MEDIUM / LOW).
- Porte l’ordre de sévérité utilisé par le graphe (agrégation “max” par compte).
- Porte le statut initial d’une transaction scorée (FLAGGED / PENDING).

Toute la logique de seuils est ici : tableau, graphe et rapport l’importent
au lieu de la recalculer chacun de leur côté.
"""

HIGH_THRESHOLD = 0.7
MEDIUM_THRESHOLD = 0.4


class RiskLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class TransactionStatus(str, Enum):
    FLAGGED = "FLAGGED"
    CLEARED = "CLEARED"
    PENDING = "PENDING"


_SEVERITY = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


def quantize(score: float) -> RiskLevel:
    """Bornes strictes : 0.7 -> MEDIUM, 0.7000001 -> HIGH, 0.4 -> LOW."""
    if score > HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score > MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def severity(level: RiskLevel) -> int:
    return _SEVERITY[RiskLevel(level)]


def max_level(levels: Iterable[RiskLevel]) -> RiskLevel:
    """Niveau le plus sévère d’un ensemble (LOW si vide)."""
    out = RiskLevel.LOW
    for level in levels:
        if severity(level) > severity(out):
            out = RiskLevel(level)
    return out


def initial_status(level: RiskLevel) -> TransactionStatus:
    """Au-dessus du seuil LOW : FLAGGED, sinon PENDING (revue humaine hors périmètre)."""
    if RiskLevel(level) is RiskLevel.LOW:
        return TransactionStatus.PENDING
    return TransactionStatus.FLAGGED
