from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from amlsentinel.core.errors import ValidationError, ValidationIssue

"""
Domain Validation (RawTransaction -> TransactionRecord).

Rôle (fonctionnel) :
- Valide les enregistrements bruts fournis par le collaborateur d’upload
  (mapping colonne -> valeur, typiquement des strings issues d’un CSV).
- Normalise :
  - amount -> Decimal fini, >= 0 (accepte str / int / float)
  - from_account / to_account -> strings non vides (strip)
  - timestamp -> datetime UTC (ISO-8601, "Z" toléré), optionnel
  - transaction_type -> minuscule, "transfer" par défaut
- Collecte TOUS les problèmes du batch (index + champ) avant d’échouer :
  l’appelant peut surligner chaque ligne fautive.

Notes :
- Les colonnes inconnues sont ignorées (extra="ignore") : un CSV peut en contenir d’autres.
- La politique self-transfer (from == to) est appliquée ici, rejet par défaut.
"""

RawTransaction = Mapping[str, Any]


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse robuste de datetime ISO pour compat clients variés.

    Accepte :
    - "2025-12-21T18:48:00Z"
    - "2025-12-21T18:48:00.4600072Z" (7 digits -> tronqué à 6)
    - "2025-12-21T18:48:00.460007+00:00"
    - "2025-12-21" (minuit UTC)
    """
    s = value.strip()

    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"

    if "." in s:
        head, rest = s.split(".", 1)
        frac, tz = rest, ""
        if "+" in rest:
            frac, tz = rest.split("+", 1)
            tz = "+" + tz
        elif "-" in rest:
            frac, tz = rest.split("-", 1)
            tz = "-" + tz

        digits = "".join(ch for ch in frac if ch.isdigit())[:6]
        s = f"{head}.{digits}{tz}" if digits else f"{head}{tz}"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class TransactionRecord(BaseModel):
    """Enregistrement brut validé, prêt à être enrichi puis scoré."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, frozen=True)

    amount: Decimal = Field(..., ge=Decimal("0"))
    from_account: str = Field(..., min_length=1, max_length=128)
    to_account: str = Field(..., min_length=1, max_length=128)
    timestamp: Optional[datetime] = None
    transaction_type: str = Field(default="transfer", min_length=1, max_length=40)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_to_decimal(cls, v: Any) -> Any:
        """Normalise amount vers Decimal (les CSV envoient des strings, les clients des float)."""
        if isinstance(v, bool):
            return v
        if isinstance(v, Decimal):
            return v
        if isinstance(v, int):
            return Decimal(v)
        if isinstance(v, float):
            return Decimal(str(v))
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return v
            try:
                return Decimal(s)
            except InvalidOperation:
                return v
        return v

    @field_validator("from_account", "to_account", mode="before")
    @classmethod
    def _account_to_str(cls, v: Any) -> Any:
        """Un identifiant numérique (ex: colonne CSV typée) devient une string."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp_parse(cls, v: Any) -> Any:
        if v is None:
            return None
        if isinstance(v, str):
            if not v.strip():
                return None
            return parse_iso_datetime(v)
        return v

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("transaction_type", mode="before")
    @classmethod
    def _type_lower(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return "transfer"
        if isinstance(v, str):
            return v.strip().lower()
        return v


def _issues_from_pydantic(index: int, exc: PydanticValidationError) -> List[ValidationIssue]:
    out: List[ValidationIssue] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "record"
        out.append(ValidationIssue(index=index, field=loc, message=str(err.get("msg", "invalide"))))
    return out


def validate_batch(
    raws: Sequence[RawTransaction],
    *,
    allow_self_transfers: bool = False,
) -> List[TransactionRecord]:
    """
    Valide un batch complet.

    - Retourne les enregistrements normalisés, dans l’ordre d’entrée.
    - Lève ValidationError (tous les problèmes, avec index) si au moins un est invalide.
    """
    records: List[TransactionRecord] = []
    issues: List[ValidationIssue] = []

    for index, raw in enumerate(raws):
        if not isinstance(raw, Mapping):
            issues.append(ValidationIssue(index=index, field="record", message="un enregistrement doit être un objet clé/valeur"))
            continue

        try:
            record = TransactionRecord.model_validate(dict(raw))
        except PydanticValidationError as exc:
            issues.extend(_issues_from_pydantic(index, exc))
            continue

        if not allow_self_transfers and record.from_account == record.to_account:
            issues.append(
                ValidationIssue(index=index, field="to_account", message="self-transfer interdit (from_account == to_account)")
            )
            continue

        records.append(record)

    if issues:
        raise ValidationError(issues)
    return records
