from __future__ import annotations

import io
import logging
from typing import Dict, List

import pandas as pd

from amlsentinel.core.errors import ValidationError, ValidationIssue

"""
CSV Records.

Rôle (fonctionnel) :
- Transforme un export CSV (1 ligne d’en-tête + 1 transaction par ligne) en
  enregistrements bruts (colonne -> string), prêts pour la validation du cœur.
- Vérifie la présence des colonnes minimales avant toute validation ligne à ligne.

Notes :
- Tout est lu en texte (dtype=str) : la conversion des montants / dates reste
  l’affaire de la validation (erreurs localisées par index + champ).
- Les problèmes propres au fichier (illisible, colonne manquante) portent l’index -1.
"""

log = logging.getLogger("amlsentinel.csv")

REQUIRED_COLUMNS = ("amount", "from_account", "to_account")
FILE_LEVEL = -1


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, str]]:
    """DataFrame -> liste de dicts (noms de colonnes nettoyés, cellules vides = "")."""
    df = df.rename(columns=lambda c: str(c).strip().lower())
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValidationError(
            [ValidationIssue(index=FILE_LEVEL, field=c, message="colonne manquante dans le CSV") for c in missing]
        )
    return df.fillna("").astype(str).to_dict(orient="records")


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Parse le contenu d’un CSV. Un fichier vide donne un batch vide."""
    if not text.strip():
        return []
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.ParserError as exc:
        raise ValidationError([ValidationIssue(index=FILE_LEVEL, field="csv", message=f"CSV illisible: {exc}")]) from exc

    records = records_from_frame(df)
    log.info("csv parsed", extra={"batch_size": len(records)})
    return records
