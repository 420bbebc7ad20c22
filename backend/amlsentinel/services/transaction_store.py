from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from amlsentinel.core.errors import IngestionInProgress
from amlsentinel.domain.models import ScoringRequest, Transaction
from amlsentinel.domain.validation import RawTransaction, TransactionRecord, validate_batch
from amlsentinel.services.feature_builder import FeatureBuilder
from amlsentinel.services.scoring_gateway import ScoringGateway

"""
Transaction Store.

Rôle (fonctionnel) :
- Détient l’ensemble canonique des transactions de la session (en mémoire).
- ingest() : valide -> enrichit (features) -> score (gateway) -> attribue les ids -> ajoute.
- all() : snapshot immuable (tuple), dans l’ordre d’insertion.
- clear() : remet la session à zéro (refusé pendant une ingestion).

Atomicité :
- Un batch est ingéré en entier ou pas du tout : validation, échec de scoring ou
  annulation pendant le scoring -> le store reste strictement inchangé.
- Les ids (TXN-000001, …) ne sont attribués qu’au commit : un batch échoué ne
  consomme aucun numéro.

Concurrence :
- Les ingestions sont sérialisées (asyncio.Lock) : un batch à la fois par session.
- Les lecteurs reçoivent un tuple : une ingestion ultérieure ne modifie pas
  un snapshot déjà retourné.
"""

log = logging.getLogger("amlsentinel.store")

ID_PREFIX = "TXN"


def format_transaction_id(seq: int, prefix: str = ID_PREFIX) -> str:
    """Id stable et triable (zéro-paddé) : TXN-000042."""
    return f"{prefix}-{seq:06d}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionStore:
    def __init__(
        self,
        gateway: ScoringGateway,
        *,
        allow_self_transfers: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.gateway = gateway
        self.allow_self_transfers = allow_self_transfers
        self._clock = clock

        self._items: Tuple[Transaction, ...] = ()
        self._by_id: Dict[str, Transaction] = {}
        self._seq = 0
        self._version = 0

        self._lock = asyncio.Lock()
        self._pending = 0

    # --- lecture ---
    @property
    def version(self) -> int:
        """Incrémenté à chaque commit / clear (clé de cache pour les vues dérivées)."""
        return self._version

    @property
    def ingesting(self) -> bool:
        return self._pending > 0

    def all(self) -> Tuple[Transaction, ...]:
        return self._items

    def get(self, transaction_id: str) -> Optional[Transaction]:
        return self._by_id.get(transaction_id)

    def __len__(self) -> int:
        return len(self._items)

    # --- écriture ---
    def _prepare(self, records: Sequence[TransactionRecord], history: Sequence[Transaction]) -> List[ScoringRequest]:
        """Construit les requêtes de scoring (features calculées sur l’historique + le batch en cours)."""
        fb = FeatureBuilder.from_history(history)
        now = self._clock()

        requests: List[ScoringRequest] = []
        for rec in records:
            ts = rec.timestamp or now
            features = fb.build(
                amount=rec.amount,
                from_account=rec.from_account,
                to_account=rec.to_account,
                timestamp=ts,
                transaction_type=rec.transaction_type,
            )
            req = ScoringRequest(
                amount=rec.amount,
                from_account=rec.from_account,
                to_account=rec.to_account,
                timestamp=ts,
                transaction_type=rec.transaction_type,
                features=features,
            )
            fb.remember(req)
            requests.append(req)
        return requests

    def preview_request(self, record: TransactionRecord) -> ScoringRequest:
        """Requête de scoring pour une transaction hypothétique (simulation), sans effet sur le store."""
        return self._prepare([record], self._items)[0]

    async def ingest(self, raws: Sequence[RawTransaction], *, replace: bool = False) -> Tuple[Transaction, ...]:
        """
        Ingère un batch complet et retourne les transactions ajoutées (ordre d’entrée).

        replace=True : le batch remplace le contenu actuel (équivalent clear + ingest,
        mais le remplacement n’a lieu qu’une fois le nouveau batch entièrement scoré).
        """
        self._pending += 1
        try:
            records = validate_batch(raws, allow_self_transfers=self.allow_self_transfers)

            async with self._lock:
                history = () if replace else self._items
                requests = self._prepare(records, history)

                assessments = await self.gateway.assess_batch(requests)

                # --- commit (aucun await à partir d’ici) ---
                seq = 0 if replace else self._seq
                added: List[Transaction] = []
                for req, assessment in zip(requests, assessments):
                    seq += 1
                    added.append(Transaction.from_assessment(format_transaction_id(seq), req, assessment))

                base = () if replace else self._items
                self._items = tuple(base) + tuple(added)
                self._by_id = {tx.id: tx for tx in self._items}
                self._seq = seq
                self._version += 1

            log.info(
                "batch ingested",
                extra={"batch_size": len(added), "replace": replace, "store_version": self._version},
            )
            return tuple(added)
        finally:
            self._pending -= 1

    def clear(self) -> None:
        """Remet la session à zéro. Lève IngestionInProgress si un batch est en cours."""
        if self._pending:
            raise IngestionInProgress("Impossible de vider la session : une ingestion est en cours")

        self._items = ()
        self._by_id = {}
        self._seq = 0
        self._version += 1
        log.info("store cleared", extra={"store_version": self._version})
