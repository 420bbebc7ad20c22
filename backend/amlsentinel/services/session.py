from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Tuple

from amlsentinel.core.errors import ScoringUnavailable, ValidationError
from amlsentinel.core.settings import Settings, settings as default_settings
from amlsentinel.domain.models import AccountGraph, RiskAssessment, Transaction
from amlsentinel.domain.validation import RawTransaction, validate_batch
from amlsentinel.scoring.base import RiskScorer
from amlsentinel.services import query_engine
from amlsentinel.services.graph_builder import GraphBuilder
from amlsentinel.services.query_engine import TransactionQuery
from amlsentinel.services.report_service import ReportData, SessionSummary, build_report_data, summarize
from amlsentinel.services.scoring_gateway import ScoringGateway
from amlsentinel.services.transaction_store import TransactionStore

"""
Session Coordinator (AnalysisSession).

Rôle (fonctionnel) :
- Orchestre une session d’analyse :
  upload -> ingestion (validation + scoring) -> store -> reconstruction du graphe
- Expose les vues lecture seule consommées par la présentation et le rapport :
  transactions, requête tableau, graphe, transactions d’un compte, résumé, données de rapport.
- Expose la simulation “what-if” : scoring seul, sans toucher au store ni au graphe.

Principes :
- Les erreurs d’ingestion / scoring remontent telles quelles (pas d’avalement) :
  la couche API les traduit en réponses lisibles.
- Le graphe est mis en cache par version du store : il est recalculé après chaque
  ingestion / clear, jamais modifié à la main.
"""

log = logging.getLogger("amlsentinel.session")


@dataclass(frozen=True)
class UploadResult:
    added: Tuple[Transaction, ...]
    transactions: Tuple[Transaction, ...]
    graph: AccountGraph


class AnalysisSession:
    def __init__(
        self,
        scorer: RiskScorer,
        *,
        cfg: Settings | None = None,
        account_types: Optional[Mapping[str, str]] = None,
    ) -> None:
        cfg = cfg or default_settings
        self.scorer = scorer
        self.gateway = ScoringGateway.from_settings(scorer, cfg)
        self.store = TransactionStore(self.gateway, allow_self_transfers=cfg.ALLOW_SELF_TRANSFERS)
        self.graph_builder = GraphBuilder(
            default_account_type=cfg.DEFAULT_ACCOUNT_TYPE,
            account_types=account_types,
        )
        self._graph: AccountGraph = self.graph_builder.build(())
        self._graph_version = self.store.version

    # --- écriture ---
    async def upload(self, raws: Iterable[RawTransaction], *, replace: bool = False) -> UploadResult:
        raws = list(raws)
        try:
            added = await self.store.ingest(raws, replace=replace)
        except ValidationError as exc:
            log.warning("upload rejected: %s", exc, extra={"batch_size": len(raws), "issue_count": len(exc.issues)})
            raise
        except ScoringUnavailable as exc:
            log.error("upload failed: %s", exc, extra={"batch_size": len(raws), "record_index": exc.index})
            raise

        return UploadResult(added=added, transactions=self.store.all(), graph=self.graph())

    def clear(self) -> None:
        self.store.clear()
        self.graph()

    # --- simulation (non persistée) ---
    async def simulate(self, raw: RawTransaction) -> RiskAssessment:
        """Évalue une transaction hypothétique. Ne modifie ni le store ni le graphe."""
        record = validate_batch([raw], allow_self_transfers=self.store.allow_self_transfers)[0]
        return await self.gateway.assess(self.store.preview_request(record))

    # --- lecture ---
    def transactions(self) -> Tuple[Transaction, ...]:
        return self.store.all()

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self.store.get(transaction_id)

    def query(self, q: TransactionQuery | None = None) -> Tuple[Transaction, ...]:
        return query_engine.query(self.store.all(), q)

    def graph(self) -> AccountGraph:
        if self._graph_version != self.store.version:
            self._graph = self.graph_builder.build(self.store.all())
            self._graph_version = self.store.version
            log.info(
                "graph rebuilt",
                extra={"node_count": len(self._graph.nodes), "edge_count": len(self._graph.edges)},
            )
        return self._graph

    def related(self, account_id: str) -> Tuple[Transaction, ...]:
        return query_engine.related_transactions(self.store.all(), account_id)

    def summary(self) -> SessionSummary:
        return summarize(self.store.all(), self.graph())

    def report_data(self) -> ReportData:
        return build_report_data(self.store.all(), self.graph())

    async def aclose(self) -> None:
        await self.scorer.aclose()
