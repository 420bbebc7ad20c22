from __future__ import annotations

from amlsentinel.core.settings import Settings, settings as default_settings
from amlsentinel.scoring.base import RiskScorer
from amlsentinel.scoring.hybrid import HybridRiskScorer
from amlsentinel.scoring.remote import RemoteRiskScorer
from amlsentinel.scoring.rules import RulesRiskScorer


def build_scorer(cfg: Settings | None = None) -> RiskScorer:
    """Instancie le scorer configuré (SCORER_KIND : rules | hybrid | remote)."""
    cfg = cfg or default_settings
    kind = (cfg.SCORER_KIND or "hybrid").strip().lower()

    if kind == "rules":
        return RulesRiskScorer()
    if kind == "hybrid":
        return HybridRiskScorer(models_dir=cfg.MODELS_DIR)
    if kind == "remote":
        return RemoteRiskScorer(cfg.SCORER_URL, timeout=cfg.SCORING_TIMEOUT_S)

    raise ValueError(f"SCORER_KIND inconnu: {cfg.SCORER_KIND!r}")
