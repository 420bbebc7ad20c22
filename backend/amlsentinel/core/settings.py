from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

"""
Core Settings.

Rôle (fonctionnel) :
- Centralise la configuration de l’application via variables d’environnement (Pydantic Settings).
- Charge un fichier .env (par défaut backend/.env) pour faciliter le dev/local.
- Fournit un objet global `settings` importable dans tout le projet.

Organisation :
- App : nom, env, debug, niveau de log.
- CORS : origines autorisées (front).
- Auth (démo) : API_KEY.
- Scoring : type de scorer, timeout, retries, concurrence.
- Ingestion / graphe : politique self-transfer, type de compte par défaut.

Note :
- Les seuils HIGH/MEDIUM/LOW ne sont PAS ici : ils sont des constantes du domaine
  (amlsentinel.domain.risk) pour que tableau, graphe et rapport restent d’accord.
"""

# Pointe toujours vers backend/.env (racine backend/)
BACKEND_DIR = Path(__file__).resolve().parents[2]
ENV_PATH = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    # --- App ---
    APP_NAME: str = "AML Sentinel API"
    ENV: str = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_MS: int = 800

    # --- CORS ---
    # Liste CSV des origines autorisées (ex: front Vite)
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # --- Auth (démo) ---
    # Clé API optionnelle. Si vide : bypass en dev (voir core/security.py).
    API_KEY: str = ""

    # --- Scoring ---
    # rules | hybrid | remote
    SCORER_KIND: str = "hybrid"
    SCORER_URL: str = ""
    SCORING_TIMEOUT_S: float = 5.0
    SCORING_MAX_RETRIES: int = 2
    SCORING_BACKOFF_S: float = 0.25
    SCORING_CONCURRENCY: int = 8

    # --- Ingestion / graphe ---
    ALLOW_SELF_TRANSFERS: bool = False
    DEFAULT_ACCOUNT_TYPE: str = "Standard"

    # --- ML ---
    MODELS_DIR: Path = BACKEND_DIR / "models"
    MODEL_VERSION: str = "rules_v1"

    # Config Pydantic Settings
    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instance globale importable
settings = Settings()
