from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.listafirme.ro/api"
DEFAULT_TEST_CUI = "14837428"


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Lista Firme provider
    lista_firme_api_key: str | None
    lista_firme_base_url: str
    api_timeout_seconds: float
    api_open_timeout_seconds: float
    test_cui: str

    # Serve the fixed demo record for test_cui when no key is configured
    mock_mode: bool

    # Core/runtime
    db_path: str
    run_env: str
    log_level: str
    log_retention_days: int

    # Logging/tracing
    call_trace: bool = False
    call_trace_path: str = "logs/lista_firme_calls.jsonl"

    user_agent: str = "ListaFirmeLookup/1.0"

    @property
    def configured(self) -> bool:
        return bool(self.lista_firme_api_key and self.lista_firme_api_key.strip())

    @property
    def info_url(self) -> str:
        return f"{self.lista_firme_base_url.rstrip('/')}/info-v2.asp"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    run_env = os.getenv("RUN_ENV", "local")
    return Settings(
        lista_firme_api_key=os.getenv("LISTA_FIRME_API_KEY") or None,
        lista_firme_base_url=os.getenv("LISTA_FIRME_BASE_URL", DEFAULT_BASE_URL),
        api_timeout_seconds=float(os.getenv("LISTA_FIRME_TIMEOUT", "30")),
        api_open_timeout_seconds=float(os.getenv("LISTA_FIRME_OPEN_TIMEOUT", "10")),
        test_cui=os.getenv("LISTA_FIRME_TEST_CUI", DEFAULT_TEST_CUI),
        mock_mode=_as_bool(os.getenv("LISTA_FIRME_MOCK_MODE"), default=run_env.lower() != "production"),
        db_path=os.getenv("DB_PATH", "lookups.db"),
        run_env=run_env,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_retention_days=int(os.getenv("API_LOG_RETENTION_DAYS", "30")),
        call_trace=_as_bool(os.getenv("LISTA_FIRME_TRACE")),
        call_trace_path=os.getenv("LISTA_FIRME_TRACE_PATH", "logs/lista_firme_calls.jsonl"),
    )


def check_configuration(settings: Settings) -> bool:
    """Log the state of the provider key at startup. Returns True when a key is set.

    Skipped entirely under RUN_ENV=test.
    """
    if settings.run_env.lower() == "test":
        return settings.configured
    if not settings.configured:
        if settings.mock_mode:
            logger.warning(
                "Lista Firme API key not configured; mock data will be served for CUI %s. "
                "Set LISTA_FIRME_API_KEY (environment or .env) to enable live lookups.",
                settings.test_cui,
            )
        else:
            logger.warning("Lista Firme API key not configured and mock mode is off; lookups will fail.")
        return False
    logger.info("Lista Firme API key configured")
    if len(settings.lista_firme_api_key.strip()) < 10:
        logger.warning("Lista Firme API key seems too short. Please verify it is correct.")
    return True
