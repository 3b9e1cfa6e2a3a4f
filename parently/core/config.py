"""
Parently settings, read from the environment (and a .env file when present).

Everything else imports `get_settings()`; nothing reads os.environ directly.

Secrets (JWT signing key, field encryption key, LLM API keys) are never
committed; each environment supplies its own.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


# Real environment variables win over .env entries
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)


@dataclass(frozen=True)
class Settings:
    """
    Immutable snapshot of the service configuration.

    Attributes:
        app_name: Name used in startup and shutdown logs
        app_env: development enables uvicorn reload
        log_level: Console log threshold
        log_to_file: Also write logs to the daily file under logs/
        database_url: SQLAlchemy connection string
        redis_url: Key-value cache URL (None selects the in-memory store)
        jwt_secret: HS256 signing secret for access tokens
        encryption_key: Secret used to derive the field encryption key
        groq_api_key: Key for the primary LLM provider
        google_api_key: API key for the Gemini fallback (empty disables it)
        llm_model_fast: Model used for the fast tier
        llm_model_smart: Model used for the smart tier
        llm_model_fallback: Gemini model tried after Groq retries are exhausted
        llm_temperature: Sampling temperature for every tier
        llm_max_retries: Attempts per LLM call before falling back
        llm_timeout_seconds: Per-request timeout on the outbound LLM call
        llm_backoff_seconds: Base of the exponential backoff between attempts
        allowed_origins: Origins allowed to call the API from a browser
    """
    # Application settings
    app_name: str
    app_env: str
    log_level: str
    log_to_file: bool

    # Storage settings
    database_url: str
    redis_url: Optional[str]

    # Security settings
    jwt_secret: str
    encryption_key: str
    access_token_ttl_seconds: int
    refresh_token_ttl_seconds: int

    # LLM settings
    groq_api_key: str
    google_api_key: str
    llm_model_fast: str
    llm_model_smart: str
    llm_model_fallback: str
    llm_temperature: float
    llm_max_retries: int
    llm_timeout_seconds: float
    llm_backoff_seconds: float

    # HTTP settings
    allowed_origins: Tuple[str, ...]
    enable_audit_logging: bool

    def is_development(self) -> bool:
        return self.app_env.lower() == "development"


def _get_env(key: str, default: Optional[str] = None) -> str:
    """Read a variable; a missing one with no default is a startup error."""
    value = os.environ.get(key, default)
    if value is None:
        raise ValueError(f"{key} must be set (see .env.example)")
    return value


def _get_bool(key: str, default: str) -> bool:
    return _get_env(key, default).lower() == "true"


def _parse_origins(raw: str) -> Tuple[str, ...]:
    return tuple(o.strip() for o in raw.split(",") if o.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Build the settings once per process.

    Tests that change the environment call get_settings.cache_clear().

    Raises:
        ValueError: JWT_SECRET, ENCRYPTION_KEY or GROQ_API_KEY is missing
    """
    database_url = _get_env("DATABASE_URL", "sqlite:///./parently.db")

    # Managed Postgres providers still hand out the legacy scheme
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    return Settings(
        # Application
        app_name=_get_env("APP_NAME", "Parently"),
        app_env=_get_env("APP_ENV", "development"),
        log_level=_get_env("LOG_LEVEL", "INFO"),
        log_to_file=_get_bool("LOG_TO_FILE", "true"),

        # Storage
        database_url=database_url,
        redis_url=os.environ.get("REDIS_URL") or None,

        # Security
        jwt_secret=_get_env("JWT_SECRET"),
        encryption_key=_get_env("ENCRYPTION_KEY"),
        access_token_ttl_seconds=int(_get_env("ACCESS_TOKEN_TTL_SECONDS", str(15 * 60))),
        refresh_token_ttl_seconds=int(_get_env("REFRESH_TOKEN_TTL_SECONDS", str(7 * 24 * 60 * 60))),

        # LLM
        groq_api_key=_get_env("GROQ_API_KEY"),
        google_api_key=_get_env("GOOGLE_API_KEY", ""),
        llm_model_fast=_get_env("LLM_MODEL_FAST", "llama-3.1-8b-instant"),
        llm_model_smart=_get_env("LLM_MODEL_SMART", "llama-3.3-70b-versatile"),
        llm_model_fallback=_get_env("LLM_MODEL_FALLBACK", "gemini-2.0-flash"),
        llm_temperature=float(_get_env("LLM_TEMPERATURE", "0.4")),
        llm_max_retries=int(_get_env("LLM_MAX_RETRIES", "3")),
        llm_timeout_seconds=float(_get_env("LLM_TIMEOUT_SECONDS", "10")),
        llm_backoff_seconds=float(_get_env("LLM_BACKOFF_SECONDS", "1.0")),

        # HTTP
        allowed_origins=_parse_origins(_get_env("ALLOWED_ORIGINS", "")),
        enable_audit_logging=_get_bool("ENABLE_AUDIT_LOGGING", "true"),
    )
