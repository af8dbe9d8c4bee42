"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for NeonThreads happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Used to refuse a missing or weak
      JWT_SECRET before anything gets signed with it.

Security notes:
  [M6] JWT_SECRET shorter than 32 chars is rejected outright. HS256 signing
       relies on key entropy -- a short key weakens every issued token.

  [M7] A missing JWT_SECRET is a hard startup failure. Signing with an empty
       secret would produce tokens anyone can forge.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or catalog/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("neonthreads.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'neonthreads.db'}"

_MIN_SECRET_LENGTH = 32


class ConfigurationError(RuntimeError):
    """Raised when the environment cannot produce a usable Settings object.

    Fatal by contract: the lifespan and the CLI let it propagate so the
    process exits instead of serving requests with a broken config.
    """


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except jwt_secret has a default so local runs only need
    JWT_SECRET exported. The model_validator enforces the secret policy.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured"; the validator raises.
    jwt_secret: str = ""
    database_url: str = _DEFAULT_DB_URL
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # 0 disables the exp claim and the cookie max-age (non-expiring session).
    token_expire_seconds: int = 24 * 3600

    cookie_name: str = "token"
    cookie_domain: str = "localhost"
    cookie_samesite: str = "strict"
    cookie_secure: bool = False
    cookie_httponly: bool = True

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Enforce the JWT_SECRET policy [M6][M7].

        Missing secret: refuse to start. There is no development fallback --
        tests and local runs export a fixed JWT_SECRET instead.

        Short secret: refuse to start. Short keys have insufficient entropy
        for HMAC-SHA256 signing.
        """
        if not self.jwt_secret:
            raise ValueError(
                "JWT_SECRET is required. Set JWT_SECRET in your environment or .env file."
            )
        if len(self.jwt_secret) < _MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET must be at least {_MIN_SECRET_LENGTH} characters.")
        if self.token_expire_seconds < 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be zero or positive.")
        if self.cookie_samesite.lower() not in ("strict", "lax", "none"):
            raise ValueError("COOKIE_SAMESITE must be one of: strict, lax, none.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    A validation failure is re-raised as ConfigurationError so callers see a
    single startup error type rather than pydantic internals.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    try:
        return Settings()
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        logger.error("Invalid configuration: %s", messages)
        raise ConfigurationError(messages) from exc
