"""
Name: Task Board Settings

Responsibilities:
  - Read every tunable from the environment (and .env) once, typed
  - Reject nonsense early: unknown storage backends, non-positive limits,
    weak JWT secrets in production

Collaborators:
  - api/main.py: CORS origins, pool bounds
  - container.py: storage backend choice, lane lock timeout, text limits
  - interfaces/api/http/conflict_retry.py: retry budget
  - identity/auth.py: JWT parameters
  - crosscutting/logger.py: log level and format

Notes:
  - get_settings() is cached; tests call get_settings.cache_clear()
  - APP_ENV=test forces the in-memory store (see container.py)
"""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_WEAK_SECRETS = frozenset({"dev-secret", "changeme", "change-me", "password"})
_TEST_ENVS = frozenset({"test", "testing", "ci"})


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    database_url: str
    app_env: str = "development"
    storage_backend: str = "postgres"
    allowed_origins: str = "http://localhost:3000"

    # psycopg pool
    db_pool_min_size: int = Field(default=2, ge=1)
    db_pool_max_size: int = Field(default=10, ge=1)
    db_statement_timeout_ms: int = Field(default=30_000, ge=0)

    # How long a writer waits for a lane before giving up with CONFLICT
    lane_lock_timeout_seconds: float = Field(default=5.0, gt=0)

    max_title_chars: int = Field(default=200, gt=0)
    max_description_chars: int = Field(default=10_000, gt=0)

    # Used by the HTTP layer only; the mutation core never retries
    conflict_retry_attempts: int = Field(default=3, ge=1)
    conflict_retry_base_delay_seconds: float = Field(default=0.05, ge=0)
    conflict_retry_max_delay_seconds: float = Field(default=1.0, ge=0)

    jwt_secret: str = "dev-secret"
    jwt_algorithm: str = "HS256"
    jwt_access_ttl_minutes: int = Field(default=30, gt=0)

    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("storage_backend")
    @classmethod
    def _normalize_backend(cls, value: str) -> str:
        backend = (value or "postgres").strip().lower()
        if backend not in ("postgres", "memory"):
            raise ValueError(f"unknown storage_backend {value!r}")
        return backend

    @model_validator(mode="after")
    def _production_guards(self):
        if self.is_production():
            secret = (self.jwt_secret or "").strip()
            if secret in _WEAK_SECRETS or len(secret) < 32:
                raise ValueError(
                    "production needs a JWT_SECRET of 32+ characters "
                    "that is not a known default"
                )
            if self.storage_backend == "memory":
                raise ValueError("production cannot run on the in-memory store")
        return self

    def validate_pool_params(self) -> None:
        """Raise ValueError when the pool minimum exceeds its maximum."""
        if self.db_pool_min_size > self.db_pool_max_size:
            raise ValueError(
                "db_pool_min_size must not exceed db_pool_max_size "
                f"({self.db_pool_min_size} > {self.db_pool_max_size})"
            )

    def get_allowed_origins_list(self) -> list[str]:
        return [part.strip() for part in self.allowed_origins.split(",") if part.strip()]

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in _TEST_ENVS


@lru_cache
def get_settings() -> Settings:
    """Cached Settings; raises pydantic.ValidationError on a bad environment."""
    settings = Settings()
    settings.validate_pool_params()
    return settings
