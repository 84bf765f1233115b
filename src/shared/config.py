"""Runtime configuration for the storefront core.

Settings are read from the environment (prefix ``STOREFRONT_``) and an
optional ``.env`` file. ``STOREFRONT_ENV`` selects the overlay:

    - "test"        → in-memory SQLite, quiet logging
    - "development" → SQLite file next to the working directory
    - "production"  → PostgreSQL (psycopg2); ``database_url`` must be set
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_DATABASE_URLS = {
    "test": "sqlite://",
    "development": "sqlite:///storefront.db",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        extra="ignore",
    )

    env: str = "development"
    database_url: str | None = None
    echo_sql: bool = False
    pool_size: int = Field(default=10, ge=1)
    max_overflow: int = Field(default=20, ge=0)

    # Seconds a unit of work may stay open before its commit is refused.
    transaction_timeout: float | None = Field(default=5.0, gt=0)

    # Return a removed cart line's units to the ledger.
    restock_on_remove: bool = False

    log_level: str | None = None

    @model_validator(mode="after")
    def _resolve_database_url(self):
        self.env = self.env.lower()
        if self.database_url is None:
            if self.env not in _DEFAULT_DATABASE_URLS:
                raise ValueError(f"STOREFRONT_DATABASE_URL is required when env is {self.env!r}")
            self.database_url = _DEFAULT_DATABASE_URLS[self.env]
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def reset_settings() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
