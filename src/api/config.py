"""Process settings read from the environment (.env is loaded by the entry points)."""

import os
from dataclasses import dataclass

PRODUCTION = "production"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    database_url: str | None
    host: str = "0.0.0.0"
    port: int = 3000
    app_env: str = "development"
    log_level: str = "DEBUG"
    db_pool_size: int = 10

    @property
    def is_production(self) -> bool:
        return self.app_env == PRODUCTION

    @property
    def graphiql(self) -> bool:
        return not self.is_production

    @classmethod
    def from_env(cls) -> "Settings":
        app_env = os.environ.get("APP_ENV", "development").strip() or "development"
        default_level = "INFO" if app_env == PRODUCTION else "DEBUG"
        log_level = os.environ.get("LOG_LEVEL", default_level).strip().upper() or default_level
        if log_level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid env LOG_LEVEL={log_level!r}; expected one of {', '.join(LOG_LEVELS)}"
            )
        return cls(
            database_url=(os.environ.get("DATABASE_URL") or "").strip() or None,
            host=os.environ.get("HOST", "0.0.0.0").strip(),
            port=int(os.environ.get("PORT", "3000")),
            app_env=app_env,
            log_level=log_level,
            db_pool_size=int(os.environ.get("DB_POOL_SIZE", "10")),
        )

    def require_database_url(self) -> str:
        if not self.database_url:
            raise RuntimeError("Missing required env DATABASE_URL")
        return self.database_url
