"""
Runtime settings, read from the environment (and backend/.env via python-dotenv).
"""
import os
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///focus.db"


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    sql_echo: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    stats_timezone: str = "UTC"
    log_level: str = "INFO"

    @property
    def tz(self) -> tzinfo:
        if self.stats_timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.stats_timezone)

    @classmethod
    def from_env(cls) -> "Settings":
        origins = (os.getenv("CORS_ORIGINS") or "").strip()
        return cls(
            database_url=(os.getenv("DATABASE_URL") or "").strip() or DEFAULT_DATABASE_URL,
            sql_echo=(os.getenv("SQL_ECHO") or "").strip().lower() in ("1", "true", "yes"),
            cors_origins=_split_csv(origins) if origins else ["http://localhost:3000"],
            stats_timezone=(os.getenv("STATS_TIMEZONE") or "").strip() or "UTC",
            log_level=(os.getenv("LOG_LEVEL") or "").strip().upper() or "INFO",
        )


settings = Settings.from_env()
