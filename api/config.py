"""Environment-driven settings for the expense tracker API."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional


def _split_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    env: str = "prod"
    database_url: str = "sqlite:///expenses.db"
    request_timeout: float = 5.0
    allowed_origins: List[str] = field(default_factory=list)
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8080

    @property
    def is_dev(self) -> bool:
        return self.env in {"dev", "development"}

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            env=os.getenv("EXPENSE_TRACKER_ENV", "prod").lower(),
            database_url=os.getenv("EXPENSE_TRACKER_DATABASE_URL", "sqlite:///expenses.db"),
            request_timeout=float(os.getenv("EXPENSE_TRACKER_REQUEST_TIMEOUT", "5")),
            allowed_origins=_split_origins(os.getenv("EXPENSE_TRACKER_ALLOWED_ORIGINS")),
            log_level=os.getenv("EXPENSE_TRACKER_LOG_LEVEL", "INFO").upper(),
            host=os.getenv("EXPENSE_TRACKER_HOST", "127.0.0.1"),
            port=int(os.getenv("EXPENSE_TRACKER_PORT", "8080")),
        )
