"""Application configuration helpers."""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _default_data_root() -> Path:
    """Return the platform specific directory used for persistent data."""

    if os.name == "nt":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home()))
        return base / "ResourceLedger"
    return Path.home() / ".resource_ledger"


def _default_database_path() -> Path:
    """Resolve the SQLite database path taking overrides into account."""

    override = os.environ.get("LEDGER_DB")
    if override:
        return Path(override).expanduser()
    return _default_data_root() / "ledger.sqlite3"


def _default_secret_key() -> str:
    """Return the secret key used for signing session tokens."""

    override = os.environ.get("LEDGER_SECRET")
    if override:
        return override
    return secrets.token_hex(32)


@dataclass(slots=True)
class Settings:
    """Runtime configuration loaded from environment variables."""

    app_name: str = field(default_factory=lambda: os.environ.get("LEDGER_APP_NAME", "Strategic Resource Ledger"))
    host: str = field(default_factory=lambda: os.environ.get("LEDGER_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.environ.get("LEDGER_PORT", "8000")))
    reload: bool = field(default_factory=lambda: _env_bool("LEDGER_RELOAD"))
    log_level: str = field(default_factory=lambda: os.environ.get("LEDGER_LOG_LEVEL", "info"))
    database_path: Path = field(default_factory=_default_database_path)
    # Full SQLAlchemy URL; takes precedence over ``database_path`` when set.
    database_url: str | None = field(default_factory=lambda: os.environ.get("LEDGER_DATABASE_URL") or None)
    secret_key: str = field(default_factory=_default_secret_key)
    session_max_age: int = field(default_factory=lambda: int(os.environ.get("LEDGER_SESSION_MAX_AGE", str(60 * 60 * 8))))
    default_page_size: int = field(default_factory=lambda: int(os.environ.get("LEDGER_PAGE_SIZE", "8")))
    max_page_size: int = field(default_factory=lambda: int(os.environ.get("LEDGER_MAX_PAGE_SIZE", "100")))
    max_retries: int = field(default_factory=lambda: int(os.environ.get("LEDGER_MAX_RETRIES", "5")))
    retry_backoff: float = field(default_factory=lambda: float(os.environ.get("LEDGER_RETRY_BACKOFF", "0.05")))
    busy_timeout: float = field(default_factory=lambda: float(os.environ.get("LEDGER_BUSY_TIMEOUT", "30")))
    allow_negative_balance: bool = field(default_factory=lambda: _env_bool("LEDGER_ALLOW_NEGATIVE_BALANCE"))

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.database_path}"

    def ensure_storage(self) -> None:
        """Ensure that the database directory exists for file-backed SQLite."""

        if self.database_url is None:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    settings = Settings()
    settings.ensure_storage()
    return settings
