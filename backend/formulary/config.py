"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - import_folder is a relocation value; resolve_import_folder() turns it into
      an absolute path

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: works out-of-the-box with docker-compose
"""

import os
import sys
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FOLDER_NAME = "CoptisFormulas"


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://formulary:formulary@db:5432/formulary"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Ingestion
    import_folder: str = ""
    import_settle_delay_seconds: float = 1.0
    import_scan_interval_seconds: float = 5.0
    watcher_enabled: bool = True

    # Raw material conflict retries: one lookup per entry
    raw_material_retry_delays_ms: list[int] = [50, 100, 150]

    default_currency: str = "EUR"

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# ─── Import folder resolution ───────────────────────────────────

def _program_data() -> Path:
    if os.environ.get("PROGRAMDATA"):
        return Path(os.environ["PROGRAMDATA"])
    return Path("C:/ProgramData") if sys.platform == "win32" else Path("/var/lib")


def _common_documents() -> Path:
    if os.environ.get("PUBLIC"):
        return Path(os.environ["PUBLIC"]) / "Documents"
    return Path("/srv")


def _my_documents() -> Path:
    return Path.home() / "Documents"


_PLACEHOLDERS = (
    ("{ProgramData}", _program_data),
    ("{CommonDocuments}", _common_documents),
    ("{MyDocuments}", _my_documents),
)


def resolve_import_folder(configured: str, base_dir: Path | None = None) -> Path:
    """Resolve the watched folder from its configured relocation value.

    Empty → <ProgramData>/CoptisFormulas. Only the first placeholder found (in
    ProgramData, CommonDocuments, MyDocuments order) is substituted. Absolute
    paths are kept; relative paths hang off base_dir (defaults to the cwd).
    """
    if not configured:
        return _program_data() / DEFAULT_FOLDER_NAME

    for token, root in _PLACEHOLDERS:
        if token in configured:
            return Path(configured.replace(token, str(root())))

    path = Path(configured)
    if path.is_absolute():
        return path
    return (base_dir or Path.cwd()) / path
