import logging
import os
from dataclasses import dataclass


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def build_database_url(use_sqlite: bool = False) -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if use_sqlite or os.getenv("USE_SQLITE", "0") == "1":
        db_path = os.getenv("SQLITE_DB_PATH", "data/bookreviews.db")
        return f"sqlite:///{db_path}"
    user = os.getenv("POSTGRES_USER", "bookreviews")
    password = os.getenv("POSTGRES_PASSWORD", "bookreviews")
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    database = os.getenv("POSTGRES_DB", "bookreviews")
    return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{database}"


@dataclass(frozen=True)
class Settings:
    database_url: str
    openlibrary_base_url: str = "https://openlibrary.org"
    connect_timeout: float = 2.0
    read_timeout: float = 2.0
    max_attempts: int = 3
    retry_wait: float = 0.2
    sync_workers: int = 4
    sync_max_deliveries: int = 3
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, use_sqlite: bool = False) -> "Settings":
        return cls(
            database_url=build_database_url(use_sqlite),
            openlibrary_base_url=os.getenv("OPENLIBRARY_BASE_URL", "https://openlibrary.org"),
            connect_timeout=_float_env("OPENLIBRARY_CONNECT_TIMEOUT", 2.0),
            read_timeout=_float_env("OPENLIBRARY_READ_TIMEOUT", 2.0),
            max_attempts=max(1, _int_env("OPENLIBRARY_MAX_ATTEMPTS", 3)),
            retry_wait=max(0.0, _float_env("OPENLIBRARY_RETRY_WAIT", 0.2)),
            sync_workers=max(1, _int_env("SYNC_WORKERS", 4)),
            sync_max_deliveries=max(1, _int_env("SYNC_MAX_DELIVERIES", 3)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level_name: str | None = None) -> None:
    level_name = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
