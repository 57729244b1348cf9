from dataclasses import dataclass
from functools import lru_cache
import os


def _to_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


def _to_float(value: str | None, *, default: float, minimum: float) -> float:
    if value is None:
        return default
    parsed = float(value)
    return max(minimum, parsed)


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_echo: bool
    broker_required_acks: int
    broker_ack_timeout_ms: int
    broker_connect_timeout_seconds: float
    broker_flush_timeout_seconds: float
    web_dir: str
    host: str
    port: int
    log_level: str


def _default_database_url() -> str:
    db_path = os.getenv("DBPATH", "streams.db")
    return f"sqlite+pysqlite:///{db_path}"


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("API_DATABASE_URL") or _default_database_url(),
        db_echo=_to_bool(os.getenv("API_DB_ECHO"), default=False),
        broker_required_acks=_to_int(os.getenv("BROKER_REQUIRED_ACKS"), default=1, minimum=-1),
        broker_ack_timeout_ms=_to_int(os.getenv("BROKER_ACK_TIMEOUT_MS"), default=100, minimum=1),
        broker_connect_timeout_seconds=_to_float(
            os.getenv("BROKER_CONNECT_TIMEOUT_SECONDS"), default=10.0, minimum=0.1
        ),
        broker_flush_timeout_seconds=_to_float(
            os.getenv("BROKER_FLUSH_TIMEOUT_SECONDS"), default=10.0, minimum=0.1
        ),
        web_dir=os.getenv("WEB_DIR", "web"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_to_int(os.getenv("PORT"), default=3000, minimum=1),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
