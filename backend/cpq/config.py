"""
Runtime configuration — single source of truth for environment-driven settings.

Import get_settings() rather than reading os.environ in services.
"""
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

# Documented fallback rates used when no pricing settings have been cached
FALLBACK_USD_TO_ILS: float = 3.7
FALLBACK_EUR_TO_ILS: float = 4.0

# Requests slower than this are logged at WARNING by the timing middleware
DEFAULT_SLOW_REQUEST_MS: float = 1000.0

# Markers older than this are treated as orphaned (crashed bulk operation)
DEFAULT_BULK_OPERATION_TTL_SECONDS: int = 300


def _normalise_db_url(raw: str) -> str:
    url = raw
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


class Settings(BaseModel):
    app_name: str = "Robotics CPQ Pricing API"
    database_url: str = ""
    log_level: str = "INFO"
    json_logs: bool = True
    slow_request_ms: float = DEFAULT_SLOW_REQUEST_MS
    bulk_operation_ttl_seconds: int = DEFAULT_BULK_OPERATION_TTL_SECONDS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    fallback_usd_to_ils: float = FALLBACK_USD_TO_ILS
    fallback_eur_to_ils: float = FALLBACK_EUR_TO_ILS


@lru_cache()
def get_settings() -> Settings:
    cors = os.getenv("CORS_ORIGINS", "")
    return Settings(
        database_url=_normalise_db_url(os.getenv("DATABASE_URL", "")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        json_logs=os.getenv("LOG_FORMAT", "json").lower() != "text",
        slow_request_ms=float(os.getenv("SLOW_REQUEST_MS", DEFAULT_SLOW_REQUEST_MS)),
        bulk_operation_ttl_seconds=int(
            os.getenv("BULK_OPERATION_TTL_SECONDS", DEFAULT_BULK_OPERATION_TTL_SECONDS)
        ),
        cors_origins=[o.strip() for o in cors.split(",") if o.strip()] or Settings().cors_origins,
        fallback_usd_to_ils=float(os.getenv("FALLBACK_USD_TO_ILS", FALLBACK_USD_TO_ILS)),
        fallback_eur_to_ils=float(os.getenv("FALLBACK_EUR_TO_ILS", FALLBACK_EUR_TO_ILS)),
    )
