"""
Robotics CPQ Pricing API
FastAPI backend: quotation pricing, three-currency catalog prices and the
bulk-operation audit guard, over async SQLAlchemy (PostgreSQL in production).
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cpq.config import get_settings
from cpq.services.logging_config import setup_logging
from cpq.services.middleware import RequestTimingMiddleware

settings = get_settings()
setup_logging(level=settings.log_level, json_output=settings.json_logs)
logger = logging.getLogger("cpq-api")

if not settings.database_url:
    logger.warning("MISSING env var: DATABASE_URL — running in dev mode")


@asynccontextmanager
async def lifespan(app: FastAPI):
    from cpq.db import engine, init_db

    await init_db()
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description="Quotation pricing and currency engine for robotics integration projects",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With", "X-Request-ID", "X-Team-ID"],
)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware, slow_request_ms=settings.slow_request_ms)

# Routers
from cpq.api.quotation_routes import router as quotation_router  # noqa: E402
from cpq.api.catalog_routes import router as catalog_router  # noqa: E402
from cpq.api.bulk_operation_routes import router as bulk_operation_router  # noqa: E402
from cpq.api.settings_routes import router as settings_router  # noqa: E402

app.include_router(quotation_router)
app.include_router(catalog_router)
app.include_router(bulk_operation_router)
app.include_router(settings_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": "1.0.0",
        "db_configured": bool(settings.database_url),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("cpq.main:app", host="0.0.0.0", port=8000, reload=False)
