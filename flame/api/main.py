"""
FastAPI application exposing dashboard export/import.

Usage:
    uvicorn flame.api.main:create_app --factory --host 0.0.0.0 --port 5005
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from flame import __version__
from flame.api.error_handlers import register_error_handlers
from flame.api.middleware import correlation_id_middleware
from flame.api.routers import transfer
from flame.config import AppConfig, load_config
from flame.core.logging_utils import get_logger
from flame.core.time_utils import isoformat_z, utc_now
from flame.db.database import Database
from flame.transfer.exporter import ExportService
from flame.transfer.importer import ImportService

logger = get_logger(__name__)

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5005",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5005",
]


def create_app(config: AppConfig | None = None, db: Database | None = None) -> FastAPI:
    """Build the API. ``config`` and ``db`` default to the environment's settings."""
    cfg = config or load_config()
    owns_db = db is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = db or Database(path=cfg.runtime.db_path)
        if owns_db:
            database.migrate()
            logger.info("database_initialized", extra={"db_path": cfg.runtime.db_path})
        app.state.db = database
        app.state.import_service = ImportService(
            database, pin_categories_by_default=cfg.dashboard.pin_categories_by_default
        )
        app.state.export_service = ExportService(
            database, product_name=cfg.dashboard.product_name
        )
        try:
            yield
        finally:
            if owns_db:
                database.close()
                logger.info("database_closed")

    app = FastAPI(
        title=f"{cfg.dashboard.product_name.title()} Data Transfer API",
        description="Export and import of dashboard apps, categories and bookmarks",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = cfg

    allowed_origins = list(cfg.dashboard.allowed_origins)
    if not allowed_origins:
        logger.warning("ALLOWED_ORIGINS not configured - defaulting to localhost only")
        allowed_origins = DEFAULT_ORIGINS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Correlation-ID"],
        expose_headers=["Content-Disposition", "X-Correlation-ID"],
        max_age=3600,
    )
    app.middleware("http")(correlation_id_middleware)

    app.include_router(transfer.router, prefix="/api", tags=["Transfer"])

    @app.get("/health")
    async def health_check(request: Request):
        """Liveness probe."""
        return {
            "success": True,
            "status": "healthy",
            "timestamp": isoformat_z(utc_now()),
            "correlation_id": getattr(request.state, "correlation_id", None),
        }

    register_error_handlers(app)

    return app


if __name__ == "__main__":
    import uvicorn

    from flame.core.logging_utils import setup_json_logging

    settings = load_config()
    setup_json_logging(
        settings.runtime.log_level,
        settings.runtime.log_file,
        use_loguru=settings.runtime.use_loguru,
    )
    uvicorn.run(
        create_app(settings),
        # nosec B104 - intentional for container deployments
        host="0.0.0.0",
        port=5005,
        log_level="info",
    )
