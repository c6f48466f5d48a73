import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from farmops import __version__
from farmops.application import get_record_store
from farmops.core.logging_config import setup_logging
from farmops.infrastructure import StaticSessionResolver, configure_session_resolver, load_snapshot
from farmops.routes import assignments, dashboard, financial, pitaks

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    setup_logging(
        level=os.getenv("LOG_LEVEL", "INFO"),
        json_output=os.getenv("LOG_JSON", "true").lower() in {"1", "true", "yes"},
    )
    app = FastAPI(title="FarmOps Analytics API", version=__version__)

    session_id = (os.getenv("FARMOPS_SESSION_ID") or "").strip()
    if session_id:
        configure_session_resolver(StaticSessionResolver(int(session_id)))

    snapshot_dir = os.getenv("FARMOPS_SNAPSHOT_DIR")
    if snapshot_dir:
        result = load_snapshot(Path(snapshot_dir), get_record_store())
        logger.info("snapshot loaded: %s", result.loaded)

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(assignments.router, prefix="/api")
    app.include_router(pitaks.router, prefix="/api")
    app.include_router(dashboard.router, prefix="/api")
    app.include_router(financial.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "FarmOps Analytics API",
                "docs": "/docs",
                "health": "/api/analytics/dashboard/alerts",
            }
        )

    return app


app = create_app()
