"""Newsdesk API entrypoint.

Builds the FastAPI application, wires the database into it and serves it
with uvicorn when run as a script.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.exceptions import register_exception_handlers
from api.middleware import log_requests
from api.v1.router import router as v1_router
from common.database import Database
from common.model import HealthResponse
from common.settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _default_database() -> Database:
    return Database(
        settings.database_url,
        minconn=settings.db_pool_min,
        maxconn=settings.db_pool_max,
        connect_timeout=settings.db_connect_timeout,
    )


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Create the application.

    Args:
        database: Storage backend to serve from. Defaults to a PostgreSQL
                  pool built from settings. The lifespan opens it, verifies
                  connectivity and creates the tables before serving.
    """
    db = database if database is not None else _default_database()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db.open()
        try:
            db.ping()
            db.create_tables()
            app.state.db = db
            logger.info("Newsdesk API ready")
            yield
        finally:
            db.close()

    app = FastAPI(title="Newsdesk", lifespan=lifespan)

    register_exception_handlers(app)

    # Middleware added last wraps outermost; CORS must also cover 500s
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(v1_router)

    @app.get("/health", tags=["health"])
    def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            time=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
