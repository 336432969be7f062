"""
FastAPI application entry point for the lecture reports service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lecture_reports.config import Settings, get_settings
from lecture_reports.db import DbClient, StoreError
from lecture_reports.dependencies import (
    build_db_client,
    build_password_hasher,
    build_report_encoder,
)
from lecture_reports.errors import register_error_handlers
from lecture_reports.routes import router
from lecture_reports.security import PasswordHasher
from lecture_reports.spreadsheet import TabularEncoder

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    try:
        if app.state.db is None:
            app.state.db = build_db_client(settings)
        app.state.db.ping()
    except StoreError:
        # Startup aborts and the server exits non-zero.
        logger.exception("Database connection failed")
        raise
    logger.info("Connected to the row store")
    yield
    close = getattr(app.state.db, "close", None)
    if close is not None:
        close()


def create_app(
    settings: Optional[Settings] = None,
    *,
    db: Optional[DbClient] = None,
    hasher: Optional[PasswordHasher] = None,
    encoder: Optional[TabularEncoder] = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Lecture Reports Backend",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db
    app.state.hasher = hasher or build_password_hasher(settings)
    app.state.encoder = encoder or build_report_encoder()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Backend running on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
