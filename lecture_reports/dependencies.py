"""
Dependency wiring for the FastAPI app.

Collaborators are built once per application and kept on ``app.state``;
handlers receive them through ``Depends``.
"""

from __future__ import annotations

import logging

from fastapi import Request

from lecture_reports.config import Settings
from lecture_reports.db import DbClient, InMemoryDbClient, SqlDbClient
from lecture_reports.security import BcryptPasswordHasher, PasswordHasher
from lecture_reports.spreadsheet import TabularEncoder, XlsxEncoder

logger = logging.getLogger(__name__)


def build_db_client(settings: Settings) -> DbClient:
    """
    Create the store client. Connecting (and reflecting the schema) happens
    here, so a failure surfaces at startup.
    """
    if settings.use_in_memory_backends:
        logger.info("Using in-memory row store")
        return InMemoryDbClient()
    url = settings.sqlalchemy_url()
    logger.info(
        "Connecting to DB: %s",
        url if isinstance(url, str) else url.render_as_string(hide_password=True),
    )
    return SqlDbClient(url, pool_size=settings.db_pool_size)


def build_password_hasher(settings: Settings) -> PasswordHasher:
    return BcryptPasswordHasher(rounds=settings.bcrypt_rounds)


def build_report_encoder() -> TabularEncoder:
    return XlsxEncoder(sheet_title="Reports")


def get_db_client(request: Request) -> DbClient:
    return request.app.state.db


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_report_encoder(request: Request) -> TabularEncoder:
    return request.app.state.encoder
