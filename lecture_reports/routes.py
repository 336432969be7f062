"""
HTTP routes for the lecture reports API.

Each handler validates its input, performs one store operation and maps the
outcome to a response. Failures raise ``ApiError`` subclasses, which the
global handlers in ``lecture_reports.errors`` render.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import Response

from lecture_reports.db import (
    ASSIGNMENTS_TABLE,
    RATING_TABLE,
    REPORT_TABLE,
    DbClient,
    StoreError,
    UnknownColumnsError,
)
from lecture_reports.dependencies import (
    get_db_client,
    get_password_hasher,
    get_report_encoder,
)
from lecture_reports.errors import (
    AuthError,
    ExportError,
    OperationError,
    ValidationError,
)
from lecture_reports.schemas import (
    HealthResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
)
from lecture_reports.security import HashingError, PasswordHasher
from lecture_reports.spreadsheet import XLSX_MEDIA_TYPE, TabularEncoder

logger = logging.getLogger(__name__)

router = APIRouter()

EXPORT_FILENAME = "reports.xlsx"


def _insert(
    db: DbClient,
    table: str,
    row: Dict[str, Any],
    failure: str,
    server_columns: Tuple[str, ...] = (),
) -> None:
    try:
        db.insert_row(table, row)
    except UnknownColumnsError as exc:
        missing = set(exc.columns) & set(server_columns)
        if missing:
            # The table lacks a column the server itself writes.
            logger.error("Table %s has no column(s) %s", table, ", ".join(sorted(missing)))
            raise OperationError(failure) from exc
        raise ValidationError(f"Unknown fields: {', '.join(exc.columns)}") from exc
    except StoreError as exc:
        logger.error("Insert into %s failed: %s", table, exc)
        raise OperationError(failure) from exc


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@router.post("/register", response_model=MessageResponse)
def register(
    payload: RegisterRequest,
    db: DbClient = Depends(get_db_client),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    logger.info("Incoming registration: username=%s role=%s", payload.username, payload.role)
    if not payload.username or not payload.password or not payload.role:
        raise ValidationError("Missing fields")

    try:
        hashed = hasher.hash(payload.password)
    except HashingError as exc:
        logger.error("Hashing error: %s", exc)
        raise OperationError("Error hashing password") from exc

    try:
        db.create_user(payload.username, hashed, payload.role.lower())
    except StoreError as exc:
        logger.error("Registration error: %s", exc)
        raise OperationError("Registration failed") from exc
    logger.info("Registered user %s", payload.username)
    return MessageResponse(message="Registered successfully")


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: DbClient = Depends(get_db_client),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    logger.info("Login attempt: %s", payload.username)
    if not payload.username or not payload.password:
        raise ValidationError("Missing credentials")

    try:
        user = db.get_user(payload.username)
    except StoreError as exc:
        logger.error("Login DB error: %s", exc)
        raise OperationError("Login failed") from exc

    if user is None:
        logger.warning("No user found: %s", payload.username)
        raise AuthError("Invalid credentials")
    if not hasher.verify(payload.password, user.get("password")):
        logger.warning("Password mismatch for: %s", payload.username)
        raise AuthError("Invalid credentials")

    logger.info("Login successful: %s", payload.username)
    return LoginResponse(role=user.get("role"))


@router.post("/report", response_model=MessageResponse)
def submit_report(
    payload: Dict[str, Any] = Body(...),
    db: DbClient = Depends(get_db_client),
):
    if not payload:
        raise ValidationError("Missing fields")
    _insert(db, REPORT_TABLE, payload, "Report failed")
    return MessageResponse(message="Report submitted")


@router.get("/reports")
def list_reports(db: DbClient = Depends(get_db_client)):
    try:
        return db.list_rows(REPORT_TABLE)
    except StoreError as exc:
        logger.error("Fetching reports failed: %s", exc)
        raise OperationError("Fetch failed") from exc


@router.get("/search-report")
def search_reports(
    lecturer_name: Optional[str] = Query(None),
    db: DbClient = Depends(get_db_client),
):
    """
    Substring match on ``lecturer_name``. An absent value matches every report
    with a lecturer name.
    """
    try:
        return db.search_rows(REPORT_TABLE, "lecturer_name", lecturer_name or "")
    except StoreError as exc:
        logger.error("Searching reports failed: %s", exc)
        raise OperationError("Search failed") from exc


@router.get(
    "/download-report",
    response_class=Response,
    responses={200: {"content": {XLSX_MEDIA_TYPE: {}}}},
)
def download_report(
    db: DbClient = Depends(get_db_client),
    encoder: TabularEncoder = Depends(get_report_encoder),
):
    try:
        rows = db.list_rows(REPORT_TABLE)
    except StoreError as exc:
        logger.error("Fetching reports for export failed: %s", exc)
        raise ExportError("Error generating Excel") from exc
    if not rows:
        logger.warning("No reports to export")
        raise ExportError("Error generating Excel")

    try:
        document = encoder.encode(rows)
    except Exception as exc:
        logger.error("Encoding reports failed: %s", exc, exc_info=True)
        raise ExportError("Error generating Excel") from exc

    return Response(
        content=document,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
    )


@router.post("/rating", response_model=MessageResponse)
def submit_rating(
    payload: Dict[str, Any] = Body(...),
    db: DbClient = Depends(get_db_client),
):
    row = {**payload, "date_submitted": datetime.now()}
    _insert(
        db, RATING_TABLE, row, "Rating failed", server_columns=("date_submitted",)
    )
    return MessageResponse(message="Rating submitted")


@router.post("/assign-course", response_model=MessageResponse)
def assign_course(
    payload: Dict[str, Any] = Body(...),
    db: DbClient = Depends(get_db_client),
):
    if not payload:
        raise ValidationError("Missing fields")
    _insert(db, ASSIGNMENTS_TABLE, payload, "Assignment failed")
    return MessageResponse(message="Course assigned")
