"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation and service wiring.
"""

from __future__ import annotations

from fastapi import Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.config import get_analytics_settings, get_stream_ingestion_settings
from app.repositories.watchlist_repository import WatchlistRepository
from app.services.aggregation_service import AggregationService
from app.services.outlier_service import OutlierService
from app.services.stream_import_service import StreamImportService, build_stream_import_service
from app.storage.base import StreamFactStore
from app.storage.sqlalchemy_store import SQLAlchemyStreamFactStore
from db.session import get_db

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "text/plain",
    "text/tab-separated-values",
}

CSV_EXTENSIONS = (".csv", ".tsv", ".txt")


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a delimited text export by extension or
    MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_csv_filename = filename.endswith(CSV_EXTENSIONS)
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


def read_upload_bytes(file: UploadFile) -> bytes:
    """
    Read the whole upload, refusing payloads over the configured size limit.
    """

    limit = get_stream_ingestion_settings().max_upload_bytes
    try:
        payload = file.file.read(limit + 1)
    finally:
        file.file.close()

    if len(payload) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {limit} byte upload limit.",
        )
    return payload


def get_stream_store(db: Session = Depends(get_db)) -> StreamFactStore:
    return SQLAlchemyStreamFactStore(db, batch_size=get_stream_ingestion_settings().batch_size)


def get_stream_import_service(
    store: StreamFactStore = Depends(get_stream_store),
) -> StreamImportService:
    return build_stream_import_service(store)


def get_aggregation_service(
    store: StreamFactStore = Depends(get_stream_store),
) -> AggregationService:
    settings = get_analytics_settings()
    return AggregationService(store, rising_threshold_pct=settings.rising_threshold_pct)


def get_outlier_service(
    store: StreamFactStore = Depends(get_stream_store),
) -> OutlierService:
    settings = get_analytics_settings()
    return OutlierService(
        store,
        window=settings.outlier_window,
        min_weeks=settings.outlier_min_weeks,
        limit=settings.outlier_limit,
    )


def get_watchlist_repository(db: Session = Depends(get_db)) -> WatchlistRepository:
    return WatchlistRepository(db)
