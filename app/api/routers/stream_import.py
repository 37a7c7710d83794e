"""
app/api/routers/stream_import.py

Stream file preview, import and upload deletion endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, status

from app.api.dependencies import get_csv_upload, get_stream_import_service, read_upload_bytes
from app.domain.streams import NormalizedRow, PreviewResult
from app.schemas.streams import (
    HeaderMappingResponse,
    NormalizedRowResponse,
    StreamImportResponse,
    StreamPreviewResponse,
    UploadDeleteResponse,
)
from app.services.stream_import_service import (
    EmptyImportError,
    MissingWeekError,
    StreamImportError,
    StreamImportService,
    StreamPersistenceError,
)
from app.services.stream_preview_service import (
    StreamFileDecodeError,
    StreamPreviewService,
    get_stream_preview_service,
    rows_missing_week,
)
from app.storage.base import UploadNotFoundError, WorkspaceNotFoundError

router = APIRouter(prefix="/workspaces/{workspace_id}", tags=["streams"])


def _row_response(row: NormalizedRow) -> NormalizedRowResponse:
    return NormalizedRowResponse(
        artist=row.artist,
        streams=row.streams,
        week=row.week,
        row_number=row.row_number,
    )


def _preview_response(preview: PreviewResult) -> StreamPreviewResponse:
    return StreamPreviewResponse(
        included=[_row_response(row) for row in preview.included],
        excluded=[_row_response(row) for row in preview.excluded],
        warnings=preview.warnings,
        header_mapping=HeaderMappingResponse(
            artist_key=preview.header_mapping.artist_key,
            streams_key=preview.header_mapping.streams_key,
            week_key=preview.header_mapping.week_key,
        ),
        delimiter=preview.delimiter,
        rows_missing_week=len(rows_missing_week(preview.included)),
    )


@router.post("/streams/preview", response_model=StreamPreviewResponse)
def preview_streams(
    workspace_id: uuid.UUID,
    file: UploadFile = Depends(get_csv_upload),
    week_format: str | None = Form(default=None, description="Date pattern tried first, e.g. MM/dd/yyyy"),
    preview_service: StreamPreviewService = Depends(get_stream_preview_service),
) -> StreamPreviewResponse:
    """
    Parse a vendor export without storing anything.
    """

    payload = read_upload_bytes(file)
    try:
        preview = preview_service.parse(payload, week_format=week_format)
    except StreamFileDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return _preview_response(preview)


@router.post("/streams/import", response_model=StreamImportResponse)
def import_streams(
    workspace_id: uuid.UUID,
    file: UploadFile = Depends(get_csv_upload),
    week_format: str | None = Form(default=None),
    week_start: str | None = Form(default=None, description="Fallback week for rows without one"),
    source: str | None = Form(default=None),
    region: str | None = Form(default=None),
    conflict_policy: str | None = Form(default=None, description="skip or overwrite"),
    uploaded_by: str | None = Form(default=None),
    import_service: StreamImportService = Depends(get_stream_import_service),
) -> StreamImportResponse:
    """
    Parse and commit a vendor export into weekly stream facts.
    """

    file_name = file.filename
    payload = read_upload_bytes(file)
    try:
        summary = import_service.import_file(
            workspace_id=workspace_id,
            file_bytes=payload,
            week_format=week_format,
            fallback_week=week_start,
            source=source,
            region=region,
            uploaded_by=uploaded_by,
            file_name=file_name,
            conflict_policy=conflict_policy,
        )
    except WorkspaceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except MissingWeekError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(exc), "rows_missing_week": exc.row_count},
        ) from exc
    except EmptyImportError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except (StreamImportError, StreamFileDecodeError) as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except StreamPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist stream rows.",
        ) from exc

    return StreamImportResponse(
        upload_id=summary.upload_id,
        created=summary.created,
        skipped=summary.skipped,
        updated=summary.updated,
        total=summary.total,
        artists_created=summary.artists_created,
        warnings=summary.warnings,
    )


@router.delete("/uploads/{upload_id}", response_model=UploadDeleteResponse)
def delete_upload(
    workspace_id: uuid.UUID,
    upload_id: uuid.UUID,
    import_service: StreamImportService = Depends(get_stream_import_service),
) -> UploadDeleteResponse:
    """
    Delete an upload and every stream fact it created.
    """

    try:
        deleted = import_service.delete_upload(workspace_id=workspace_id, upload_id=upload_id)
    except (WorkspaceNotFoundError, UploadNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StreamPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to delete upload.",
        ) from exc

    return UploadDeleteResponse(deleted_rows=deleted, deleted_upload=upload_id)
