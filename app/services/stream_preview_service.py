"""
app/services/stream_preview_service.py

Parse/preview pipeline for vendor stream exports.

Raw file bytes go through the row cleaner, the tokenizer, header mapping and
row validation. The result splits rows into included and excluded sets plus
human-readable warnings. Nothing is persisted here; commit mode lives in
``app/services/stream_import_service.py``.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import replace
from functools import lru_cache
from typing import Iterable, Sequence

from app.config import get_stream_ingestion_settings
from app.domain.streams import HeaderMapping, NormalizedRow, PreviewResult, RowWarning
from app.mappers.header_mapper import HeaderMapper
from app.parsing.row_cleaner import preclean
from app.parsing.tokenizer import build_raw_row, rejoin_split_number, tokenize
from app.validators.row_validator import StreamRowValidator
from app.validators.value_coercers import DEFAULT_WEEK_FORMAT, coerce_date

logger = logging.getLogger(__name__)

NO_HEADER_WARNING = "No header row found in file."
MALFORMED_CSV_WARNING = "Invalid CSV format"
MISSING_ARTIST_WARNING = "Could not find an Artist column."
MISSING_STREAMS_WARNING = "Could not find a Streams/Plays column."
MISSING_WEEK_WARNING = "No Week/Date column found. Using 'Week Start' input value will be required."


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class StreamFileDecodeError(ValueError):
    """
    Raised when the payload is not a byte buffer and cannot be decoded at all.
    """


# ---------------------------------------------------------------------------
# Backfill helpers
# ---------------------------------------------------------------------------


def rows_missing_week(rows: Iterable[NormalizedRow]) -> list[NormalizedRow]:
    return [row for row in rows if not row.week]


def apply_week_start_to_missing(
    rows: Sequence[NormalizedRow],
    fallback_week: str | None,
) -> list[NormalizedRow]:
    """
    Fill every row lacking a week with ``fallback_week``.

    The fallback is coerced like any other week cell; a fallback that cannot
    be parsed raises ValueError. A None fallback returns the rows unchanged.
    """

    if fallback_week is None or not str(fallback_week).strip():
        return list(rows)

    fallback_iso = coerce_date(fallback_week)
    if fallback_iso is None:
        raise ValueError(f"Fallback week '{fallback_week}' is not a recognizable date.")

    return [row if row.week else replace(row, week=fallback_iso) for row in rows]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class StreamPreviewService:
    """
    Turns an uploaded file buffer into included/excluded rows and warnings.
    """

    def __init__(
        self,
        *,
        max_warnings: int = 500,
        log_row_warnings: bool = True,
        default_week_format: str = DEFAULT_WEEK_FORMAT,
        mapper: HeaderMapper | None = None,
        validator: StreamRowValidator | None = None,
    ) -> None:
        self._max_warnings = max(1, max_warnings)
        self._log_row_warnings = log_row_warnings
        self._default_week_format = default_week_format
        self._mapper = mapper or HeaderMapper()
        self._validator = validator or StreamRowValidator()

    def parse(self, file_bytes: bytes, *, week_format: str | None = None) -> PreviewResult:
        """
        Parse one file buffer.

        Structural problems (no header row, malformed quoting) come back as
        warnings on an empty result. Only a payload that is not bytes at all
        raises.
        """

        text = self._decode(file_bytes)
        cleaned = preclean(text, mapper=self._mapper)
        if cleaned.dropped_leading or cleaned.dropped_footer:
            logger.debug(
                "Pre-clean dropped banner_lines=%d footer_lines=%d",
                cleaned.dropped_leading,
                cleaned.dropped_footer,
            )

        try:
            table = tokenize(cleaned.text)
        except csv.Error as exc:
            logger.warning("Stream file could not be tokenized: %s", exc)
            return PreviewResult(warnings=[f"{MALFORMED_CSV_WARNING}: {exc}"])
        if not table.headers:
            return PreviewResult(warnings=[NO_HEADER_WARNING], delimiter=table.delimiter)

        mapping = self._mapper.infer(table.headers)
        warnings = self._mapping_warnings(mapping)
        streams_index = self._column_index(table.headers, mapping.streams_key, "streams")
        effective_format = week_format or self._default_week_format

        included: list[NormalizedRow] = []
        excluded: list[NormalizedRow] = []
        row_warnings: list[RowWarning] = []

        for row_number, cells in zip(table.row_numbers, table.rows):
            if table.delimiter == ",":
                cells = rejoin_split_number(
                    cells,
                    header_count=len(table.headers),
                    column_index=streams_index,
                )
            raw_row = build_raw_row(table.headers, cells)
            if self._validator.is_completely_empty_row(raw_row):
                continue

            row, problems = self._validator.validate(
                raw_row=raw_row,
                mapping=mapping,
                row_number=row_number,
                week_format=effective_format,
            )
            if row.is_complete:
                included.append(row)
            else:
                excluded.append(row)

            for problem in problems:
                row_warnings.append(problem)
                if self._log_row_warnings:
                    logger.warning("Stream row %s: %s", problem.row_number, problem.message)

        warnings.extend(problem.message for problem in row_warnings)

        logger.info(
            "Parsed stream file included=%d excluded=%d warnings=%d delimiter=%r",
            len(included),
            len(excluded),
            len(warnings),
            table.delimiter,
        )

        return PreviewResult(
            included=included,
            excluded=excluded,
            warnings=self._cap_warnings(warnings),
            header_mapping=mapping,
            row_warnings=row_warnings,
            delimiter=table.delimiter,
        )

    def _decode(self, file_bytes: bytes) -> str:
        if not isinstance(file_bytes, (bytes, bytearray, memoryview)):
            raise StreamFileDecodeError(
                f"Expected a byte buffer, got {type(file_bytes).__name__}."
            )
        return bytes(file_bytes).decode("utf-8", errors="replace")

    @staticmethod
    def _mapping_warnings(mapping: HeaderMapping) -> list[str]:
        warnings: list[str] = []
        if not mapping.artist_key:
            warnings.append(MISSING_ARTIST_WARNING)
        if not mapping.streams_key:
            warnings.append(MISSING_STREAMS_WARNING)
        if not mapping.week_key:
            warnings.append(MISSING_WEEK_WARNING)
        return warnings

    @staticmethod
    def _column_index(headers: Sequence[str], key: str | None, literal: str) -> int | None:
        target = key or literal
        try:
            return list(headers).index(target)
        except ValueError:
            return None

    def _cap_warnings(self, warnings: list[str]) -> list[str]:
        if len(warnings) <= self._max_warnings:
            return warnings
        suppressed = len(warnings) - self._max_warnings
        return [*warnings[: self._max_warnings], f"… {suppressed} more warnings suppressed"]


def parse_stream_csv(file_bytes: bytes, *, week_format: str | None = None) -> PreviewResult:
    """
    Parse a file buffer with default settings.
    """

    return StreamPreviewService().parse(file_bytes, week_format=week_format)


@lru_cache(maxsize=1)
def get_stream_preview_service() -> StreamPreviewService:
    """
    Build and cache the preview service with env-driven settings.
    """

    settings = get_stream_ingestion_settings()
    return StreamPreviewService(
        max_warnings=settings.max_warnings,
        log_row_warnings=settings.log_row_warnings,
        default_week_format=settings.default_week_format,
    )
