"""
app/validators/row_validator.py

Row-level coercion of tokenized stream rows into NormalizedRow values.
"""

from __future__ import annotations

from typing import Any

from app.domain.streams import (
    MAX_ARTIST_NAME_LENGTH,
    HeaderMapping,
    NormalizedRow,
    RawRow,
    RowWarning,
)
from app.mappers.header_mapper import resolve_canonical_fields
from app.validators.value_coercers import coerce_date, coerce_number


class StreamRowValidator:
    """
    Validates and coerces one mapped stream row.

    A row is complete when it carries a non-empty artist that fits the
    artists table and a coercible stream count. The week is optional at this
    stage and may be backfilled before import.
    """

    def is_completely_empty_row(self, row: RawRow) -> bool:
        """
        Return True when all values in the row are empty or whitespace.
        """

        return all(self._is_blank(value) for value in row.values())

    def validate(
        self,
        *,
        raw_row: RawRow,
        mapping: HeaderMapping,
        row_number: int | None,
        week_format: str | None = None,
    ) -> tuple[NormalizedRow, list[RowWarning]]:
        """
        Coerce one raw row. Returns the row plus any warnings it produced.

        Incomplete rows are still returned (so the caller can show them in
        the excluded set) together with a "Skipped row missing" warning.
        """

        fields = resolve_canonical_fields(raw_row, mapping)
        artist = self._parse_artist(fields.artist)
        streams = coerce_number(fields.streams)
        week = coerce_date(fields.week, week_format)

        row = NormalizedRow(
            artist=artist,
            streams=streams,
            week=week,
            row_number=row_number,
        )

        warnings: list[RowWarning] = []
        if len(artist) > MAX_ARTIST_NAME_LENGTH:
            warnings.append(
                RowWarning(
                    row_number=row_number,
                    message=(
                        f"Skipped row: artist name longer than {MAX_ARTIST_NAME_LENGTH} characters"
                    ),
                    column=mapping.artist_key or "artist",
                    value=artist,
                )
            )
            return row, warnings

        if not row.is_complete:
            missing = []
            if not artist:
                missing.append("artist")
            if streams is None:
                missing.append("streams")
            if week is None:
                missing.append("week")
            warnings.append(
                RowWarning(
                    row_number=row_number,
                    message=f"Skipped row missing: {', '.join(missing)}",
                    column=None,
                    value=None,
                )
            )
            return row, warnings

        if week is None and not self._is_blank(fields.week):
            raw_week = self._stringify_value(fields.week)
            warnings.append(
                RowWarning(
                    row_number=row_number,
                    message=f"Row {row_number}: could not parse week value '{raw_week}'",
                    column=mapping.week_key or "week",
                    value=raw_week,
                )
            )

        return row, warnings

    def _parse_artist(self, value: Any) -> str:
        if self._is_blank(value):
            return ""
        return str(value).strip()

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        return str(value).strip() == ""

    @staticmethod
    def _stringify_value(value: Any) -> str | None:
        if value is None:
            return None
        return str(value).strip()
