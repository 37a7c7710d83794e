"""
tests/test_stream_preview_service.py

Unit tests for app/services/stream_preview_service.py.

Coverage
--------
- Vendor export with banner, split thousands and copyright footer
- Missing column warnings
- Excluded rows and their warnings
- Unparseable week on an otherwise complete row
- Malformed quoting reported as a warning
- Data rows resembling a header or footer, oversized counts and names
- Warning cap
- Delimiter detection end to end
- Fallback week backfill
"""

from __future__ import annotations

import pytest

from app.domain.streams import MAX_ARTIST_NAME_LENGTH, NormalizedRow
from app.services.stream_preview_service import (
    MALFORMED_CSV_WARNING,
    MISSING_STREAMS_WARNING,
    MISSING_WEEK_WARNING,
    NO_HEADER_WARNING,
    StreamFileDecodeError,
    StreamPreviewService,
    apply_week_start_to_missing,
    parse_stream_csv,
    rows_missing_week,
)


@pytest.fixture()
def service() -> StreamPreviewService:
    return StreamPreviewService(log_row_warnings=False)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestVendorExport:
    PAYLOAD = (
        b"Favorite Artists,,,\n"
        b"Artist Name,On-Demand Audio Streams,Week\n"
        b"Drake,1,234,567,01/06/2025\n"
        b"Copyright (c) 2025 Vendor Inc.\n"
    )

    def test_banner_and_footer_never_become_rows(self, service: StreamPreviewService) -> None:
        result = service.parse(self.PAYLOAD)

        assert result.included == [
            NormalizedRow(artist="Drake", streams=1234567, week="2025-01-06", row_number=2)
        ]
        assert result.excluded == []
        assert result.warnings == []

    def test_header_mapping_uses_raw_headers(self, service: StreamPreviewService) -> None:
        result = service.parse(self.PAYLOAD)

        assert result.header_mapping.artist_key == "Artist Name"
        assert result.header_mapping.streams_key == "On-Demand Audio Streams"
        assert result.header_mapping.week_key == "Week"
        assert result.delimiter == ","

    def test_module_level_helper(self) -> None:
        assert [row.artist for row in parse_stream_csv(self.PAYLOAD).included] == ["Drake"]


def test_semicolon_file_with_spaced_thousands(service: StreamPreviewService) -> None:
    result = service.parse(b"Artist;Plays;Date\nSZA;1 234;2025-01-06\n")

    assert result.delimiter == ";"
    assert result.included[0].streams == 1234


def test_week_format_hint(service: StreamPreviewService) -> None:
    result = service.parse(b"Artist,Streams,Week\nA,5,06/01/2025", week_format="dd/MM/yyyy")

    assert result.included[0].week == "2025-01-06"


def test_invalid_utf8_is_replaced_not_rejected(service: StreamPreviewService) -> None:
    result = service.parse(b"Artist,Streams,Week\n\xffBand,5,2025-01-06")

    assert len(result.included) == 1
    assert result.included[0].artist.endswith("Band")


# ---------------------------------------------------------------------------
# Structural problems
# ---------------------------------------------------------------------------


class TestStructuralWarnings:
    def test_empty_file(self, service: StreamPreviewService) -> None:
        result = service.parse(b"")

        assert result.warnings == [NO_HEADER_WARNING]
        assert result.included == []
        assert result.excluded == []

    def test_blank_lines_only(self, service: StreamPreviewService) -> None:
        assert service.parse(b"\n\n  \n").warnings == [NO_HEADER_WARNING]

    def test_missing_week_column_keeps_rows(self, service: StreamPreviewService) -> None:
        result = service.parse(b"Artist,Streams\nA,5")

        assert result.warnings == [MISSING_WEEK_WARNING]
        assert result.included == [NormalizedRow(artist="A", streams=5, week=None, row_number=2)]
        assert rows_missing_week(result.included) == result.included

    def test_missing_streams_column_excludes_everything(self, service: StreamPreviewService) -> None:
        result = service.parse(b"Artist,Week\nA,2025-01-06")

        assert MISSING_STREAMS_WARNING in result.warnings
        assert result.included == []
        assert len(result.excluded) == 1

    def test_non_bytes_payload_raises(self, service: StreamPreviewService) -> None:
        with pytest.raises(StreamFileDecodeError):
            service.parse("Artist,Streams\nA,1")  # type: ignore[arg-type]

    def test_unbalanced_quote_becomes_a_warning(self, service: StreamPreviewService) -> None:
        payload = b'Artist,Streams,Week\n"Drake,100,2025-01-06\n' + b"x" * 200_000

        result = service.parse(payload)

        assert result.included == []
        assert result.excluded == []
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith(MALFORMED_CSV_WARNING)


# ---------------------------------------------------------------------------
# Row-level problems
# ---------------------------------------------------------------------------


class TestRowWarnings:
    def test_incomplete_rows_are_excluded_with_warnings(self, service: StreamPreviewService) -> None:
        result = service.parse(
            b"Artist,Streams,Week\n"
            b"A,,2025-01-06\n"
            b",5,2025-01-06\n"
            b"B,7,2025-01-06\n"
        )

        assert [row.artist for row in result.included] == ["B"]
        assert len(result.excluded) == 2
        assert "Skipped row missing: streams" in result.warnings
        assert "Skipped row missing: artist" in result.warnings

    def test_blank_rows_are_silently_skipped(self, service: StreamPreviewService) -> None:
        result = service.parse(b"Artist,Streams,Week\n,,\nA,1,2025-01-06\n")

        assert result.warnings == []
        assert len(result.included) == 1

    def test_unparseable_week_keeps_row_and_warns(self, service: StreamPreviewService) -> None:
        result = service.parse(b"Artist,Streams,Week\nA,5,unknown")

        assert result.included == [NormalizedRow(artist="A", streams=5, week=None, row_number=2)]
        assert result.warnings == ["Row 2: could not parse week value 'unknown'"]

    def test_warnings_are_capped(self) -> None:
        service = StreamPreviewService(max_warnings=2, log_row_warnings=False)
        payload = b"Artist,Streams,Week\n" + b"".join(
            f",{index},2025-01-06\n".encode() for index in range(1, 5)
        )

        result = service.parse(payload)

        assert len(result.warnings) == 3
        assert result.warnings[-1] == "… 2 more warnings suppressed"
        assert len(result.row_warnings) == 4


# ---------------------------------------------------------------------------
# Rows that resemble headers or boilerplate
# ---------------------------------------------------------------------------


class TestLookalikeRows:
    def test_artist_namesake_row_does_not_replace_header(self, service: StreamPreviewService) -> None:
        result = service.parse(
            b"Artist,Streams,Week\n"
            b"Drake,100,2025-01-06\n"
            b"Artist Namesake,5,2025-01-06\n"
            b"SZA,7,2025-01-06\n"
        )

        assert [row.artist for row in result.included] == ["Drake", "Artist Namesake", "SZA"]
        assert result.header_mapping.artist_key == "Artist"
        assert result.warnings == []

    def test_artist_with_footer_phrase_is_imported(self, service: StreamPreviewService) -> None:
        result = service.parse(
            b"Artist,Streams,Week\n"
            b"Powered By Heart,100,2025-01-06\n"
            b"Drake,5,2025-01-06\n"
        )

        assert [row.artist for row in result.included] == ["Powered By Heart", "Drake"]
        assert [row.row_number for row in result.included] == [2, 3]

    def test_oversized_stream_count_is_excluded(self, service: StreamPreviewService) -> None:
        result = service.parse(b"Artist,Streams,Week\nA,1e30,2025-01-06\nB,5,2025-01-06\n")

        assert [row.artist for row in result.included] == ["B"]
        assert [row.artist for row in result.excluded] == ["A"]
        assert "Skipped row missing: streams" in result.warnings

    def test_overlong_artist_name_is_excluded(self, service: StreamPreviewService) -> None:
        long_name = "X" * (MAX_ARTIST_NAME_LENGTH + 1)
        fitting_name = "Y" * MAX_ARTIST_NAME_LENGTH
        payload = f"Artist,Streams,Week\n{long_name},5,2025-01-06\n{fitting_name},6,2025-01-06\n"

        result = service.parse(payload.encode())

        assert [row.artist for row in result.included] == [fitting_name]
        assert [row.artist for row in result.excluded] == [long_name]
        assert result.warnings == [
            f"Skipped row: artist name longer than {MAX_ARTIST_NAME_LENGTH} characters"
        ]
        assert result.row_warnings[0].column == "Artist"


# ---------------------------------------------------------------------------
# Fallback week
# ---------------------------------------------------------------------------


class TestApplyWeekStartToMissing:
    ROWS = [
        NormalizedRow(artist="A", streams=1, week=None),
        NormalizedRow(artist="B", streams=2, week="2025-01-13"),
    ]

    def test_fills_only_missing_weeks(self) -> None:
        filled = apply_week_start_to_missing(self.ROWS, "01/06/2025")

        assert [row.week for row in filled] == ["2025-01-06", "2025-01-13"]

    def test_none_fallback_is_a_no_op(self) -> None:
        assert apply_week_start_to_missing(self.ROWS, None) == self.ROWS

    def test_unparseable_fallback_raises(self) -> None:
        with pytest.raises(ValueError):
            apply_week_start_to_missing(self.ROWS, "unknown")
