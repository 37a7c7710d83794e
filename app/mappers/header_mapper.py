"""
app/mappers/header_mapper.py

Alias-based header mapping for vendor stream exports.

Vendor files spell the same column many ways ("Artist Name", "artist_name",
"ARTIST-NAME"). Every header is normalized to lowercase words separated by a
single space, then compared against ordered alias lists. The first alias
that matches wins; there is no fuzzy scoring.
"""

from __future__ import annotations

import re
from typing import Mapping, Sequence

from app.domain.streams import CanonicalFields, HeaderMapping, RawRow

CANONICAL_FIELDS: tuple[str, ...] = ("artist", "streams", "week")

HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "artist": (
        "artist",
        "artist name",
        "artist_name",
        "name",
        "artistname",
        "act",
        "performer",
        "creator",
        "favorite artists",
    ),
    "streams": (
        "streams",
        "total streams",
        "stream count",
        "plays",
        "total plays",
        "count",
        "units",
        "on demand audio streams",
        "on-demand audio streams",
        "ondemand audio streams",
        "audio streams",
        "on demand streams",
        "weekly streams",
        "streams this week",
        "plays this week",
    ),
    "week": (
        "week",
        "week start",
        "week_start",
        "date",
        "period",
        "start date",
        "week commencing",
        "week beginning",
        "week of",
    ),
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_header(header: str) -> str:
    """
    Normalize a header for alias comparison.

    Strips BOMs, lowercases, and collapses every run of non-alphanumeric
    characters into one space.
    """

    cleaned = str(header).replace("\ufeff", "").strip().lower()
    return _NON_ALNUM.sub(" ", cleaned).strip()


class HeaderMapper:
    """
    Resolves raw file headers into the canonical artist/streams/week keys.
    """

    def __init__(self, *, aliases: Mapping[str, Sequence[str]] | None = None) -> None:
        source = aliases or HEADER_ALIASES
        self._aliases: dict[str, tuple[str, ...]] = {
            canonical: tuple(normalize_header(alias) for alias in source.get(canonical, ()))
            for canonical in CANONICAL_FIELDS
        }

    @property
    def aliases(self) -> dict[str, tuple[str, ...]]:
        return dict(self._aliases)

    def is_alias(self, canonical_field: str, header: str) -> bool:
        return normalize_header(header) in self._aliases.get(canonical_field, ())

    def infer(self, headers: Sequence[str]) -> HeaderMapping:
        """
        Return the first raw header matching each canonical field's aliases.
        """

        normalized: list[tuple[str, str]] = [
            (header, normalize_header(header)) for header in headers if header is not None
        ]
        used: set[str] = set()
        resolved: dict[str, str | None] = {}

        for canonical_field in CANONICAL_FIELDS:
            match = self._find_alias_match(
                aliases=self._aliases[canonical_field],
                normalized=normalized,
                used=used,
            )
            resolved[canonical_field] = match
            if match is not None:
                used.add(match)

        return HeaderMapping(
            artist_key=resolved["artist"],
            streams_key=resolved["streams"],
            week_key=resolved["week"],
        )

    @staticmethod
    def _find_alias_match(
        *,
        aliases: Sequence[str],
        normalized: Sequence[tuple[str, str]],
        used: set[str],
    ) -> str | None:
        for alias in aliases:
            for raw, norm in normalized:
                if norm == alias and raw not in used:
                    return raw
        return None


_DEFAULT_MAPPER = HeaderMapper()


def infer_header_mapping(headers: Sequence[str]) -> HeaderMapping:
    """
    Infer the header mapping using the default alias lists.
    """

    return _DEFAULT_MAPPER.infer(headers)


def resolve_canonical_fields(raw_row: RawRow, mapping: HeaderMapping) -> CanonicalFields:
    """
    Pull the raw artist/streams/week cells out of one row.

    A field whose mapping is None falls back to the literal canonical key so
    already-canonical input is accepted as-is.
    """

    return CanonicalFields(
        artist=raw_row.get(mapping.artist_key) if mapping.artist_key else raw_row.get("artist"),
        streams=raw_row.get(mapping.streams_key) if mapping.streams_key else raw_row.get("streams"),
        week=raw_row.get(mapping.week_key) if mapping.week_key else raw_row.get("week"),
    )
