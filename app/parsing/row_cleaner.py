"""
app/parsing/row_cleaner.py

Pre-clean raw export text before it reaches the CSV tokenizer.

Vendor exports prepend a banner ("Favorite Artists,,,") and append a
copyright footer. Left in place, the banner would be read as the header row
and the footer as a data row.
"""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass

from app.mappers.header_mapper import HeaderMapper, normalize_header
from app.parsing.tokenizer import detect_delimiter

HEADER_PHRASE = "artist name"
MAX_HEADER_SCAN_LINES = 50

FOOTER_PREFIXES: tuple[str, ...] = ("copyright", "©", "(c)")
FOOTER_PHRASES: tuple[str, ...] = (
    "all rights reserved",
    "generated by",
    "data provided by",
    "exported from",
    "powered by",
)

_CELL_SPLIT = re.compile(r"[,\t;|]")


@dataclass(frozen=True)
class CleanedText:
    """
    Cleaned file text plus how many banner and footer lines were dropped.
    """

    text: str
    dropped_leading: int = 0
    dropped_footer: int = 0


def strip_bom(text: str) -> str:
    return text[1:] if text.startswith("\ufeff") else text


def is_footer_line(line: str) -> bool:
    """
    Return True for copyright/footer boilerplate lines.
    """

    lowered = line.strip().strip('"').strip().lower()
    if not lowered:
        return False
    if lowered.startswith(FOOTER_PREFIXES):
        return True
    return any(phrase in lowered for phrase in FOOTER_PHRASES)


def _looks_like_header(line: str, mapper: HeaderMapper) -> bool:
    cells = [cell.strip().strip('"') for cell in _CELL_SPLIT.split(line)]
    has_artist = any(mapper.is_alias("artist", cell) for cell in cells if cell)
    has_streams = any(mapper.is_alias("streams", cell) for cell in cells if cell)
    return has_artist and has_streams


def _has_header_phrase(line: str) -> bool:
    return any(
        normalize_header(cell) == HEADER_PHRASE for cell in _CELL_SPLIT.split(line)
    )


def find_header_index(lines: list[str], mapper: HeaderMapper | None = None) -> int | None:
    """
    Locate the real header row within the first ``MAX_HEADER_SCAN_LINES``.

    The first line that has an "Artist Name" cell or carries both an artist
    and a streams alias wins. None when no such line is found.
    """

    active_mapper = mapper or HeaderMapper()
    for index, line in enumerate(lines[:MAX_HEADER_SCAN_LINES]):
        if _has_header_phrase(line) or _looks_like_header(line, active_mapper):
            return index
    return None


def _split_cells(line: str, delimiter: str) -> list[str]:
    try:
        return next(csv.reader([line], delimiter=delimiter), [])
    except csv.Error:
        return line.split(delimiter)


def _is_trailing_footer(line: str, delimiter: str, header_width: int) -> bool:
    """
    A footer candidate is dropped only when it cannot be a data row: its cell
    count differs from the header's, or at most one of its cells has text.
    """

    if not is_footer_line(line):
        return False
    cells = _split_cells(line, delimiter)
    filled = [cell for cell in cells if cell.strip()]
    return len(cells) != header_width or len(filled) <= 1


def preclean(text: str, *, mapper: HeaderMapper | None = None) -> CleanedText:
    """
    Strip the BOM, banner rows above the header, and the trailing run of
    blank and footer rows.

    Footer detection only looks at the end of the file; a data row whose
    artist happens to contain "powered by" mid-file is left for validation.
    """

    lines = strip_bom(text).splitlines()

    header_index = find_header_index(lines, mapper)
    dropped_leading = header_index or 0
    body = lines[dropped_leading:]

    end = len(body)
    if body:
        delimiter = detect_delimiter(body[0])
        header_width = len(_split_cells(body[0], delimiter))
        while end > 1 and (
            not body[end - 1].strip()
            or _is_trailing_footer(body[end - 1], delimiter, header_width)
        ):
            end -= 1
        if end == 1 and not body[0].strip():
            end = 0

    kept = body[:end]
    return CleanedText(
        text="\n".join(kept),
        dropped_leading=dropped_leading,
        dropped_footer=len(body) - len(kept),
    )


def preclean_text(text: str) -> str:
    return preclean(text).text
