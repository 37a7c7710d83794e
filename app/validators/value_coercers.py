"""
app/validators/value_coercers.py

Cell-level coercion of vendor values into canonical numbers and ISO dates.

None of these functions raise on bad cell data; they return None so the
caller can route the row to the excluded set.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from dateutil import parser as date_parser

DEFAULT_WEEK_FORMAT = "MM/dd/yyyy"

MAX_STREAM_COUNT = 2**63 - 1
"""Largest count a BIGINT streams column holds."""

FALLBACK_DATE_FORMATS: tuple[str, ...] = (
    "M/d/yyyy",
    "MM/dd/yyyy",
    "yyyy-MM-dd",
    "d/M/yyyy",
    "dd/MM/yyyy",
)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_NUMBER_NOISE = re.compile(r"[,\s]+")

# Longest tokens first so "MMMM" is not consumed as two "MM".
_FORMAT_TOKENS: tuple[tuple[str, str], ...] = (
    ("yyyy", "%Y"),
    ("yy", "%y"),
    ("MMMM", "%B"),
    ("MMM", "%b"),
    ("MM", "%m"),
    ("M", "%m"),
    ("dd", "%d"),
    ("d", "%d"),
)


def coerce_number(value: Any) -> int | None:
    """
    Parse a stream count from an already-numeric value or a formatted string.

    Thousands separators and whitespace are stripped; fractional values are
    rounded half-up. Negative values pass through unchanged. Magnitudes
    beyond ``MAX_STREAM_COUNT`` return None.
    """

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    else:
        cleaned = _NUMBER_NOISE.sub("", str(value))
        if not cleaned:
            return None
        try:
            number = Decimal(cleaned)
        except (InvalidOperation, ValueError):
            return None

    if not number.is_finite():
        return None
    # adjusted() is the exponent of the leading digit; checked before int()
    # so "1e999999999" never materializes.
    if number and number.adjusted() > 18:
        return None
    result = int(number.to_integral_value(rounding=ROUND_HALF_UP))
    if abs(result) > MAX_STREAM_COUNT:
        return None
    return result


def clamp_streams(value: int) -> int:
    """
    Floor a stream count at zero before storage.
    """

    return max(0, int(value))


def to_strptime_format(pattern: str) -> str:
    """
    Translate a Unicode date pattern (``MM/dd/yyyy``) into a strptime format.

    Lowercase ``m`` is read as month, so ``mm/dd/yyyy`` behaves like
    ``MM/dd/yyyy``.
    """

    source = pattern.replace("m", "M")
    out: list[str] = []
    index = 0
    while index < len(source):
        for token, directive in _FORMAT_TOKENS:
            if source.startswith(token, index):
                out.append(directive)
                index += len(token)
                break
        else:
            char = source[index]
            out.append("%%" if char == "%" else char)
            index += 1
    return "".join(out)


def _try_format(raw: str, pattern: str) -> date | None:
    try:
        return datetime.strptime(raw, to_strptime_format(pattern)).date()
    except ValueError:
        return None


def coerce_date(value: Any, week_format: str | None = None) -> str | None:
    """
    Parse a week value into ``yyyy-MM-dd``.

    Order: ISO passthrough, the caller's format hint, the fixed fallback
    formats, then dateutil's free-form parser.

    A string already shaped ``yyyy-MM-dd`` is returned as-is only when it
    names a real calendar day; ``2025-13-45`` returns None rather than
    falling through to the other formats.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    raw = str(value).strip()
    if not raw:
        return None
    if _ISO_DATE.match(raw):
        return raw if _try_format(raw, "yyyy-MM-dd") else None

    hint = week_format.strip() if week_format and week_format.strip() else DEFAULT_WEEK_FORMAT
    for pattern in (hint, *FALLBACK_DATE_FORMATS):
        parsed = _try_format(raw, pattern)
        if parsed is not None:
            return parsed.isoformat()

    try:
        return date_parser.parse(raw).date().isoformat()
    except (ValueError, OverflowError):
        return None


def week_start_of(value: Any, week_format: str | None = None) -> str | None:
    """
    Return the Monday (UTC) of the week containing ``value``.
    """

    iso = coerce_date(value, week_format)
    if iso is None:
        return None
    moment = datetime.strptime(iso, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    # isoweekday(): Monday=1 .. Sunday=7; % 7 gives the Sunday=0 numbering.
    offset = (moment.isoweekday() % 7 + 6) % 7
    return (moment - timedelta(days=offset)).date().isoformat()


def parse_iso_date(value: str) -> date:
    """
    Parse a ``yyyy-MM-dd`` string produced by :func:`coerce_date`.
    """

    return datetime.strptime(value, "%Y-%m-%d").date()
