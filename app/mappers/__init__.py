"""
app/mappers package marker.
"""

from app.mappers.header_mapper import (
    CANONICAL_FIELDS,
    HEADER_ALIASES,
    HeaderMapper,
    infer_header_mapping,
    normalize_header,
    resolve_canonical_fields,
)

__all__ = [
    "CANONICAL_FIELDS",
    "HEADER_ALIASES",
    "HeaderMapper",
    "infer_header_mapping",
    "normalize_header",
    "resolve_canonical_fields",
]
