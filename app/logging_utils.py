"""
app/logging_utils.py

Structured logging helpers for import and analytics workflows.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    UUIDs, dates and other non-JSON values are rendered with ``str``.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


@contextmanager
def timed_event(
    logger: logging.Logger,
    event: str,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> Iterator[dict[str, Any]]:
    """
    Log ``event`` once the block finishes, with ``duration_ms`` and a status.

    The yielded dict collects fields only known inside the block (row
    counts, ids). A raised exception is logged at ERROR with its type and
    then re-raised.
    """

    started = time.perf_counter()
    extra: dict[str, Any] = {}
    try:
        yield extra
    except Exception as exc:
        log_event(
            logger,
            logging.ERROR,
            event,
            **{
                **fields,
                **extra,
                "status": "failed",
                "error": type(exc).__name__,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        raise

    log_event(
        logger,
        level,
        event,
        **{
            **fields,
            **extra,
            "status": "ok",
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
