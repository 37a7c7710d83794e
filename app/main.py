from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

logger = logging.getLogger(__name__)

_INT_SETTINGS: tuple[str, ...] = (
    "STREAM_INGEST_BATCH_SIZE",
    "STREAM_INGEST_MAX_WARNINGS",
    "STREAM_INGEST_MAX_UPLOAD_BYTES",
    "ANALYTICS_OUTLIER_WINDOW",
    "ANALYTICS_OUTLIER_MIN_WEEKS",
    "ANALYTICS_OUTLIER_LIMIT",
)


def _validate_env() -> None:
    """
    Check startup environment variables before anything touches the database.

    Every problem is collected and reported in one RuntimeError so a broken
    deployment is fixed in a single restart.
    """

    from db.config import load_env_files

    load_env_files()
    errors: list[str] = []

    if not any(
        os.getenv(name, "").strip()
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    ):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )

    policy = os.getenv("STREAM_INGEST_CONFLICT_POLICY", "").strip().lower()
    if policy and policy not in {"skip", "overwrite", "update", "upsert"}:
        errors.append(
            f"STREAM_INGEST_CONFLICT_POLICY='{policy}' is not valid. "
            "Allowed values: ['overwrite', 'skip']."
        )

    for name in _INT_SETTINGS:
        raw = os.getenv(name, "").strip()
        if raw and not raw.lstrip("-").isdigit():
            errors.append(f"{name}='{raw}' is not an integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _verify_database() -> None:
    """
    Confirm the database answers and every stream table exists.

    Missing tables abort startup; run ``alembic upgrade head`` first.
    Nothing is created or migrated here.
    """

    from sqlalchemy import inspect as sa_inspect
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    import db.models  # noqa: F401  registers ORM tables on Base.metadata
    from db.base import Base
    from db.session import get_engine

    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
            present = set(sa_inspect(connection).get_table_names())
    except SQLAlchemyError as exc:
        raise RuntimeError("Database unavailable.") from exc

    missing = sorted(set(Base.metadata.tables) - present)
    if missing:
        logger.critical(
            "Stream tables missing from the database: %s. Run 'alembic upgrade head' and restart.",
            ", ".join(missing),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(missing)}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _verify_database()
    logger.info("Database reachable and stream schema present")
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Artist Streams API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import (
        stream_analytics_router,
        stream_import_router,
        watchlist_router,
        workspace_router,
    )
    from app.config import get_stream_ingestion_settings

    for router in (workspace_router, stream_import_router, stream_analytics_router, watchlist_router):
        application.include_router(router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        settings = get_stream_ingestion_settings()
        return {
            "status": "ok",
            "conflict_policy": settings.conflict_policy.value,
            "default_source": settings.default_source,
        }

    return application


app = create_app()
