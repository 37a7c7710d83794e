"""
Import a vendor stream export from CLI.
"""

from __future__ import annotations

import argparse
import json
import uuid
from pathlib import Path

from app.services.stream_import_service import StreamImportError, build_stream_import_service
from app.storage.sqlalchemy_store import SQLAlchemyStreamFactStore
from db.session import SessionLocal


def main() -> int:
    parser = argparse.ArgumentParser(description="Import a weekly stream export into a workspace.")
    parser.add_argument("workspace_id", type=uuid.UUID, help="Target workspace id.")
    parser.add_argument("path", type=Path, help="CSV/TSV export to import.")
    parser.add_argument("--week-format", dest="week_format", default=None)
    parser.add_argument(
        "--week-start",
        dest="week_start",
        default=None,
        help="Fallback week for rows without one.",
    )
    parser.add_argument("--source", dest="source", default=None)
    parser.add_argument("--region", dest="region", default=None)
    parser.add_argument(
        "--conflict-policy",
        dest="conflict_policy",
        choices=("skip", "overwrite"),
        default=None,
    )
    args = parser.parse_args()

    with SessionLocal() as db:
        service = build_stream_import_service(SQLAlchemyStreamFactStore(db))
        try:
            summary = service.import_file(
                workspace_id=args.workspace_id,
                file_bytes=args.path.read_bytes(),
                week_format=args.week_format,
                fallback_week=args.week_start,
                source=args.source,
                region=args.region,
                uploaded_by="cli",
                file_name=args.path.name,
                conflict_policy=args.conflict_policy,
            )
        except (StreamImportError, LookupError) as exc:
            print(json.dumps({"error": str(exc)}, indent=2))
            return 1

    payload = {
        "upload_id": str(summary.upload_id),
        "created": summary.created,
        "skipped": summary.skipped,
        "updated": summary.updated,
        "total": summary.total,
        "artists_created": summary.artists_created,
        "warnings": summary.warnings,
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
