"""Persistence of index snapshots and collection-run records."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from index_core.db.queries import insert_snapshot
from index_core.db.tables import CollectionLogRow
from index_core.models import IndexSnapshot


def persist_snapshot(session: Session, snapshot: IndexSnapshot) -> int:
    """Insert a snapshot into index_data.index_snapshots and return the row id."""
    row = insert_snapshot(session, snapshot)
    session.commit()
    return row.id


def collection_status(succeeded: int, failed: int) -> str:
    if failed == 0:
        return "success"
    if succeeded == 0:
        return "failed"
    return "partial"


def record_collection(
    session: Session,
    *,
    ts: datetime,
    succeeded: int,
    errors: Sequence[str],
    duration_ms: int,
) -> CollectionLogRow:
    """Write one collection_log row summarizing a run."""
    row = CollectionLogRow(
        status=collection_status(succeeded, len(errors)),
        tokens_count=succeeded,
        error_message="; ".join(errors) or None,
        duration_ms=duration_ms,
        ts=ts,
    )
    session.add(row)
    session.commit()
    return row
