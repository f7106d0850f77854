"""
History recorder.
Append-only change log written after the triggering mutation has committed.
"""
from typing import Any, Dict, List, Optional

import structlog
from fastapi import BackgroundTasks, Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ..db import Database
from ..models.models import HistoryRecord


log = structlog.get_logger(__name__)


class HistoryRecorder:
    def __init__(self, database: Database, default_actor: str = "System"):
        self.database = database
        self.default_actor = default_actor

    def record(
        self,
        type: str,
        entity_id: int,
        changes: Optional[Dict[str, Any]] = None,
        actor: Optional[str] = None,
    ) -> HistoryRecord:
        """
        Append one history entry in its own session.

        Args:
            type: Mutation tag (personnel_create|inventory_update|assignment|return|...)
            entity_id: Id of the entity the mutation touched
            changes: Snapshot of the submitted or changed fields
            actor: Who performed it; defaults to the configured system actor

        Returns:
            Created HistoryRecord
        """
        db = self.database.session()
        try:
            entry = HistoryRecord(
                type=type,
                entity_id=int(entity_id),
                changes=jsonable_encoder(changes or {}),
                user=actor or self.default_actor,
            )
            db.add(entry)
            db.commit()
            db.refresh(entry)
            return entry
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def record_or_drop(
        self,
        type: str,
        entity_id: int,
        changes: Optional[Dict[str, Any]] = None,
        actor: Optional[str] = None,
    ) -> Optional[HistoryRecord]:
        # The mutation is already committed; a lost audit row must not fail the request
        try:
            return self.record(type, entity_id, changes, actor)
        except Exception:
            log.exception("history_record_failed", history_type=type, entity_id=entity_id)
            return None

    def schedule(
        self,
        background_tasks: BackgroundTasks,
        type: str,
        entity_id: int,
        changes: Optional[Dict[str, Any]] = None,
        actor: Optional[str] = None,
    ) -> None:
        """Queue the append to run after the response is sent."""
        background_tasks.add_task(self.record_or_drop, type, entity_id, jsonable_encoder(changes or {}), actor)


def get_history_recorder(request: Request) -> HistoryRecorder:
    return request.app.state.history


def get_history(
    db: Session,
    type: Optional[str] = None,
    entity_id: Optional[int] = None,
    limit: int = 100,
) -> List[HistoryRecord]:
    """
    Get history entries, newest first.

    Args:
        db: Database session
        type: Filter by mutation tag
        entity_id: Filter by entity id
        limit: Maximum number of results

    Returns:
        List of HistoryRecord objects
    """
    query = db.query(HistoryRecord)

    if type:
        query = query.filter(HistoryRecord.type == type)

    if entity_id is not None:
        query = query.filter(HistoryRecord.entity_id == entity_id)

    query = query.order_by(HistoryRecord.date.desc(), HistoryRecord.id.desc())
    if limit:
        query = query.limit(limit)

    return query.all()


def compute_diff(before: Dict, after: Dict) -> Dict:
    """
    Compute a diff between two dictionaries.

    Args:
        before: Before state
        after: After state

    Returns:
        Dict with before/after values for changed fields
    """
    diff = {}
    all_keys = set(before.keys()) | set(after.keys())

    for key in all_keys:
        before_val = before.get(key)
        after_val = after.get(key)

        if before_val != after_val:
            diff[key] = {
                "before": before_val,
                "after": after_val,
            }

    return diff
