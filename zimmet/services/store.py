"""
Entity store.

Generic create / read / update / delete over one mapped model. Storage errors
are translated to domain errors here so routes never see SQLAlchemy
exceptions: uniqueness collisions become ``ConstraintViolation`` and missing
ids become ``NotFound``.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConstraintViolation, NotFound


log = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT")

# Largest value a 64-bit INTEGER primary key can hold
MAX_ID = 2**63 - 1


def is_storable_id(value) -> bool:
    """False for ids no row can have; the driver would overflow binding them."""
    return isinstance(value, int) and 0 < value <= MAX_ID


class EntityStore(Generic[ModelT]):
    def __init__(
        self,
        db: Session,
        model: Type[ModelT],
        label: str,
        unique_fields: Sequence[str] = (),
    ):
        self.db = db
        self.model = model
        self.label = label
        self.unique_fields = tuple(unique_fields)

    # ---------- reads ----------
    def list(self, limit: Optional[int] = None) -> List[ModelT]:
        query = self.db.query(self.model).order_by(self.model.created_at.desc(), self.model.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def get(self, entity_id: int) -> ModelT:
        row = self.db.get(self.model, entity_id) if is_storable_id(entity_id) else None
        if row is None:
            raise NotFound(f"{self.label} not found")
        return row

    # ---------- writes ----------
    def create(self, fields: Dict[str, Any], commit: bool = True) -> ModelT:
        self._check_unique(fields)
        row = self.model(**fields)
        self.db.add(row)
        self._flush_or_raise()
        if commit:
            self.commit()
            self.db.refresh(row)
        return row

    def update(self, entity_id: int, fields: Dict[str, Any], commit: bool = True) -> ModelT:
        row = self.get(entity_id)
        self._check_unique(fields, exclude_id=row.id)
        for key, value in fields.items():
            setattr(row, key, value)
        self.touch(row)
        self._flush_or_raise()
        if commit:
            self.commit()
            self.db.refresh(row)
        return row

    def delete(self, entity_id: int, commit: bool = True) -> None:
        row = self.get(entity_id)
        self.db.delete(row)
        self._flush_or_raise()
        if commit:
            self.commit()

    def commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConstraintViolation(self._integrity_message(e)) from e

    @staticmethod
    def touch(row) -> None:
        row.updated_at = datetime.now(timezone.utc)

    # ---------- helpers ----------
    def _check_unique(self, fields: Dict[str, Any], exclude_id: Optional[int] = None) -> None:
        # Pre-check gives a readable message; the unique index still guards concurrent writers
        for name in self.unique_fields:
            value = fields.get(name)
            if value is None:
                continue
            query = self.db.query(self.model.id).filter(getattr(self.model, name) == value)
            if exclude_id is not None:
                query = query.filter(self.model.id != exclude_id)
            if query.first() is not None:
                raise ConstraintViolation(f"{self.label} with this {name.replace('_', ' ')} already exists")

    def _flush_or_raise(self) -> None:
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise ConstraintViolation(self._integrity_message(e)) from e

    def _integrity_message(self, exc: IntegrityError) -> str:
        log.warning("integrity_error", entity=self.label, error=str(exc.orig))
        return f"{self.label} violates a database constraint"
