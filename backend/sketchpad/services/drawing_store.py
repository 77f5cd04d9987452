"""Keyed storage of drawing records.

The store is built once by the application factory and handed to request
handlers through ``app.state``; there is no module-level instance. Updates are
last-write-wins: no version checks, no optimistic concurrency tokens.
"""
import abc
import copy
import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from sketchpad.core.config import Settings, settings
from sketchpad.core.errors import DrawingValidationError
from sketchpad.db.engine import engine_from_settings
from sketchpad.models.drawing import (
    UNSET,
    Drawing,
    DrawingCreate,
    DrawingPatch,
    DrawingUpdate,
    utcnow,
)

logger = logging.getLogger(__name__)

Changes = Union[DrawingUpdate, DrawingPatch]


class MonotonicClock:
    """UTC clock that never returns the same instant twice."""

    def __init__(self):
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = utcnow()
            if self._last is not None and current <= self._last:
                current = self._last + timedelta(microseconds=1)
            self._last = current
            return current


def clean_name(name: Optional[str], default: str) -> str:
    return (name or "").strip() or default


def apply_patch(drawing: Drawing, patch: DrawingPatch, default_name: str) -> Drawing:
    """Merge the fields present in ``patch`` over ``drawing`` in place."""
    if patch.name is not UNSET:
        drawing.name = clean_name(patch.name, default_name)
    if patch.image_data is not UNSET:
        if not patch.image_data:
            raise DrawingValidationError(
                errors=[{"loc": ["imageData"], "msg": "imageData is required and cannot be cleared"}]
            )
        drawing.image_data = patch.image_data
    if patch.original_image is not UNSET:
        drawing.original_image = patch.original_image
    if patch.metadata is not UNSET:
        drawing.metadata_ = copy.deepcopy(patch.metadata)
    return drawing


def _as_patch(changes: Changes) -> DrawingPatch:
    if isinstance(changes, DrawingPatch):
        return changes
    return changes.to_patch()


class DrawingStore(abc.ABC):
    """CRUD over drawing records."""

    def __init__(self, default_name: str = "Untitled", clock: Optional[MonotonicClock] = None):
        self.default_name = default_name
        self.clock = clock or MonotonicClock()

    def _new_record(self, data: DrawingCreate) -> Drawing:
        now = self.clock.now()
        return Drawing(
            name=clean_name(data.name, self.default_name),
            image_data=data.image_data,
            original_image=data.original_image or None,
            metadata_=data.metadata_dict(),
            created_at=now,
            updated_at=now,
        )

    @abc.abstractmethod
    def list(self) -> List[Drawing]:
        """All records, most recently updated first."""

    @abc.abstractmethod
    def get(self, drawing_id: str) -> Optional[Drawing]:
        """The record, or None when the id is absent."""

    @abc.abstractmethod
    def create(self, data: DrawingCreate) -> Drawing:
        ...

    @abc.abstractmethod
    def update(self, drawing_id: str, changes: Changes) -> Optional[Drawing]:
        """Merged record, or None when the id is absent."""

    @abc.abstractmethod
    def delete(self, drawing_id: str) -> bool:
        """Whether a record was removed."""

    def close(self) -> None:
        pass


def _copy_drawing(drawing: Drawing) -> Drawing:
    return Drawing(
        id=drawing.id,
        name=drawing.name,
        image_data=drawing.image_data,
        original_image=drawing.original_image,
        metadata_=copy.deepcopy(drawing.metadata_),
        created_at=drawing.created_at,
        updated_at=drawing.updated_at,
    )


class MemoryDrawingStore(DrawingStore):
    """Process-local store. Callers always receive copies."""

    def __init__(self, default_name: str = "Untitled", clock: Optional[MonotonicClock] = None):
        super().__init__(default_name=default_name, clock=clock)
        self._drawings: Dict[str, Drawing] = {}
        # Sync FastAPI handlers run in a threadpool.
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._drawings)

    def list(self) -> List[Drawing]:
        with self._lock:
            # sorted() is stable, so ties keep insertion order.
            drawings = sorted(self._drawings.values(), key=lambda d: d.updated_at, reverse=True)
            return [_copy_drawing(d) for d in drawings]

    def get(self, drawing_id: str) -> Optional[Drawing]:
        with self._lock:
            drawing = self._drawings.get(drawing_id)
            return _copy_drawing(drawing) if drawing else None

    def create(self, data: DrawingCreate) -> Drawing:
        drawing = self._new_record(data)
        with self._lock:
            self._drawings[drawing.id] = drawing
            logger.info("Created drawing", extra={"drawing_id": drawing.id})
            return _copy_drawing(drawing)

    def update(self, drawing_id: str, changes: Changes) -> Optional[Drawing]:
        patch = _as_patch(changes)
        with self._lock:
            existing = self._drawings.get(drawing_id)
            if existing is None:
                return None
            updated = apply_patch(_copy_drawing(existing), patch, self.default_name)
            updated.updated_at = self.clock.now()
            self._drawings[drawing_id] = updated
            logger.info(
                "Updated drawing",
                extra={"drawing_id": drawing_id, "fields": patch.changed_fields()},
            )
            return _copy_drawing(updated)

    def delete(self, drawing_id: str) -> bool:
        with self._lock:
            removed = self._drawings.pop(drawing_id, None) is not None
        if removed:
            logger.info("Deleted drawing", extra={"drawing_id": drawing_id})
        return removed

    def close(self) -> None:
        with self._lock:
            self._drawings.clear()


class SqlDrawingStore(DrawingStore):
    """SQLModel-backed store; survives restarts when the engine points at a file."""

    def __init__(
        self,
        engine: Engine,
        default_name: str = "Untitled",
        clock: Optional[MonotonicClock] = None,
    ):
        super().__init__(default_name=default_name, clock=clock)
        self.engine = engine
        SQLModel.metadata.create_all(engine, tables=[Drawing.__table__])

    def list(self) -> List[Drawing]:
        with Session(self.engine) as session:
            return list(session.exec(select(Drawing).order_by(Drawing.updated_at.desc())).all())

    def get(self, drawing_id: str) -> Optional[Drawing]:
        with Session(self.engine) as session:
            return session.get(Drawing, drawing_id)

    def create(self, data: DrawingCreate) -> Drawing:
        with Session(self.engine) as session:
            drawing = self._new_record(data)
            session.add(drawing)
            session.commit()
            session.refresh(drawing)
            logger.info("Created drawing", extra={"drawing_id": drawing.id})
            return drawing

    def update(self, drawing_id: str, changes: Changes) -> Optional[Drawing]:
        patch = _as_patch(changes)
        with Session(self.engine) as session:
            drawing = session.get(Drawing, drawing_id)
            if not drawing:
                return None

            apply_patch(drawing, patch, self.default_name)
            drawing.updated_at = self.clock.now()
            session.add(drawing)
            session.commit()
            session.refresh(drawing)
            logger.info(
                "Updated drawing",
                extra={"drawing_id": drawing_id, "fields": patch.changed_fields()},
            )
            return drawing

    def delete(self, drawing_id: str) -> bool:
        with Session(self.engine) as session:
            drawing = session.get(Drawing, drawing_id)
            if not drawing:
                return False
            session.delete(drawing)
            session.commit()
        logger.info("Deleted drawing", extra={"drawing_id": drawing_id})
        return True

    def close(self) -> None:
        self.engine.dispose()


def build_store(app_settings: Optional[Settings] = None) -> DrawingStore:
    """Construct the store selected by STORAGE_BACKEND."""
    app_settings = app_settings or settings
    if app_settings.STORAGE_BACKEND == "sqlite":
        store: DrawingStore = SqlDrawingStore(
            engine_from_settings(app_settings),
            default_name=app_settings.DEFAULT_DRAWING_NAME,
        )
    else:
        store = MemoryDrawingStore(default_name=app_settings.DEFAULT_DRAWING_NAME)
    logger.info("Drawing store ready", extra={"backend": app_settings.STORAGE_BACKEND})
    return store
