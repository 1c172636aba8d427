from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional

from sqlalchemy import extract, func, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from timetracker.core.timestamps import to_utc_naive, utcnow
from timetracker.database import Base, create_db_engine, ensure_sqlite_directory, make_session_factory
from timetracker.errors import ConstraintViolation, StoreUnavailable
from timetracker.models.entry import END_AFTER_START_CONSTRAINT, END_AFTER_START_EXPRESSION, Entry

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("start_time", "end_time", "project", "notes")
_TIME_FIELDS = ("start_time", "end_time")


@dataclass(frozen=True)
class ProjectStat:
    project: str
    total_entries: int
    total_hours: float
    first_entry: datetime
    last_entry: datetime


def _duration_hours(dialect_name: str):
    if dialect_name == "sqlite":
        return (func.julianday(Entry.end_time) - func.julianday(Entry.start_time)) * 24
    if dialect_name == "postgresql":
        return extract("epoch", Entry.end_time - Entry.start_time) / 3600.0
    if dialect_name in ("mysql", "mariadb"):
        return func.timestampdiff(text("MICROSECOND"), Entry.start_time, Entry.end_time) / 3600e6
    raise NotImplementedError(f"total_hours is not supported on {dialect_name}")


def _constraint_violation(exc: IntegrityError) -> ConstraintViolation:
    detail = str(exc.orig)
    # sqlite reports the constraint name (older releases the expression); postgres the name
    if END_AFTER_START_CONSTRAINT in detail or END_AFTER_START_EXPRESSION in detail:
        return ConstraintViolation(
            "end_time must be after start_time",
            field="end_time",
            constraint=END_AFTER_START_CONSTRAINT,
        )
    return ConstraintViolation(detail)


class EntryStore:
    """
    Durable CRUD and aggregate queries over the entries table.

    Every operation opens its own session and runs as one transaction. The
    end_time > start_time check constraint is enforced by the database; a
    write that would break it raises ConstraintViolation and leaves the row
    untouched.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        *,
        engine: Optional[Engine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if engine is None:
            if database_url is None:
                raise ValueError("database_url or engine is required")
            engine = create_db_engine(database_url)

        self.engine = engine
        self._session_factory = make_session_factory(engine)
        self._clock = clock or utcnow

    def init(self) -> None:
        ensure_sqlite_directory(self.engine)
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StoreUnavailable(str(exc)) from exc

    def create(
        self,
        start_time: datetime,
        end_time: datetime,
        project: str,
        notes: Optional[str] = None,
    ) -> Entry:
        now = self._clock()

        db = self._session_factory()
        try:
            entry = Entry(
                start_time=to_utc_naive(start_time),
                end_time=to_utc_naive(end_time),
                project=project,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            db.add(entry)
            db.commit()
            db.refresh(entry)
        except IntegrityError as exc:
            db.rollback()
            logger.warning("Entry rejected by database", extra={"error": str(exc.orig)})
            raise _constraint_violation(exc) from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        logger.info("Entry created", extra={"entry_id": entry.id, "project": entry.project})
        return entry

    def get(self, entry_id: int) -> Optional[Entry]:
        db = self._session_factory()
        try:
            return db.query(Entry).filter(Entry.id == int(entry_id)).first()
        finally:
            db.close()

    def list(
        self,
        project: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Entry]:
        db = self._session_factory()
        try:
            q = db.query(Entry)
            if project is not None:
                q = q.filter(Entry.project == str(project))

            return (
                q.order_by(Entry.start_time.desc(), Entry.id.desc())
                .offset(int(offset))
                .limit(int(limit))
                .all()
            )
        finally:
            db.close()

    def update(self, entry_id: int, fields: Mapping[str, Any]) -> Optional[Entry]:
        unknown = set(fields) - set(MUTABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        db = self._session_factory()
        try:
            entry = db.query(Entry).filter(Entry.id == int(entry_id)).first()
            if entry is None:
                return None
            if not fields:
                return entry

            for name, value in fields.items():
                if name in _TIME_FIELDS and value is not None:
                    value = to_utc_naive(value)
                setattr(entry, name, value)
            entry.updated_at = self._clock()

            db.commit()
            db.refresh(entry)
        except IntegrityError as exc:
            db.rollback()
            logger.warning(
                "Entry update rejected by database",
                extra={"entry_id": int(entry_id), "error": str(exc.orig)},
            )
            raise _constraint_violation(exc) from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        logger.info("Entry updated", extra={"entry_id": entry.id, "fields": sorted(fields)})
        return entry

    def delete(self, entry_id: int) -> bool:
        db = self._session_factory()
        try:
            deleted = (
                db.query(Entry)
                .filter(Entry.id == int(entry_id))
                .delete(synchronize_session=False)
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        if deleted:
            logger.info("Entry deleted", extra={"entry_id": int(entry_id)})
        return deleted > 0

    def aggregate_by_project(self) -> List[ProjectStat]:
        """
        One row per project that has entries.

        total_hours is the float sum of end_time - start_time in hours;
        first_entry / last_entry are min(start_time) / max(end_time).
        Ordered by total_hours descending, then project name.
        """
        total_hours = func.sum(_duration_hours(self.engine.dialect.name)).label("total_hours")

        db = self._session_factory()
        try:
            rows = (
                db.query(
                    Entry.project.label("project"),
                    func.count(Entry.id).label("total_entries"),
                    total_hours,
                    func.min(Entry.start_time).label("first_entry"),
                    func.max(Entry.end_time).label("last_entry"),
                )
                .group_by(Entry.project)
                .order_by(total_hours.desc(), Entry.project.asc())
                .all()
            )
        finally:
            db.close()

        return [
            ProjectStat(
                project=r.project,
                total_entries=int(r.total_entries),
                total_hours=float(r.total_hours or 0.0),
                first_entry=r.first_entry,
                last_entry=r.last_entry,
            )
            for r in rows
        ]
