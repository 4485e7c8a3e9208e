"""Durable create/list/get/delete over check-in records."""

import contextlib
import dataclasses
import datetime
import enum
import logging
from collections.abc import Callable, Iterator

import sqlalchemy.exc
import sqlmodel

from ..errors import NotFound, PersistenceError
from .database import CheckInDatabase
from .models import CheckInRecord, to_utc, validate_coordinates

logger = logging.getLogger(__name__)


class StoreEventKind(enum.Enum):
    CREATED = 'created'
    UPDATED = 'updated'
    DELETED = 'deleted'


@dataclasses.dataclass(frozen=True)
class StoreEvent:
    """Notification sent to subscribers after a successful write."""

    kind: StoreEventKind
    record_id: int


StoreListener = Callable[[StoreEvent], None]


class RecordStore:
    """Check-in records backed by a CheckInDatabase.

    Every operation runs in its own session and is committed before it
    returns, so a successful call is visible to the next one. Subscribers
    are told about each committed write.
    """

    def __init__(self, database: CheckInDatabase) -> None:
        self._database = database
        self._listeners: list[StoreListener] = []

    def create(
        self,
        timestamp: datetime.datetime,
        latitude: float,
        longitude: float,
        location_name: str | None = None,
        notes: str | None = None,
        photo_blob: bytes | None = None,
    ) -> CheckInRecord:
        """Persist a new check-in and return it with its assigned id."""
        validate_coordinates(latitude, longitude)
        record = CheckInRecord(
            timestamp=to_utc(timestamp),
            latitude=latitude,
            longitude=longitude,
            location_name=location_name,
            notes=notes,
            photo_blob=photo_blob,
        )
        with self._session('save check-in') as session:
            session.add(record)
            session.commit()
            session.refresh(record)

        assert record.id is not None
        logger.info(
            'Created check-in %d at (%.6f, %.6f)', record.id, latitude, longitude
        )
        self._notify(StoreEvent(StoreEventKind.CREATED, record.id))
        return record

    def list(self) -> list[CheckInRecord]:
        """Return every record, newest first; same-instant records newest-created first."""
        with self._session('list check-ins') as session:
            statement = sqlmodel.select(CheckInRecord).order_by(
                CheckInRecord.timestamp.desc(),  # type: ignore[attr-defined]
                CheckInRecord.id.desc(),  # type: ignore[union-attr]
            )
            return list(session.exec(statement).all())

    def get(self, record_id: int) -> CheckInRecord:
        """Return the record with this id or raise NotFound."""
        with self._session('load check-in') as session:
            record = session.get(CheckInRecord, record_id)
        if record is None:
            raise NotFound(record_id)
        return record

    def delete(self, record_id: int) -> None:
        """Remove a record; raise NotFound if it does not exist."""
        with self._session('delete check-in') as session:
            record = session.get(CheckInRecord, record_id)
            if record is None:
                raise NotFound(record_id)
            session.delete(record)
            session.commit()

        logger.info('Deleted check-in %d', record_id)
        self._notify(StoreEvent(StoreEventKind.DELETED, record_id))

    def update_notes(self, record_id: int, notes: str | None) -> CheckInRecord:
        """Replace the notes on an existing record."""
        with self._session('update check-in') as session:
            record = session.get(CheckInRecord, record_id)
            if record is None:
                raise NotFound(record_id)
            record.notes = notes
            session.add(record)
            session.commit()
            session.refresh(record)

        logger.info('Updated notes on check-in %d', record_id)
        self._notify(StoreEvent(StoreEventKind.UPDATED, record_id))
        return record

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a listener for committed writes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @contextlib.contextmanager
    def _session(self, action: str) -> Iterator[sqlmodel.Session]:
        """Yield a session, turning database failures into PersistenceError.

        Leaving the block closes the session, which rolls back anything left
        uncommitted.
        """
        try:
            with self._database.session() as session:
                yield session
        except sqlalchemy.exc.SQLAlchemyError as exc:
            logger.error('Failed to %s: %s', action, exc)
            raise PersistenceError(f'Failed to {action}') from exc

    def _notify(self, event: StoreEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # The write is already committed
                logger.exception('Check-in listener failed on %s', event)
