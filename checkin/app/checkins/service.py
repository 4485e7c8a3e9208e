"""Check-in actions as the presentation layer sees them."""

import dataclasses
import datetime
import logging
from collections.abc import Sequence

from .. import settings
from ..errors import NotFound, TooManyPhotos
from ..location.provider import LocationProvider
from ..photos import codec
from ..records.models import CheckInRecord
from ..records.store import RecordStore

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class HistoryRow:
    """One line of the check-in history list."""

    id: int
    label: str
    timestamp: datetime.datetime


@dataclasses.dataclass(frozen=True)
class CheckInDetail:
    """Everything the detail view shows for one check-in."""

    id: int
    label: str
    latitude: str
    longitude: str
    timestamp: datetime.datetime
    notes: str | None
    photo_count: int


def format_coordinate(value: float) -> str:
    """Format a coordinate with six decimals (roughly 0.1 m)."""
    return f'{value:.6f}'


class CheckInService:
    """Performs check-ins against the current fix and renders stored ones."""

    def __init__(
        self,
        store: RecordStore,
        location_provider: LocationProvider,
        max_photos: int | None = None,
        unknown_label: str | None = None,
    ) -> None:
        self.store = store
        self.location_provider = location_provider
        self.max_photos = settings.MAX_PHOTOS if max_photos is None else max_photos
        self.unknown_label = unknown_label or settings.UNKNOWN_LOCATION_LABEL

    def perform_check_in(
        self, notes: str | None = None, photos: Sequence[bytes] = ()
    ) -> CheckInRecord:
        """Record a check-in at the current location.

        Raises LocationUnavailable when there is no fix and TooManyPhotos when
        more than max_photos are attached. With no photos the record carries
        no photo data at all.
        """
        fix = self.location_provider.request_fix()
        if len(photos) > self.max_photos:
            raise TooManyPhotos(len(photos), self.max_photos)

        record = self.store.create(
            timestamp=datetime.datetime.now(datetime.UTC),
            latitude=fix.latitude,
            longitude=fix.longitude,
            location_name=fix.place_name or self.unknown_label,
            notes=notes,
            photo_blob=codec.encode(photos) if photos else None,
        )
        logger.info('Checked in at %s with %d photos', record.location_name, len(photos))
        return record

    def history(self) -> list[HistoryRow]:
        """All check-ins for the history list, newest first."""
        return [self._row(record) for record in self.store.list()]

    def detail(self, record_id: int) -> CheckInDetail:
        record = self.store.get(record_id)
        assert record.id is not None
        return CheckInDetail(
            id=record.id,
            label=record.display_name(self.unknown_label),
            latitude=format_coordinate(record.latitude),
            longitude=format_coordinate(record.longitude),
            timestamp=record.timestamp,
            notes=record.notes or None,
            photo_count=record.photo_count,
        )

    def photo(self, record_id: int, index: int) -> bytes:
        """Return one decoded photo; NotFound if the record has no such photo."""
        photos = self.store.get(record_id).photos or []
        if not 0 <= index < len(photos):
            raise NotFound(record_id, f'Check-in {record_id} has no photo {index}')
        return photos[index]

    def delete(self, record_id: int) -> None:
        self.store.delete(record_id)

    def update_notes(self, record_id: int, notes: str | None) -> CheckInDetail:
        self.store.update_notes(record_id, notes)
        return self.detail(record_id)

    def _row(self, record: CheckInRecord) -> HistoryRow:
        assert record.id is not None
        return HistoryRow(
            id=record.id,
            label=record.display_name(self.unknown_label),
            timestamp=record.timestamp,
        )
