"""Database model for check-in records."""

import datetime

import sqlmodel

from ..errors import InvalidCoordinates
from ..photos import codec


class CheckInRecord(sqlmodel.SQLModel, table=True):
    """One logged visit: where, when, notes and the packed photo blob."""

    __tablename__ = 'checkin_record'  # type: ignore[misc]
    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted row
    __table_args__ = {'sqlite_autoincrement': True}

    id: int | None = sqlmodel.Field(default=None, primary_key=True)
    timestamp: datetime.datetime = sqlmodel.Field(index=True)
    latitude: float
    longitude: float
    location_name: str | None = None
    notes: str | None = None
    photo_blob: bytes | None = None

    @property
    def photos(self) -> list[bytes] | None:
        """Decoded photos, or None when the record carries no photo data."""
        if self.photo_blob is None:
            return None
        return codec.decode(self.photo_blob)

    @property
    def photo_count(self) -> int:
        """Number of photos that actually decode (0 when there is no photo data)."""
        return len(self.photos or [])

    def display_name(self, unknown_label: str) -> str:
        """Place name, or the given label when none was resolved."""
        return self.location_name or unknown_label


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Raise InvalidCoordinates unless both values are finite and in range."""
    if not -90.0 <= latitude <= 90.0:
        raise InvalidCoordinates(f'Latitude {latitude} is outside [-90, 90]')
    if not -180.0 <= longitude <= 180.0:
        raise InvalidCoordinates(f'Longitude {longitude} is outside [-180, 180]')


def to_utc(timestamp: datetime.datetime) -> datetime.datetime:
    """Normalise a timestamp to aware UTC; naive values are taken to be UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=datetime.UTC)
    return timestamp.astimezone(datetime.UTC)
