"""Exceptions raised by the check-in core and its collaborators."""


class CheckInError(Exception):
    """Base class for all check-in errors."""


class PersistenceError(CheckInError):
    """A durable read or write against the record database failed."""


class NotFound(CheckInError, LookupError):
    """No live record exists for the requested id."""

    def __init__(self, record_id: int, message: str | None = None) -> None:
        super().__init__(message or f'Check-in {record_id} not found')
        self.record_id = record_id


class CorruptEncoding(CheckInError, ValueError):
    """A photo blob does not follow the length-prefixed framing."""


class LocationUnavailable(CheckInError):
    """No location fix is available at the time of the check-in."""


class InvalidCoordinates(CheckInError, ValueError):
    """Latitude or longitude is outside its valid range."""


class TooManyPhotos(CheckInError, ValueError):
    """More photos were attached than a single check-in allows."""

    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f'{count} photos attached, at most {limit} allowed')
        self.count = count
        self.limit = limit
