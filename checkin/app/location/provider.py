"""Location fixes and place names for check-ins.

The device is the location source: it reports coordinates whenever it gets
a new reading, and the provider keeps the latest fix with a reverse-geocoded
place name. Check-ins ask for that fix with request_fix().
"""

import dataclasses
import datetime
import logging
from collections.abc import Callable
from typing import Any, Protocol

from geopy import geocoders  # pyright: ignore[reportMissingTypeStubs]
from geopy.exc import GeopyError  # pyright: ignore[reportMissingTypeStubs]

from .. import settings
from ..errors import LocationUnavailable
from ..records.models import validate_coordinates

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class LocationFix:
    """One location reading."""

    latitude: float
    longitude: float
    place_name: str | None = None
    accuracy_m: float | None = None
    fixed_at: datetime.datetime = dataclasses.field(
        default_factory=lambda: datetime.datetime.now(datetime.UTC)
    )


FixListener = Callable[[LocationFix], None]


class LocationProvider(Protocol):
    """Source of the current location."""

    def request_fix(self) -> LocationFix:
        """Return the current fix or raise LocationUnavailable."""
        ...

    def subscribe(self, listener: FixListener) -> Callable[[], None]:
        """Call listener on every new fix; returns an unsubscribe callable."""
        ...


class PlaceNameResolver(Protocol):
    def resolve(self, latitude: float, longitude: float) -> str | None: ...


# Address parts tried in order when Nominatim has no name for the spot.
_ADDRESS_KEYS = (
    'amenity',
    'building',
    'shop',
    'road',
    'suburb',
    'city',
    'town',
    'village',
    'county',
)


class NominatimResolver:
    """Reverse geocode coordinates to a short place name via Nominatim."""

    def __init__(self, user_agent: str | None = None, geolocator: Any = None) -> None:
        self.geolocator = geolocator or geocoders.Nominatim(
            user_agent=user_agent or settings.GEOCODER_USER_AGENT
        )

    def resolve(self, latitude: float, longitude: float) -> str | None:
        """Return a place name, or None if the geocoder finds nothing or fails."""
        try:
            result = self.geolocator.reverse(  # type: ignore[union-attr]
                f'{latitude}, {longitude}', exactly_one=True
            )
        except (GeopyError, ValueError) as exc:
            logger.warning(
                'Reverse geocoding (%.6f, %.6f) failed: %s', latitude, longitude, exc
            )
            return None
        if not result:
            return None

        raw: dict[str, object] = result.raw  # type: ignore[union-attr]
        name = raw.get('name')
        if isinstance(name, str) and name:
            return name
        address: dict[str, str] = raw.get('address', {})  # type: ignore[assignment]
        for key in _ADDRESS_KEYS:
            if address.get(key):
                return address[key]
        return result.address or None  # type: ignore[union-attr]


class ReportedLocationProvider:
    """Keeps the latest fix reported by the device."""

    def __init__(self, resolver: PlaceNameResolver | None = None) -> None:
        self._resolver = resolver
        self._fix: LocationFix | None = None
        self._listeners: list[FixListener] = []

    def report(
        self, latitude: float, longitude: float, accuracy_m: float | None = None
    ) -> LocationFix:
        """Record a new reading and resolve its place name."""
        validate_coordinates(latitude, longitude)
        fix = LocationFix(
            latitude=latitude,
            longitude=longitude,
            place_name=self._resolve(latitude, longitude),
            accuracy_m=accuracy_m,
        )
        self._publish(fix)
        return fix

    def refresh(self) -> LocationFix:
        """Resolve the place name again for the current coordinates."""
        current = self.request_fix()
        fix = dataclasses.replace(
            current,
            place_name=self._resolve(current.latitude, current.longitude),
            fixed_at=datetime.datetime.now(datetime.UTC),
        )
        self._publish(fix)
        return fix

    def request_fix(self) -> LocationFix:
        if self._fix is None:
            raise LocationUnavailable('No location fix has been reported yet')
        return self._fix

    def clear(self) -> None:
        """Forget the current fix, e.g. when location permission is revoked."""
        self._fix = None

    def subscribe(self, listener: FixListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _resolve(self, latitude: float, longitude: float) -> str | None:
        if self._resolver is None:
            return None
        return self._resolver.resolve(latitude, longitude)

    def _publish(self, fix: LocationFix) -> None:
        self._fix = fix
        logger.info(
            'Location fix (%.6f, %.6f) %s',
            fix.latitude,
            fix.longitude,
            fix.place_name or '(no place name)',
        )
        for listener in list(self._listeners):
            try:
                listener(fix)
            except Exception:
                logger.exception('Location listener failed')
