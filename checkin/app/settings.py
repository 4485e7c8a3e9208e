"""Check-in service settings read from environment variables."""

import os

import common.settings

DATABASE_URL: str = os.environ.get(
    'DATABASE_URL', f'sqlite:///{common.settings.DATA_DIR}/checkin.db'
)
DATABASE_ECHO: bool = os.environ.get('DATABASE_ECHO', 'false').lower() == 'true'

# Photos allowed on a single check-in.
MAX_PHOTOS: int = int(os.environ.get('MAX_PHOTOS', '9'))

GEOCODER_USER_AGENT: str = os.environ.get('GEOCODER_USER_AGENT', 'CheckInApp/1.0')
UNKNOWN_LOCATION_LABEL: str = os.environ.get(
    'UNKNOWN_LOCATION_LABEL', 'Unknown location'
)
