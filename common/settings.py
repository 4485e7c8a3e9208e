"""Shared application settings read from environment variables."""

import os

DATA_DIR: str = os.environ.get('DATA_DIR', 'data')
LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'INFO').upper()
