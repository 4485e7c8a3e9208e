"""Check-in application - location fixes, check-ins and their photos."""

import contextlib
from collections.abc import AsyncGenerator

import fastapi
import uvicorn

import common.app

from . import routes
from .checkins.service import CheckInService
from .location import provider
from .records.database import CheckInDatabase
from .records.store import RecordStore


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI) -> AsyncGenerator[None, None]:
    """Open the record database on startup and close it on shutdown."""
    database = CheckInDatabase().open()
    location_provider = provider.ReportedLocationProvider(provider.NominatimResolver())
    app.state.database = database
    app.state.location_provider = location_provider
    app.state.checkin_service = CheckInService(RecordStore(database), location_provider)
    try:
        yield
    finally:
        database.close()


app = common.app.create_app('Check-in', lifespan=lifespan)
app.include_router(routes.router)
routes.install_error_handlers(app)


if __name__ == '__main__':
    uvicorn.run(app, host='0.0.0.0', port=8000)
