"""JSON API for recording and browsing check-ins."""

import dataclasses
import datetime
import typing

import fastapi
import fastapi.responses
from PIL import UnidentifiedImageError
from pydantic import BaseModel, Field

from . import errors
from .checkins.service import CheckInDetail, CheckInService, HistoryRow
from .location.provider import LocationFix, ReportedLocationProvider
from .photos import capture

router = fastapi.APIRouter(prefix='/api')

# Most specific class first.
ERROR_STATUS: list[tuple[type[errors.CheckInError], int]] = [
    (errors.NotFound, 404),
    (errors.LocationUnavailable, 409),
    (errors.InvalidCoordinates, 400),
    (errors.TooManyPhotos, 400),
    (errors.CorruptEncoding, 422),
    (errors.PersistenceError, 503),
]


class LocationReport(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy_m: float | None = Field(default=None, ge=0)


class NotesUpdate(BaseModel):
    notes: str | None = None


# Dependencies
def get_service(request: fastapi.Request) -> CheckInService:
    """Check-in service created by the app lifespan."""
    return request.app.state.checkin_service


def get_location_provider(request: fastapi.Request) -> ReportedLocationProvider:
    """Location provider created by the app lifespan."""
    return request.app.state.location_provider


# Serialisation helpers
def _isoformat(timestamp: datetime.datetime) -> str:
    # Timestamps are stored as UTC; a naive value is UTC without its zone
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=datetime.UTC)
    return timestamp.isoformat()


def serialize_fix(fix: LocationFix) -> dict[str, typing.Any]:
    return {
        **dataclasses.asdict(fix),
        'fixed_at': _isoformat(fix.fixed_at),
    }


def serialize_row(row: HistoryRow) -> dict[str, typing.Any]:
    return {'id': row.id, 'label': row.label, 'timestamp': _isoformat(row.timestamp)}


def serialize_detail(detail: CheckInDetail) -> dict[str, typing.Any]:
    """Serialize a detail view, adding a URL per photo and dropping empty notes."""
    payload: dict[str, typing.Any] = {
        **dataclasses.asdict(detail),
        'timestamp': _isoformat(detail.timestamp),
        'photos': [
            f'/api/checkins/{detail.id}/photos/{index}'
            for index in range(detail.photo_count)
        ],
    }
    if detail.notes is None:
        del payload['notes']
    return payload


# Location
@router.get('/location')
async def get_location(
    location_provider: ReportedLocationProvider = fastapi.Depends(
        get_location_provider
    ),
) -> dict[str, typing.Any]:
    """Current location fix."""
    return serialize_fix(location_provider.request_fix())


@router.put('/location')
async def report_location(
    report: LocationReport,
    location_provider: ReportedLocationProvider = fastapi.Depends(
        get_location_provider
    ),
) -> dict[str, typing.Any]:
    """Record a new reading from the device and resolve its place name."""
    fix = location_provider.report(report.latitude, report.longitude, report.accuracy_m)
    return serialize_fix(fix)


@router.post('/location/refresh')
async def refresh_location(
    location_provider: ReportedLocationProvider = fastapi.Depends(
        get_location_provider
    ),
) -> dict[str, typing.Any]:
    """Resolve the place name for the current fix again."""
    return serialize_fix(location_provider.refresh())


# Check-ins
@router.post('/checkins', status_code=201)
async def create_checkin(
    notes: typing.Annotated[str | None, fastapi.Form()] = None,
    photos: typing.Annotated[list[fastapi.UploadFile] | None, fastapi.File()] = None,
    checkin_service: CheckInService = fastapi.Depends(get_service),
) -> dict[str, typing.Any]:
    """Check in at the current location with optional notes and photos."""
    uploads = photos or []
    if len(uploads) > checkin_service.max_photos:
        raise errors.TooManyPhotos(len(uploads), checkin_service.max_photos)

    contents: list[bytes] = []
    for upload in uploads:
        if upload.content_type and not upload.content_type.startswith('image/'):
            raise fastapi.HTTPException(
                status_code=400, detail=f'{upload.filename} is not an image'
            )
        try:
            contents.append(capture.normalize_photo(await upload.read(), upload.filename))
        except (UnidentifiedImageError, OSError) as exc:
            raise fastapi.HTTPException(
                status_code=400, detail=f'{upload.filename} is not a readable image'
            ) from exc

    record = checkin_service.perform_check_in(notes, contents)
    assert record.id is not None
    return serialize_detail(checkin_service.detail(record.id))


@router.get('/checkins')
async def list_checkins(
    checkin_service: CheckInService = fastapi.Depends(get_service),
) -> list[dict[str, typing.Any]]:
    """History of check-ins, newest first."""
    return [serialize_row(row) for row in checkin_service.history()]


@router.get('/checkins/{record_id}')
async def get_checkin(
    record_id: int,
    checkin_service: CheckInService = fastapi.Depends(get_service),
) -> dict[str, typing.Any]:
    """Details of a single check-in."""
    return serialize_detail(checkin_service.detail(record_id))


@router.patch('/checkins/{record_id}')
async def update_checkin(
    record_id: int,
    update: NotesUpdate,
    checkin_service: CheckInService = fastapi.Depends(get_service),
) -> dict[str, typing.Any]:
    """Replace the notes on a check-in."""
    return serialize_detail(checkin_service.update_notes(record_id, update.notes))


@router.get('/checkins/{record_id}/photos/{index}')
async def get_checkin_photo(
    record_id: int,
    index: int,
    checkin_service: CheckInService = fastapi.Depends(get_service),
) -> fastapi.responses.Response:
    """Serve one photo attached to a check-in."""
    data = checkin_service.photo(record_id, index)
    return fastapi.responses.Response(
        content=data, media_type=capture.sniff_media_type(data)
    )


@router.delete('/checkins/{record_id}')
async def delete_checkin(
    record_id: int,
    checkin_service: CheckInService = fastapi.Depends(get_service),
) -> dict[str, str]:
    """Delete a check-in."""
    checkin_service.delete(record_id)
    return {'message': 'Check-in deleted successfully'}


# Errors
def status_for(exc: errors.CheckInError) -> int:
    """HTTP status code for a check-in error."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def handle_checkin_error(
    request: fastapi.Request, exc: Exception
) -> fastapi.responses.JSONResponse:
    """Report a check-in error as a JSON body with a matching status code."""
    assert isinstance(exc, errors.CheckInError)
    return fastapi.responses.JSONResponse(
        status_code=status_for(exc), content={'detail': str(exc)}
    )


def install_error_handlers(app: fastapi.FastAPI) -> None:
    app.add_exception_handler(errors.CheckInError, handle_checkin_error)
