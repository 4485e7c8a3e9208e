"""Normalization of captured photos before they are attached to a check-in."""

import io
import os

import pillow_heif  # pyright: ignore[reportMissingTypeStubs]
from PIL import Image, UnidentifiedImageError

# Register HEIF opener for PIL
pillow_heif.register_heif_opener()  # type: ignore

HEIF_EXTENSIONS = ('.heic', '.heif')
DEFAULT_MEDIA_TYPE = 'application/octet-stream'


def normalize_photo(content: bytes, filename: str | None = None) -> bytes:
    """Convert HEIC/HEIF photos to JPEG; return anything else untouched."""
    file_extension = os.path.splitext(filename or '')[1].lower()
    if file_extension not in HEIF_EXTENSIONS:
        return content

    img = Image.open(io.BytesIO(content))

    # JPEG has no alpha channel; HEIC can be in any color mode
    if img.mode != 'RGB':
        img = img.convert('RGB')

    output = io.BytesIO()
    img.save(output, format='JPEG', quality=95)
    return output.getvalue()


def sniff_media_type(data: bytes) -> str:
    """Return the media type of an image buffer, or a generic binary type."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            media_type = Image.MIME.get(img.format or '')
    except (UnidentifiedImageError, OSError):
        return DEFAULT_MEDIA_TYPE
    return media_type or DEFAULT_MEDIA_TYPE
