"""Packing of several photos into the single blob stored on a check-in.

Blob layout (all integers unsigned 32-bit little-endian)::

    count | length_0 | payload_0 | length_1 | payload_1 | ...

Existing records are decoded with exactly this framing, so any change to it
must bump FORMAT_VERSION and migrate stored blobs.
"""

import logging
import struct
from collections.abc import Sequence

from ..errors import CorruptEncoding

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

_HEADER = struct.Struct('<I')
_MAX_U32 = 0xFFFFFFFF


def encode(photos: Sequence[bytes]) -> bytes:
    """Pack an ordered sequence of photo buffers into one blob."""
    if len(photos) > _MAX_U32:
        raise CorruptEncoding(f'Cannot encode {len(photos)} photos')
    parts = [_HEADER.pack(len(photos))]
    for index, photo in enumerate(photos):
        if len(photo) > _MAX_U32:
            raise CorruptEncoding(f'Photo {index} is too large to encode')
        parts.append(_HEADER.pack(len(photo)))
        parts.append(bytes(photo))
    return b''.join(parts)


def decode(blob: bytes, strict: bool = False) -> list[bytes]:
    """Unpack a blob produced by encode().

    Trailing bytes after the last declared photo are ignored unless strict is
    set, in which case they raise CorruptEncoding.
    """
    view = memoryview(blob)
    if len(view) < _HEADER.size:
        raise CorruptEncoding(
            f'Photo blob is {len(view)} bytes, shorter than its count header'
        )
    (count,) = _HEADER.unpack_from(view, 0)
    cursor = _HEADER.size

    photos: list[bytes] = []
    for index in range(count):
        if cursor + _HEADER.size > len(view):
            raise CorruptEncoding(f'Photo {index} length header is truncated')
        (length,) = _HEADER.unpack_from(view, cursor)
        cursor += _HEADER.size
        end = cursor + length
        if end > len(view):
            raise CorruptEncoding(
                f'Photo {index} declares {length} bytes but only '
                f'{len(view) - cursor} remain'
            )
        photos.append(bytes(view[cursor:end]))
        cursor = end

    if cursor < len(view):
        if strict:
            raise CorruptEncoding(
                f'{len(view) - cursor} trailing bytes after {count} photos'
            )
        logger.debug('Ignoring %d trailing bytes in photo blob', len(view) - cursor)
    return photos
