"""Mini README: Identify the container format of a stored photo.

Structure:
    * PhotoFormat - file extension and media type for one container format.
    * detect_photo_format - Pillow-based sniffing; ``None`` means unreadable.

The embedder only annotates JPEGs and keeps any other image as captured, so
stored photos can be WebP, PNG, GIF and so on. Archive member names, photo
downloads and upload field maps all take their extension and media type
from here.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

# Pillow names JPEG variants (multi-picture phone captures) separately.
_EXTENSIONS = {"JPEG": "jpg", "MPO": "jpg", "TIFF": "tif"}
_MEDIA_TYPES = {"MPO": "image/jpeg"}
FALLBACK_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class PhotoFormat:
    """How a photo container is named and served."""

    name: str
    extension: str
    media_type: str


def detect_photo_format(payload: Optional[bytes]) -> Optional[PhotoFormat]:
    """Return the photo's container format, or ``None`` if missing or unreadable."""

    if not payload:
        return None
    try:
        with Image.open(io.BytesIO(payload)) as image:
            name = image.format
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError):
        return None
    if not name:
        return None
    return PhotoFormat(
        name=name,
        extension=_EXTENSIONS.get(name, name.lower()),
        media_type=_MEDIA_TYPES.get(name) or Image.MIME.get(name, FALLBACK_MEDIA_TYPE),
    )
