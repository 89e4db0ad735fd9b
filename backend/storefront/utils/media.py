"""Helpers for validating and storing uploaded product images."""

from __future__ import annotations

import io
import logging
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional

from fastapi import HTTPException
from PIL import Image

from ..config import settings

_LOGGER = logging.getLogger("storefront.media")

_EXTENSIONS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "GIF": ".gif",
    "WEBP": ".webp",
    "BMP": ".bmp",
}
PRODUCT_IMAGE_DIR = "products"


def validate_upload_filename(filename: Optional[str]) -> None:
    if not filename or len(filename) > 200:
        raise HTTPException(status_code=400, detail="invalid filename")
    if "/" in filename or "\\" in filename:
        raise HTTPException(status_code=400, detail="invalid filename path")


def sniff_image(payload: bytes) -> str:
    """Return the Pillow format name of `payload` or raise HTTP 415."""
    try:
        with Image.open(io.BytesIO(payload)) as img:
            fmt = img.format
            img.verify()
    except Exception:
        # includes DecompressionBombError, which is not an OSError
        raise HTTPException(status_code=415, detail="unsupported file content; expected an image")
    if fmt not in _EXTENSIONS:
        raise HTTPException(status_code=415, detail=f"unsupported image format: {fmt}")
    return fmt


def _resolve(relative: str) -> Path:
    root = settings.MEDIA_ROOT
    target = (root / relative).resolve()
    if root != target and root not in target.parents:
        raise ValueError(f"path escapes media root: {relative}")
    return target


def save_image(payload: bytes, image_format: str) -> str:
    """Write image bytes under the media root and return the relative path."""
    relative = str(PurePosixPath(PRODUCT_IMAGE_DIR) / f"{uuid.uuid4().hex}{_EXTENSIONS[image_format]}")
    target = _resolve(relative)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(payload)
    _LOGGER.info("media_saved %s (%d bytes)", relative, len(payload))
    return relative


def delete_media(relative: Optional[str]) -> bool:
    """Remove a stored media file. Returns False if there was nothing to delete."""
    if not relative:
        return False
    target = _resolve(relative)
    if not target.exists():
        return False
    target.unlink()
    _LOGGER.info("media_deleted %s", relative)
    return True


def media_url(relative: Optional[str]) -> Optional[str]:
    if not relative:
        return None
    return f"{settings.MEDIA_URL}/{relative}"
