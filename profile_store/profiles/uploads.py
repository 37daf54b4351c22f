"""Staging of uploaded photos before they enter the profile tree."""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import anyio
from fastapi import UploadFile

from profile_store.profiles.errors import PayloadTooLargeError, UnsupportedMediaTypeError
from profile_store.profiles.models import photo_extension, photo_filename

logger = logging.getLogger(__name__)

IMAGE_MIME_PREFIX = "image/"


@dataclass(slots=True)
class StagedPhoto:
    path: Path
    original_filename: str
    extension: str
    size: int

    @property
    def stored_name(self) -> str:
        return photo_filename(self.extension)

    def discard(self) -> None:
        """Remove the staged file if it is still in the temp directory."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove staged upload {self.path}: {e}")


def is_image_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.lower().startswith(IMAGE_MIME_PREFIX)


def staging_name(extension: str) -> str:
    return f"{int(time.time() * 1000)}-{secrets.token_hex(5)}{extension}"


async def stage_upload(
    upload: UploadFile,
    tmp_dir: Path,
    max_bytes: int,
    chunk_size: int = 1024 * 1024,
) -> StagedPhoto:
    """
    Stream an uploaded image into ``tmp_dir``.

    The declared content type is checked before anything is written. The body
    is copied chunk by chunk and the staged file is deleted as soon as the
    size limit is exceeded.

    Raises:
        UnsupportedMediaTypeError: If the upload is not declared as ``image/*``
        PayloadTooLargeError: If the upload is larger than ``max_bytes``
    """
    content_type = upload.content_type or ""
    if not is_image_content_type(content_type):
        raise UnsupportedMediaTypeError()

    original_filename = upload.filename or ""
    extension = photo_extension(original_filename)
    target = Path(tmp_dir) / staging_name(extension)

    written = 0
    try:
        async with await anyio.open_file(target, "wb") as out:
            while True:
                chunk = await upload.read(chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise PayloadTooLargeError(max_bytes)
                await out.write(chunk)
    except BaseException:
        target.unlink(missing_ok=True)
        raise

    logger.debug(f"Staged upload {original_filename!r} ({written} bytes) at {target}")
    return StagedPhoto(
        path=target,
        original_filename=original_filename,
        extension=extension,
        size=written,
    )
