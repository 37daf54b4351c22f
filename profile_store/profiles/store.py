"""Filesystem-backed profile storage.

Every profile lives in its own directory named by id::

    <profiles_dir>/<id>/profile.json
    <profiles_dir>/<id>/photo.<ext>

All filesystem access for profiles goes through :class:`ProfileStore`.
Operations are synchronous; async callers should run them in a worker thread.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import orjson
from pydantic import ValidationError

from profile_store.profiles.errors import ProfileNotFoundError, StorageError
from profile_store.profiles.models import (
    METADATA_FILENAME,
    Profile,
    ProfileFields,
    ProfileSummary,
)
from profile_store.profiles.uploads import StagedPhoto

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_date(value: str) -> Optional[datetime]:
    """Parse an ISO date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _date_sort_key(summary: ProfileSummary) -> Tuple[bool, datetime]:
    parsed = parse_date(summary.date)
    return (parsed is not None, parsed or _EPOCH)


def _move_file(src: Path, dst: Path) -> None:
    try:
        os.replace(src, dst)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        # Temp dir and data dir are on different filesystems.
        shutil.move(str(src), str(dst))


class ProfileStore:
    """Create, list, read, update and delete profiles on disk."""

    def __init__(
        self,
        profiles_dir: str | Path,
        tmp_dir: str | Path,
        *,
        images_url_prefix: str = "/images",
        viewer_page: str = "/profile.html",
        note_preview_chars: int = 50,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self.profiles_dir = Path(profiles_dir)
        self.tmp_dir = Path(tmp_dir)
        self.images_url_prefix = images_url_prefix
        self.viewer_page = viewer_page
        self.note_preview_chars = note_preview_chars
        self._clock = clock
        self._id_factory = id_factory

    def ensure_directories(self) -> None:
        for directory in (self.profiles_dir, self.tmp_dir):
            directory.mkdir(parents=True, exist_ok=True)
        logger.info(
            f"Storage ready: profiles={self.profiles_dir} tmp={self.tmp_dir}"
        )

    def link_for(self, profile_id: str) -> str:
        return f"{self.viewer_page}?id={profile_id}"

    def photo_url(self, profile: Profile) -> str:
        return profile.photo_path(self.images_url_prefix)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(self, fields: ProfileFields, photo: StagedPhoto) -> Profile:
        """
        Persist a new profile from validated fields and a staged photo.

        The profile directory is created before the staged file is moved
        into it; the metadata record is written last. On failure the partial
        directory and the staged file are removed.
        """
        profile_id = self._id_factory()
        profile_dir = self.profiles_dir / profile_id
        try:
            profile_dir.mkdir(parents=True)
        except BaseException:
            photo.discard()
            raise

        try:
            photo_name = photo.stored_name
            _move_file(photo.path, profile_dir / photo_name)

            now = format_timestamp(self._clock())
            profile = Profile(
                id=profile_id,
                name=fields.name,
                address=fields.address,
                contact=fields.contact,
                photo=photo_name,
                date=fields.date,
                note=fields.note,
                created_at=now,
                updated_at=now,
            )
            self._write_metadata(profile_dir, profile)
        except BaseException:
            shutil.rmtree(profile_dir, ignore_errors=True)
            photo.discard()
            raise

        logger.info(f"Created profile {profile_id} with {photo.size} byte photo")
        return profile

    def list_profiles(self) -> List[ProfileSummary]:
        """
        Scan the profiles directory and return summaries, newest date first.

        Entries without a readable metadata record, or whose photo is
        missing, are skipped. Profiles removed during the scan are skipped
        too.
        """
        if not self.profiles_dir.is_dir():
            return []

        summaries: List[ProfileSummary] = []
        for entry in self.profiles_dir.iterdir():
            try:
                if not entry.is_dir():
                    continue
                profile = self._read_metadata(entry)
            except FileNotFoundError:
                logger.debug(f"Skipping {entry}: no metadata record")
                continue
            except (orjson.JSONDecodeError, ValidationError, OSError) as e:
                logger.warning(f"Skipping {entry}: unreadable metadata: {e}")
                continue

            if not (entry / profile.photo).is_file():
                logger.debug(f"Skipping {entry}: photo {profile.photo} missing")
                continue

            summaries.append(
                profile.to_summary(self.images_url_prefix, self.note_preview_chars)
            )

        summaries.sort(key=_date_sort_key, reverse=True)
        return summaries

    def get(self, profile_id: str) -> Profile:
        """Return the stored record for ``profile_id``."""
        profile_dir = self._profile_dir(profile_id)
        return self._load_existing(profile_dir, profile_id)

    def update(
        self,
        profile_id: str,
        fields: ProfileFields,
        photo: Optional[StagedPhoto] = None,
    ) -> Profile:
        """
        Rewrite every text field and optionally replace the photo.

        A replacement photo is moved in before the metadata is rewritten; the
        previous photo is removed afterwards when its name differs.
        ``updatedAt`` is always refreshed.
        """
        moved_photo: Optional[str] = None
        try:
            profile_dir = self._profile_dir(profile_id)
            profile = self._load_existing(profile_dir, profile_id)
            previous_photo = profile.photo

            profile.apply(fields)
            if photo is not None:
                _move_file(photo.path, profile_dir / photo.stored_name)
                moved_photo = photo.stored_name
                profile.photo = moved_photo
            profile.updated_at = format_timestamp(self._clock())

            self._write_metadata(profile_dir, profile)
        except BaseException:
            if photo is not None:
                photo.discard()
            # The record still names the previous photo.
            if moved_photo is not None and moved_photo != previous_photo:
                self._remove_photo(profile_dir, moved_photo)
            raise

        if profile.photo != previous_photo:
            self._remove_photo(profile_dir, previous_photo)

        logger.info(f"Updated profile {profile_id}")
        return profile

    def delete(self, profile_id: str) -> None:
        """Remove the profile directory with its metadata and photo."""
        profile_dir = self._profile_dir(profile_id)
        if not profile_dir.is_dir():
            raise ProfileNotFoundError()
        shutil.rmtree(profile_dir)
        logger.info(f"Deleted profile {profile_id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _profile_dir(self, profile_id: str) -> Path:
        # Ids are UUIDs; anything else cannot name a profile directory.
        try:
            canonical = str(uuid.UUID(profile_id))
        except (TypeError, ValueError):
            raise ProfileNotFoundError() from None
        if canonical != profile_id:
            raise ProfileNotFoundError()
        return self.profiles_dir / profile_id

    def _load_existing(self, profile_dir: Path, profile_id: str) -> Profile:
        try:
            return self._read_metadata(profile_dir)
        except FileNotFoundError:
            raise ProfileNotFoundError() from None
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.error(f"Corrupted metadata for profile {profile_id}: {e}")
            raise StorageError("Failed to read profile") from e

    @staticmethod
    def _read_metadata(profile_dir: Path) -> Profile:
        raw = (profile_dir / METADATA_FILENAME).read_bytes()
        return Profile.model_validate(orjson.loads(raw))

    @staticmethod
    def _write_metadata(profile_dir: Path, profile: Profile) -> None:
        target = profile_dir / METADATA_FILENAME
        staging = profile_dir / f".{METADATA_FILENAME}.tmp"
        staging.write_bytes(
            orjson.dumps(profile.to_document(), option=orjson.OPT_INDENT_2)
        )
        os.replace(staging, target)

    @staticmethod
    def _remove_photo(profile_dir: Path, photo_name: str) -> None:
        if not photo_name or Path(photo_name).name != photo_name:
            logger.warning(f"Refusing to remove suspicious photo name {photo_name!r}")
            return
        try:
            (profile_dir / photo_name).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove old photo {photo_name} in {profile_dir}: {e}")
