"""Profile data models for the profile store."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

METADATA_FILENAME = "profile.json"
PHOTO_STEM = "photo"
ELLIPSIS = "..."


class ProfileFields(BaseModel):
    """Caller-supplied text fields shared by create and update."""

    name: str
    address: str
    date: str
    note: str
    contact: Optional[str] = None

    @field_validator("name", "address", "note")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("date")
    @classmethod
    def require_date(cls, v: str) -> str:
        # Stored verbatim; only emptiness is checked.
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("contact", mode="before")
    @classmethod
    def normalize_contact(cls, v: Any) -> Optional[str]:
        """Absent, empty and whitespace-only contacts all become ``None``."""
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class Profile(BaseModel):
    """Complete metadata record as persisted in ``profile.json``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    address: str
    contact: Optional[str] = None
    photo: str
    date: str
    note: str
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")

    def photo_path(self, images_url_prefix: str = "/images") -> str:
        return f"{images_url_prefix.rstrip('/')}/{self.id}/{self.photo}"

    def apply(self, fields: ProfileFields) -> None:
        """Overwrite every text field from ``fields``."""
        self.name = fields.name
        self.address = fields.address
        self.contact = fields.contact
        self.date = fields.date
        self.note = fields.note

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def to_summary(
        self, images_url_prefix: str = "/images", preview_chars: int = 50
    ) -> "ProfileSummary":
        return ProfileSummary(
            id=self.id,
            name=self.name,
            date=self.date,
            photo=self.photo_path(images_url_prefix),
            note=truncate_note(self.note, preview_chars),
        )


class ProfileSummary(BaseModel):
    """Abbreviated listing view of a profile."""

    id: str
    name: str
    date: str
    photo: str = Field(..., description="URL path of the stored photo")
    note: str = Field(..., description="Note preview, possibly truncated")


def photo_filename(extension: str) -> str:
    """Stored photo name: ``photo`` plus an already lowercased extension."""
    return f"{PHOTO_STEM}{extension}"


def photo_extension(original_filename: Optional[str]) -> str:
    if not original_filename:
        return ""
    # Only the final component matters; browsers may send a client path.
    basename = original_filename.replace("\\", "/").rsplit("/", 1)[-1]
    stem, dot, ext = basename.rpartition(".")
    if not dot or not stem or not ext:
        return ""
    return f".{ext.lower()}"


def truncate_note(note: str, limit: int = 50) -> str:
    if len(note) > limit:
        return note[:limit] + ELLIPSIS
    return note
