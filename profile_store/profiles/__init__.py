"""Profile storage for the profile store service."""

from profile_store.profiles.errors import (
    PayloadTooLargeError,
    ProfileNotFoundError,
    ProfileStoreError,
    ProfileValidationError,
    StorageError,
    UnsupportedMediaTypeError,
)
from profile_store.profiles.models import Profile, ProfileFields, ProfileSummary
from profile_store.profiles.store import ProfileStore
from profile_store.profiles.uploads import StagedPhoto, stage_upload

__all__ = [
    "PayloadTooLargeError",
    "Profile",
    "ProfileFields",
    "ProfileNotFoundError",
    "ProfileStore",
    "ProfileStoreError",
    "ProfileSummary",
    "ProfileValidationError",
    "StagedPhoto",
    "StorageError",
    "UnsupportedMediaTypeError",
    "stage_upload",
]
