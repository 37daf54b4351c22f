"""Error taxonomy for profile storage and request handling."""

from __future__ import annotations

from typing import Optional


class ProfileStoreError(Exception):
    """Base error carrying an HTTP status and a caller-safe message."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ProfileValidationError(ProfileStoreError):
    status_code = 400
    default_message = "All fields are required"


class UnsupportedMediaTypeError(ProfileValidationError):
    default_message = "Only image files are allowed"


class PayloadTooLargeError(ProfileStoreError):
    status_code = 413
    default_message = "File too large"

    def __init__(self, limit_bytes: int, message: Optional[str] = None) -> None:
        self.limit_bytes = limit_bytes
        if message is None:
            message = f"File too large. Max {_format_limit(limit_bytes)}"
        super().__init__(message)


class ProfileNotFoundError(ProfileStoreError):
    status_code = 404
    default_message = "Profile not found"


class StorageError(ProfileStoreError):
    """Unexpected filesystem or metadata failure; details are logged, not returned."""

    status_code = 500
    default_message = "Storage failure"


def _format_limit(limit_bytes: int) -> str:
    mebibyte = 1024 * 1024
    if limit_bytes >= mebibyte and limit_bytes % mebibyte == 0:
        return f"{limit_bytes // mebibyte}MB"
    return f"{limit_bytes} bytes"
