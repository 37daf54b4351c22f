"""Pytest configuration for tests."""

from datetime import datetime, timedelta, timezone

import pytest

from profile_store.config import Settings
from profile_store.main import create_application
from profile_store.profiles.store import ProfileStore


class TickingClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio to use only asyncio backend."""
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path / "data" / "profiles",
        tmp_dir=tmp_path / "temp",
        log_level="DEBUG",
    )


@pytest.fixture
def store(settings):
    profile_store = ProfileStore(
        settings.data_dir,
        settings.tmp_dir,
        images_url_prefix=settings.images_url_prefix,
        viewer_page=settings.viewer_page,
        note_preview_chars=settings.note_preview_chars,
        clock=TickingClock(),
    )
    profile_store.ensure_directories()
    return profile_store


@pytest.fixture
def test_app(settings, store):
    app = create_application(settings)
    app.state.profile_store = store
    return app
