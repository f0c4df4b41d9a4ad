"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timedelta

import pytest
import pytest_asyncio

# Set test environment variables before importing application modules
os.environ.pop("TWOCAPTCHA_API_KEY", None)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from jobdash.schemas.tracking import ApplicationAttempt  # noqa: E402
from jobdash.services.tracking_store import ApplicationTrackingStore  # noqa: E402

NOW = datetime(2026, 10, 17, 12, 0, 0)


class MutableClock:
    """Clock returning a settable naive-UTC datetime."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeTime:
    """Monotonic clock and sleep pair for driving the poll loop."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeActivityLog:
    """In-memory stand-in for the store's activity log."""

    def __init__(self):
        self.entries: list[tuple[str, str, dict | None]] = []

    async def add_log(self, level, message, details=None):
        self.entries.append((level, message, details))

    @property
    def messages(self) -> list[str]:
        return [message for _, message, _ in self.entries]


@pytest.fixture
def clock():
    """Store clock fixed at midday UTC."""
    return MutableClock()


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def activity_log():
    return FakeActivityLog()


@pytest.fixture
def database_url(tmp_path):
    """URL of a fresh SQLite database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'data' / 'applications.db'}"


@pytest_asyncio.fixture
async def store(database_url, clock):
    """Initialized tracking store backed by a temporary file."""
    tracking_store = await ApplicationTrackingStore.open(database_url, clock=clock)
    yield tracking_store
    await tracking_store.close()


@pytest.fixture
def make_attempt():
    """Factory for application attempts with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> ApplicationAttempt:
        n = next(counter)
        data = {
            "platform": "linkedin",
            "company": f"Company {n}",
            "title": "Python Developer",
            "url": f"https://jobs.example.com/{n}",
            "status": "applied",
        }
        data.update(overrides)
        return ApplicationAttempt(**data)

    return _make
