"""
Shared fixtures for the leaderboard tests.

Every test gets its own SQLite file database, a leaderboard service wired to
a scripted points source, and helpers for observing broadcasts.
"""

import asyncio
import os
import tempfile

# Keep log files out of the working tree; must run before bot.config is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="leaderboard-test-logs-"))
os.environ.setdefault("SEED_SAMPLE_PARTICIPANTS", "False")

import pytest
import pytest_asyncio

from bot.database.database import Database
from bot.services.leaderboard import LeaderboardService


class ScriptedPoints:
    """Points source that returns queued values, then a fixed default."""

    def __init__(self, *values, default: int = 10):
        self.values = list(values)
        self.default = default
        self.drawn = []

    def queue(self, *values):
        self.values.extend(values)

    def draw(self) -> int:
        value = self.values.pop(0) if self.values else self.default
        self.drawn.append(value)
        return value


class RecordingObserver:
    """Observer that keeps every event it receives."""

    def __init__(self, observer_id: str = "recorder"):
        self.observer_id = observer_id
        self.events = []

    async def send(self, event):
        self.events.append(event)


async def wait_for(predicate, timeout: float = 2.0):
    """Yield to the loop until predicate() is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def points():
    return ScriptedPoints()


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'leaderboard.db'}")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def service(database, points):
    leaderboard = LeaderboardService(database, points_source=points, observer_send_timeout=1.0)
    yield leaderboard
    await leaderboard.close()


@pytest_asyncio.fixture
async def observer(service):
    """A registered observer whose initial snapshot has already arrived."""
    recorder = RecordingObserver()
    await service.subscribe(recorder)
    await wait_for(lambda: len(recorder.events) == 1)
    return recorder
