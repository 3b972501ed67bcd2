"""
Pytest configuration and shared fixtures.
"""

import os

# Keep test runs from writing log files into the working directory.
os.environ.setdefault("JOBCATALOG_LOG_TO_FILE", "false")

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from jobcatalog.catalog import JobCatalog
from jobcatalog.normalize import to_iso
from jobcatalog.schema import Job, SOURCE_LOCAL
from jobcatalog.storage import MemoryStore

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class RecordingStore(MemoryStore):
    """MemoryStore that counts writes per key."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes: Dict[str, int] = {}

    def write(self, key: str, data: bytes) -> bool:
        self.writes[key] = self.writes.get(key, 0) + 1
        return super().write(key, data)


class FailingStore(MemoryStore):
    """Store whose writes always fail."""

    def write(self, key: str, data: bytes) -> bool:
        return False


class TickingClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + timedelta(seconds=1)
        return now


def make_job(**overrides: Any) -> Job:
    """Build a Job with sensible defaults for query tests."""
    values = {
        "id": "job-1",
        "title": "Software Engineer",
        "company": "Acme",
        "location": "Berlin, Germany",
        "created_at": to_iso(FIXED_NOW),
        "updated_at": to_iso(FIXED_NOW),
        "source": SOURCE_LOCAL,
        "type": "full-time",
        "experience": "Mid-level",
        "description": "Build services.",
        "skills": ["Python"],
        "remote": False,
    }
    values.update(overrides)
    return Job(**values)


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def catalog(store, clock) -> JobCatalog:
    return JobCatalog(store, clock=clock).load()


@pytest.fixture
def admin_fields() -> Dict[str, Any]:
    """Fields an admin would submit for a new job."""
    return {
        "title": "Frontend Developer",
        "company": "Globex",
        "location": "Remote",
        "type": "contract",
        "experience": "Senior",
        "salary": "90k-110k",
        "description": "React and TypeScript work on our dashboard.",
        "requirements": ["5 years of React", ""],
        "skills": ["React", " TypeScript "],
        "url": "https://globex.example/jobs/1",
        "remote": True,
    }


@pytest.fixture
def feed_payloads() -> List[Dict[str, Any]]:
    """Raw payloads as a job feed would send them."""
    return [
        {
            "id": "ext-1",
            "title": "Data Engineer",
            "company": "Initech",
            "location": "London",
            "job_type": "full-time",
            "experience_level": "Junior",
            "salary_range": "40k",
            "description": "Pipelines with Spark.",
            "skills": ["Spark", "Python"],
            "is_remote": False,
            "created_at": "2024-05-30T12:00:00Z",
        },
        {
            "id": "ext-2",
            "title": "React Native Developer",
            "company": "Hooli",
            "location": "Remote - US",
            "type": "part-time",
            "requirements": ["React Native"],
            "remote": True,
        },
    ]
