"""Shared fixtures for unit and integration tests."""

import itertools
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from vitae.contexts.editing import load_resume_yaml, snapshot_from_resume_data
from vitae.contexts.history import BranchManager, CommitGraph, InMemoryVersionStore
from vitae.service import VersioningService

FIXTURES_PATH = Path(__file__).parent / "fixtures"


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)):
        self.start = start
        self._ticks = itertools.count()

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=next(self._ticks))


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store():
    return InMemoryVersionStore()


@pytest.fixture
def branch_manager(store, clock):
    return BranchManager(store, clock=clock)


@pytest.fixture
def graph(store, clock):
    return CommitGraph(store, clock=clock)


@pytest.fixture
def resume(branch_manager):
    return branch_manager.create_resume("user-1", "Software Engineer")


@pytest.fixture
def events_file(tmp_path):
    return tmp_path / "events.jsonl"


@pytest.fixture
def service(store, clock, events_file):
    return VersioningService(store, events_file=events_file, clock=clock)


@pytest.fixture
def base_data():
    return load_resume_yaml(FIXTURES_PATH / "resume_base.yaml")


@pytest.fixture
def google_data():
    return load_resume_yaml(FIXTURES_PATH / "resume_google.yaml")


@pytest.fixture
def base_snapshot(base_data):
    return snapshot_from_resume_data(base_data)


@pytest.fixture
def google_snapshot(google_data):
    return snapshot_from_resume_data(google_data)
