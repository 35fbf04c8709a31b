from __future__ import annotations

import os
from datetime import datetime

import pytest

from src.flockcare.flockcare.container import wire
from tests.fakes import (
    FakeSettings,
    InMemoryAttendance,
    RecordingAuditSink,
    RecordingDispatcher,
    seed_directory,
)

os.environ.setdefault("APP_ENV", "testing")


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 15, 10, 30, 0)


@pytest.fixture
def directory():
    return seed_directory()


@pytest.fixture
def attendance_repo(directory):
    return InMemoryAttendance(directory)


@pytest.fixture
def settings():
    return FakeSettings()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def container(directory, attendance_repo, settings, dispatcher, audit_sink):
    return wire(
        directory=directory,
        attendance=attendance_repo,
        settings=settings,
        dispatcher=dispatcher,
        audit_sink=audit_sink,
    )


@pytest.fixture
def attendance_service(container):
    return container.attendance_service
