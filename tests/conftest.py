"""Shared fixtures for HTTP VCR tests."""

from typing import List

import pytest

from http_vcr.core.format import Exchange

from tests.helpers import Continuation, FakeClock, FakeScheduler, RecordingWriter, make_exchange


# ===== Fixtures =====


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def next_() -> Continuation:
    return Continuation()


@pytest.fixture
def sample_exchanges() -> List[Exchange]:
    """E1 (GET /a, no body) and E2 (GET /a, body "x")."""
    return [
        make_exchange(raw_body=None, body=b"e1"),
        make_exchange(raw_body=b"x", body=b"e2"),
    ]
