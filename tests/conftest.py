"""Shared fixtures for wayback_pinner tests."""

from __future__ import annotations

import pytest

from wayback_pinner.ipfs.retry import RetryPolicy
from wayback_pinner.wayback import Wayback

from tests.mocks import KuboHandler, MockArchiver, MockPinner, PinataHandler


class SleepRecorder:
    """Stands in for asyncio.sleep so backoff tests do not wait."""

    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def fast_retry(sleeps):
    """Default retry bounds without real sleeping."""
    return RetryPolicy(sleep=sleeps)


@pytest.fixture
def kubo():
    return KuboHandler()


@pytest.fixture
def pinata():
    return PinataHandler()


@pytest.fixture
def mock_archiver():
    return MockArchiver()


@pytest.fixture
def mock_pinner():
    return MockPinner()


@pytest.fixture
def wayback(mock_pinner, mock_archiver, tmp_path):
    """Wayback wired to mocked pinner and archiver."""
    return Wayback(mock_pinner, mock_archiver, output_dir=tmp_path)
