"""Pytest configuration and fixtures."""

import pytest

from taskweave.core.cancellation import CancellationToken


@pytest.fixture
def token():
    """A fresh root cancellation token."""
    return CancellationToken()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep TASKWEAVE_* settings from the developer's shell out of tests."""
    for name in (
        "TASKWEAVE_LOG_LEVEL",
        "TASKWEAVE_LOG_FORMAT",
        "TASKWEAVE_LOG_FILE",
        "TASKWEAVE_MAX_CONCURRENCY",
    ):
        monkeypatch.delenv(name, raising=False)
