"""Pytest fixtures for the gateway test suite.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import socket
from collections.abc import Iterator

import pytest

from tests.fakes import FakeClock, FakeTransport, InMemorySnapshotStore, RecordingNotifier
from tests.support.errors import NetworkIsolationError

# =============================================================================
# Network Isolation - Block all socket connections in tests
# =============================================================================


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    _ = (self, kwargs)
    raise NetworkIsolationError(str(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Block all network access in tests.

    Tests that need HTTP should use FakeTransport or a MagicMock session.
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)
    yield


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove gateway settings inherited from the developer's shell."""
    for name in (
        "JIRA_URL",
        "JIRA_EMAIL",
        "JIRA_API_TOKEN",
        "JIRA_AUTH_TYPE",
        "JIRA_REQUEST_TIMEOUT_SECONDS",
        "JIRA_CACHE_ENABLED",
        "JIRA_CACHE_TTL_SECONDS",
        "JIRA_CACHE_MAX_SIZE",
        "JIRA_CACHE_DIR",
        "JIRA_SNAPSHOT_INTERVAL_SECONDS",
        "JIRA_ENHANCED_ERROR_HANDLING",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def snapshot_store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()
