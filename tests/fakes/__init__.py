"""Exports for test fakes."""

from .clock import FakeClock
from .notifier import RecordingNotifier
from .snapshots import InMemorySnapshotStore
from .transport import FakeTransport, json_response

__all__ = [
    "FakeClock",
    "FakeTransport",
    "InMemorySnapshotStore",
    "RecordingNotifier",
    "json_response",
]
