"""Snapshot store fakes for tests."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import override

from jira_gateway.protocols import SnapshotStore
from jira_gateway.types import SnapshotEntry


def _empty_saved() -> dict[str, dict[str, SnapshotEntry]]:
    return {}


@dataclass
class InMemorySnapshotStore(SnapshotStore):
    """Snapshot store that keeps deep copies of saved namespaces."""

    saved: dict[str, dict[str, SnapshotEntry]] = field(default_factory=_empty_saved)
    save_calls: int = 0

    @override
    def save(self, namespace: str, entries: Mapping[str, SnapshotEntry]) -> None:
        self.saved[namespace] = copy.deepcopy(dict(entries))
        self.save_calls += 1

    @override
    def load(self, namespace: str) -> dict[str, SnapshotEntry]:
        return copy.deepcopy(self.saved.get(namespace, {}))
