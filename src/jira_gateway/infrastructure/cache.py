"""Namespaced TTL cache with size-bounded batch eviction.

Each resource kind gets its own namespace. Entries use sliding expiration: every hit
pushes the expiry forward by one TTL. When a namespace is full, a prune pass evicts the
least recently accessed entries until it is back under 80% of capacity.

Usage example:
    from jira_gateway.infrastructure.cache import CacheService, CacheSettings
    from jira_gateway.types import CacheKind

    cache = CacheService(CacheSettings(enabled=True, ttl_seconds=300, max_size=100))
    cache.set(CacheKind.ISSUES, "PROJ-1", {"key": "PROJ-1"})
    value, found = cache.get(CacheKind.ISSUES, "PROJ-1")
"""

from __future__ import annotations

import asyncio
import math
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..exceptions import UnknownCacheNamespaceError
from ..observability import get_logger
from ..protocols import SnapshotStore
from ..types import CacheKind, SnapshotEntry

logger = get_logger("jira_gateway.infrastructure.cache")

PRUNE_WATERMARK = 0.8

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheSettings:
    enabled: bool = True
    ttl_seconds: float = 300.0
    max_size: int = 100

    @property
    def prune_target(self) -> int:
        return math.floor(self.max_size * PRUNE_WATERMARK)


@dataclass
class CacheEntry:
    value: object
    created_at: float
    last_accessed_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now

    def to_snapshot(self) -> SnapshotEntry:
        return {
            "value": self.value,
            "created_at": self.created_at,
            "last_accessed_at": self.last_accessed_at,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_snapshot(cls, entry: SnapshotEntry) -> CacheEntry:
        return cls(
            value=entry["value"],
            created_at=entry["created_at"],
            last_accessed_at=entry["last_accessed_at"],
            expires_at=entry["expires_at"],
        )


@dataclass(frozen=True)
class NamespaceStats:
    name: str
    size: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage of all lookups."""
        total = self.hits + self.misses
        return (self.hits / total) * 100 if total else 0.0


@dataclass(frozen=True)
class CacheStats:
    settings: CacheSettings
    namespaces: tuple[NamespaceStats, ...]


class Namespace:
    """One resource kind's entries and counters.

    Guarded by a re-entrant lock so a host thread can read counters while the event
    loop thread mutates entries.
    """

    def __init__(self, name: str, settings: CacheSettings, *, clock: Clock = time.time) -> None:
        self.name = name
        self.settings = settings
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> tuple[object | None, bool]:
        if not self.settings.enabled:
            return None, False
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None, False
            now = self._clock()
            if entry.is_expired(now):
                del self._entries[key]
                self.misses += 1
                return None, False
            entry.last_accessed_at = now
            entry.expires_at = now + self.settings.ttl_seconds
            self.hits += 1
            return entry.value, True

    def set(self, key: str, value: object) -> bool:
        if not self.settings.enabled:
            return False
        with self._lock:
            if len(self._entries) >= self.settings.max_size:
                self.prune()
            now = self._clock()
            self._entries[key] = CacheEntry(
                value=value,
                created_at=now,
                last_accessed_at=now,
                expires_at=now + self.settings.ttl_seconds,
            )
            return True

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def prune(self) -> int:
        """Evict least recently accessed entries down to the prune target."""
        with self._lock:
            target = self.settings.prune_target
            excess = len(self._entries) - target
            if excess <= 0:
                return 0
            oldest_first = sorted(
                self._entries.items(), key=lambda item: item[1].last_accessed_at
            )
            for key, _ in oldest_first[:excess]:
                del self._entries[key]
            logger.debug("Pruned %s entries from %s cache", excess, self.name)
            return excess

    def live_entries(self) -> dict[str, SnapshotEntry]:
        """Return unexpired entries in snapshot form."""
        with self._lock:
            now = self._clock()
            return {
                key: entry.to_snapshot()
                for key, entry in self._entries.items()
                if not entry.is_expired(now)
            }

    def restore(self, entries: Mapping[str, SnapshotEntry]) -> int:
        """Load snapshot entries, discarding any that have already expired."""
        with self._lock:
            now = self._clock()
            loaded = 0
            for key, snapshot in entries.items():
                entry = CacheEntry.from_snapshot(snapshot)
                if entry.is_expired(now):
                    continue
                self._entries[key] = entry
                loaded += 1
            if len(self._entries) > self.settings.max_size:
                self.prune()
            return loaded

    def stats(self) -> NamespaceStats:
        with self._lock:
            return NamespaceStats(
                name=self.name, size=len(self._entries), hits=self.hits, misses=self.misses
            )


def _namespace_key(name: CacheKind | str) -> CacheKind:
    try:
        return CacheKind(name)
    except ValueError as exc:
        raise UnknownCacheNamespaceError(str(name)) from exc


class CacheService:
    """Owns one namespace per resource kind plus optional snapshot persistence."""

    def __init__(
        self,
        settings: CacheSettings,
        *,
        store: SnapshotStore | None = None,
        clock: Clock = time.time,
    ) -> None:
        self.settings = settings
        self.store = store
        self.namespaces: dict[CacheKind, Namespace] = {
            kind: Namespace(kind.value, settings, clock=clock) for kind in CacheKind
        }

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def namespace(self, name: CacheKind | str) -> Namespace:
        return self.namespaces[_namespace_key(name)]

    def get(self, namespace: CacheKind | str, key: str) -> tuple[object | None, bool]:
        return self.namespace(namespace).get(key)

    def set(self, namespace: CacheKind | str, key: str, value: object) -> bool:
        return self.namespace(namespace).set(key, value)

    def remove(self, namespace: CacheKind | str, key: str) -> bool:
        return self.namespace(namespace).remove(key)

    def prune(self, namespace: CacheKind | str) -> int:
        return self.namespace(namespace).prune()

    async def clear(self, namespace: CacheKind | str | None = None) -> None:
        """Empty one namespace (or all of them) and persist the result."""
        if namespace is None:
            for target in self.namespaces.values():
                target.clear()
        else:
            self.namespace(namespace).clear()
        await self.persist()

    def snapshot_payloads(self) -> dict[str, dict[str, SnapshotEntry]]:
        return {kind.value: ns.live_entries() for kind, ns in self.namespaces.items()}

    async def persist(self) -> bool:
        """Collect live entries on the calling thread and write them off the loop."""
        if not self.settings.enabled or self.store is None:
            return False
        payloads = self.snapshot_payloads()
        await asyncio.to_thread(self._write_payloads, payloads)
        return True

    def save_snapshot(self) -> bool:
        """Blocking variant of ``persist`` for shutdown paths without a running loop."""
        if not self.settings.enabled or self.store is None:
            return False
        self._write_payloads(self.snapshot_payloads())
        return True

    def _write_payloads(self, payloads: Mapping[str, Mapping[str, SnapshotEntry]]) -> None:
        if self.store is None:
            return
        for name, entries in payloads.items():
            self.store.save(name, entries)
        logger.debug("Saved cache snapshot for %s namespaces", len(payloads))

    def load_snapshot(self) -> int:
        """Restore every namespace from the store; returns the number of live entries."""
        if not self.settings.enabled or self.store is None:
            return 0
        loaded = 0
        for kind, ns in self.namespaces.items():
            loaded += ns.restore(self.store.load(kind.value))
        logger.info("Loaded %s cache entries from snapshot", loaded)
        return loaded

    def stats(self) -> CacheStats:
        return CacheStats(
            settings=self.settings,
            namespaces=tuple(ns.stats() for ns in self.namespaces.values()),
        )
