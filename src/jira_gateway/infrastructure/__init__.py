"""Concrete infrastructure implementations and shared helpers."""

from .background import BackgroundLoop
from .cache import CacheEntry, CacheService, CacheSettings, CacheStats, Namespace, NamespaceStats
from .dispatcher import FALLBACK_ROUTES, Dispatcher, FallbackRoute
from .http import RequestsTransport
from .snapshots import JsonSnapshotStore, SnapshotScheduler

__all__ = [
    "FALLBACK_ROUTES",
    "BackgroundLoop",
    "CacheEntry",
    "CacheService",
    "CacheSettings",
    "CacheStats",
    "Dispatcher",
    "FallbackRoute",
    "JsonSnapshotStore",
    "Namespace",
    "NamespaceStats",
    "RequestsTransport",
    "SnapshotScheduler",
]
