"""On-disk cache snapshots and the timer that writes them.

Usage example:
    from pathlib import Path

    from jira_gateway.infrastructure.snapshots import JsonSnapshotStore, SnapshotScheduler

    store = JsonSnapshotStore(Path("~/.cache/jira-gateway").expanduser())
    scheduler = SnapshotScheduler(cache, interval_seconds=60)
    scheduler.start()
"""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import override

from ..io_validation import IncomingDataError, parse_snapshot
from ..observability import get_logger
from ..protocols import SnapshotStore
from ..types import SnapshotEntry
from .cache import CacheService

logger = get_logger("jira_gateway.infrastructure.snapshots")


@dataclass
class JsonSnapshotStore(SnapshotStore):
    """One JSON file per namespace under ``cache_dir``."""

    cache_dir: Path

    def __post_init__(self) -> None:
        self.cache_dir = Path(self.cache_dir)

    def path_for(self, namespace: str) -> Path:
        return self.cache_dir / f"{namespace}.json"

    @override
    def save(self, namespace: str, entries: Mapping[str, SnapshotEntry]) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        target = self.path_for(namespace)
        temp_path = target.with_suffix(".json.tmp")
        temp_path.write_text(json.dumps(dict(entries), ensure_ascii=False), encoding="utf-8")
        os.replace(temp_path, target)

    @override
    def load(self, namespace: str) -> dict[str, SnapshotEntry]:
        path = self.path_for(namespace)
        if not path.exists():
            return {}
        try:
            payload = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable cache snapshot %s: %s", path, exc)
            return {}
        if not payload.strip():
            return {}
        try:
            return parse_snapshot(payload)
        except IncomingDataError:
            logger.warning("Skipping malformed cache snapshot %s", path)
            return {}


class SnapshotScheduler:
    """Persists the cache every ``interval_seconds`` until stopped."""

    def __init__(self, cache: CacheService, *, interval_seconds: float = 60.0) -> None:
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the timer on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.cache.persist()
            except OSError as exc:
                logger.warning("Cache snapshot failed: %s", exc)

    async def stop(self) -> None:
        """Cancel the timer and write one final snapshot."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self.cache.persist()
