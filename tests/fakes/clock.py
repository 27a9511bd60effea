"""Clock fakes for tests."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    now: float = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
