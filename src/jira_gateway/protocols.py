"""Protocol definitions for dependency injection.

These protocols define the abstract interfaces that gateway components depend on,
enabling isolated unit testing with fake implementations.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .types import HttpRequest, HttpResponse, SnapshotEntry

if TYPE_CHECKING:
    from .application.wrappers import FailureReport


@runtime_checkable
class HttpTransport(Protocol):
    """Abstract transport that performs one HTTP exchange without blocking the loop."""

    async def send(self, request: HttpRequest) -> HttpResponse:
        """Send a request and return the raw response.

        Args:
            request: Fully built request (URL, headers, body, timeout).

        Returns:
            The response status and body text, whatever the status code.

        Raises:
            NetworkError: When no HTTP response was received.
            RequestTimeoutError: When the request exceeded its timeout.
        """
        ...


@runtime_checkable
class SnapshotStore(Protocol):
    """Abstract persistence for cache namespace snapshots."""

    def save(self, namespace: str, entries: Mapping[str, SnapshotEntry]) -> None:
        """Replace the stored snapshot for a namespace."""
        ...

    def load(self, namespace: str) -> dict[str, SnapshotEntry]:
        """Return the stored snapshot for a namespace (empty when absent)."""
        ...


@runtime_checkable
class FailureNotifier(Protocol):
    """Receives categorised failures at the human-facing boundary."""

    def notify(self, report: FailureReport[object]) -> None:
        """Surface a failure report (message plus retry hook) to the user."""
        ...
