"""Test-only exceptions for enforcing constraints."""

from __future__ import annotations


class NetworkIsolationError(RuntimeError):
    """Raised when a test attempts a real network connection."""

    def __init__(self, attempted: str) -> None:
        super().__init__(
            "Tests must not make network connections! "
            "Use FakeTransport or a mocked session instead. "
            f"Attempted connection to: {attempted}"
        )


class FakeResponseMissingError(ValueError):
    """Raised when a fake transport has no scripted reply for a URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No canned response for URL: {url}")
