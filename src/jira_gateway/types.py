"""Typed data contracts shared across layers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TypedDict


class ApiVersion(StrEnum):
    """Logical API families, each resolved to a path prefix by the credential context."""

    V2 = "v2"
    V3 = "v3"
    AGILE = "agile"
    AGILE_LATEST = "agile_latest"


class ServerFlavor(StrEnum):
    """Deployment flavour of the remote Jira server."""

    CLOUD = "cloud"
    SELF_HOSTED = "self_hosted"


class AuthMode(StrEnum):
    """Supported credential header schemes."""

    BASIC = "basic"
    BEARER = "bearer"


class CacheKind(StrEnum):
    """Cache namespaces, one per remote resource kind."""

    ISSUES = "issues"
    PROJECTS = "projects"
    USERS = "users"
    BOARDS = "boards"
    SPRINTS = "sprints"
    SEARCH = "search"


def _empty_headers() -> dict[str, str]:
    return {}


@dataclass(frozen=True)
class HttpRequest:
    """One outbound HTTP request as built by the dispatcher."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=_empty_headers)
    body: str | None = None
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class HttpResponse:
    """Status and raw body text of one HTTP response."""

    status_code: int
    text: str = ""


class SnapshotEntry(TypedDict):
    """On-disk shape of one cache entry in a namespace snapshot."""

    value: object
    created_at: float
    last_accessed_at: float
    expires_at: float
