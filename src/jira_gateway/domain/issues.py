"""Issue-tracker domain records.

Inbound payloads are decoded into these records once, at the client boundary, so the
rest of the gateway never has to probe optional or differently shaped JSON fields.

Usage example:
    from jira_gateway.domain.issues import UNASSIGNED, Person, validate_issue_key

    key = validate_issue_key("proj-42")
    owner = Person(display_name="Ada", account_id="abc123")
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from ..exceptions import InvalidIssueKeyError

ISSUE_KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*-\d+$")


@dataclass(frozen=True)
class Person:
    """A user account as identified by the server."""

    display_name: str
    account_id: str
    email_address: str = ""


@dataclass(frozen=True)
class Unassigned:
    """Explicit absence of an assignee."""

    display_name: str = "Unassigned"


UNASSIGNED = Unassigned()

# The assignee id Jira reads as "the project's default assignee".
PROJECT_DEFAULT_ASSIGNEE = Person(display_name="Project default", account_id="-1")

Assignee = Person | Unassigned


@dataclass(frozen=True)
class Transition:
    """One workflow transition currently available on an issue."""

    id: str
    name: str
    to_status: str = ""


def _empty_transitions() -> tuple[Transition, ...]:
    return ()


def _empty_raw() -> dict[str, object]:
    return {}


@dataclass(frozen=True)
class Issue:
    """Decoded view of an issue payload."""

    key: str
    summary: str = ""
    status: str = ""
    issue_type: str = ""
    priority: str = ""
    assignee: Assignee = UNASSIGNED
    reporter: Assignee = UNASSIGNED
    created: str = ""
    updated: str = ""
    description: str = ""
    transitions: tuple[Transition, ...] = field(default_factory=_empty_transitions)
    raw: dict[str, object] = field(default_factory=_empty_raw, compare=False, repr=False)


def _empty_issues() -> tuple[Issue, ...]:
    return ()


@dataclass(frozen=True)
class SearchResults:
    total: int = 0
    issues: tuple[Issue, ...] = field(default_factory=_empty_issues)


def validate_issue_key(issue_key: str) -> str:
    """Normalise and validate an issue key such as ``PROJ-123``.

    Raises:
        InvalidIssueKeyError: When the key is empty or malformed.
    """
    key = issue_key.strip().upper()
    if not key or not ISSUE_KEY_PATTERN.match(key):
        raise InvalidIssueKeyError(issue_key.strip())
    return key


def adf_document(text: str) -> dict[str, object]:
    """Wrap plain text as a single-paragraph Atlassian Document Format body."""
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": text}],
            }
        ],
    }


def adf_to_text(node: object) -> str:
    """Flatten an ADF node (or a plain string body) into plain text."""
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, Mapping):
        node_type = node.get("type")
        if node_type == "text":
            text = node.get("text")
            return text if isinstance(text, str) else ""
        if node_type == "hardBreak":
            return "\n"
        inner = adf_to_text(node.get("content"))
        if node_type in {"paragraph", "heading", "listItem", "codeBlock", "blockquote"}:
            return f"{inner}\n"
        return inner
    if isinstance(node, Sequence):
        return "".join(adf_to_text(child) for child in node)
    return ""


def transition_names(transitions: Sequence[Transition]) -> list[str]:
    return [transition.name for transition in transitions]
