"""Pydantic-based validation helpers for inbound IO payloads.

Remote payloads are decoded here, once, into the domain records in
``jira_gateway.domain.issues``. Fields that may be absent, a bare string, or a nested
record are normalised so downstream code never probes raw JSON.
"""

from __future__ import annotations

from typing import TypedDict

from pydantic import TypeAdapter, ValidationError

from .domain.issues import (
    UNASSIGNED,
    Assignee,
    Issue,
    Person,
    SearchResults,
    Transition,
    adf_to_text,
)
from .types import SnapshotEntry


class IncomingDataError(ValueError):
    """Raised when inbound data fails validation."""


class UserInput(TypedDict, total=False):
    accountId: str | None
    name: str | None
    key: str | None
    displayName: str | None
    emailAddress: str | None


class StatusRefInput(TypedDict, total=False):
    name: str | None


class TransitionInput(TypedDict, total=False):
    id: str | int | None
    name: str | None
    to: StatusRefInput | None


class TransitionsResponseInput(TypedDict, total=False):
    transitions: list[TransitionInput] | None


class IssueFieldsInput(TypedDict, total=False):
    summary: str | None
    status: StatusRefInput | None
    issuetype: StatusRefInput | None
    priority: StatusRefInput | None
    assignee: UserInput | str | None
    reporter: UserInput | str | None
    created: str | None
    updated: str | None
    description: object


class IssueInput(TypedDict, total=False):
    key: str
    fields: IssueFieldsInput | None
    transitions: list[TransitionInput] | None


class SearchResponseInput(TypedDict, total=False):
    total: int | None
    issues: list[dict[str, object]] | None


class PagedValuesInput(TypedDict, total=False):
    values: list[dict[str, object]] | None


class SnapshotEntryInput(TypedDict):
    value: object
    created_at: float
    last_accessed_at: float
    expires_at: float


def validate_as[SchemaT](schema: type[SchemaT], payload: object) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_python(payload)
    except ValidationError as exc:
        message = f"Invalid payload for {schema}."
        raise IncomingDataError(message) from exc


def validate_json_as[SchemaT](schema: type[SchemaT], payload: str | bytes | bytearray) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_json(payload)
    except ValidationError as exc:
        message = f"Invalid JSON payload for {schema}."
        raise IncomingDataError(message) from exc


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _ref_name(ref: StatusRefInput | None) -> str:
    if not ref:
        return ""
    return _as_str(ref.get("name"))


def _person_from_user(user: UserInput) -> Assignee:
    # Self-hosted servers identify users by name/key rather than accountId.
    account_id = (
        _as_str(user.get("accountId")) or _as_str(user.get("name")) or _as_str(user.get("key"))
    )
    display_name = (
        _as_str(user.get("displayName")) or _as_str(user.get("name")) or account_id
    )
    if not account_id and not display_name:
        return UNASSIGNED
    return Person(
        display_name=display_name,
        account_id=account_id,
        email_address=_as_str(user.get("emailAddress")),
    )


def parse_assignee(payload: object) -> Assignee:
    """Decode an assignee that may be absent, a bare string, or a user record."""
    if payload is None:
        return UNASSIGNED
    if isinstance(payload, str):
        text = payload.strip()
        if not text:
            return UNASSIGNED
        return Person(display_name=text, account_id=text)
    return _person_from_user(validate_as(UserInput, payload))


def parse_person(payload: object) -> Person:
    assignee = parse_assignee(payload)
    if not isinstance(assignee, Person):
        raise IncomingDataError("User payload has no identifier.")
    return assignee


def parse_users(payload: object) -> list[Person]:
    raw_users = validate_as(list[object], payload)
    people: list[Person] = []
    for raw_user in raw_users:
        assignee = parse_assignee(raw_user)
        if isinstance(assignee, Person):
            people.append(assignee)
    return people


def _parse_transition_items(items: list[TransitionInput] | None) -> tuple[Transition, ...]:
    transitions: list[Transition] = []
    for item in items or []:
        raw_id = item.get("id")
        name = _as_str(item.get("name"))
        if raw_id is None or not name:
            continue
        transitions.append(
            Transition(id=str(raw_id), name=name, to_status=_ref_name(item.get("to")))
        )
    return tuple(transitions)


def parse_transitions(payload: object) -> tuple[Transition, ...]:
    response = validate_as(TransitionsResponseInput, payload)
    return _parse_transition_items(response.get("transitions"))


def parse_issue(payload: object) -> Issue:
    issue = validate_as(IssueInput, payload)
    key = _as_str(issue.get("key"))
    if not key:
        raise IncomingDataError("Issue payload has no key.")
    fields = issue.get("fields") or {}
    raw = validate_as(dict[str, object], payload)
    return Issue(
        key=key,
        summary=_as_str(fields.get("summary")),
        status=_ref_name(fields.get("status")),
        issue_type=_ref_name(fields.get("issuetype")),
        priority=_ref_name(fields.get("priority")),
        assignee=parse_assignee(fields.get("assignee")),
        reporter=parse_assignee(fields.get("reporter")),
        created=_as_str(fields.get("created")),
        updated=_as_str(fields.get("updated")),
        description=adf_to_text(fields.get("description")).strip(),
        transitions=_parse_transition_items(issue.get("transitions")),
        raw=raw,
    )


def parse_search_results(payload: object) -> SearchResults:
    response = validate_as(SearchResponseInput, payload)
    issues = tuple(parse_issue(raw_issue) for raw_issue in response.get("issues") or [])
    total = response.get("total")
    return SearchResults(total=len(issues) if total is None else total, issues=issues)


def parse_object(payload: object) -> dict[str, object]:
    return validate_as(dict[str, object], payload)


def parse_object_list(payload: object) -> list[dict[str, object]]:
    return validate_as(list[dict[str, object]], payload)


def parse_projects(payload: object) -> list[dict[str, object]]:
    """Return projects that are not flagged as archived."""
    return [project for project in parse_object_list(payload) if not project.get("archived")]


def unwrap_values(payload: object) -> list[dict[str, object]]:
    """Return the ``values`` array of a paged response, or an empty list."""
    if payload is None:
        return []
    page = validate_as(PagedValuesInput, payload)
    return page.get("values") or []


def first_value(payload: object) -> dict[str, object] | None:
    values = unwrap_values(payload)
    return values[0] if values else None


def parse_snapshot(payload: str | bytes | bytearray) -> dict[str, SnapshotEntry]:
    entries = validate_json_as(dict[str, SnapshotEntryInput], payload)
    return {
        key: {
            "value": entry["value"],
            "created_at": entry["created_at"],
            "last_accessed_at": entry["last_accessed_at"],
            "expires_at": entry["expires_at"],
        }
        for key, entry in entries.items()
    }
