"""Workflow transition state machine.

A run moves ``idle -> fetching_transitions -> matched | no_match``; a match continues
``matched -> transitioning -> done | failed``. Fetching may also end in ``failed``.
Available transitions are fetched fresh for every run. After a successful transition an
optional assignee cascade runs; its failure is recorded on the run without undoing the
transition.

Usage example:
    from jira_gateway.application.transitions import TransitionRequest, TransitionWorkflow

    workflow = TransitionWorkflow(client)
    run = await workflow.run(TransitionRequest("PROJ-1", "In Progress", assignee="me"))
    print(run.state, run.cascade_error)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from ..domain.issues import (
    PROJECT_DEFAULT_ASSIGNEE,
    UNASSIGNED,
    Assignee,
    Person,
    Transition,
    transition_names,
)
from ..exceptions import AssigneeNotFoundError, GatewayError, InvalidStateTransitionError
from ..observability import get_logger
from .client import JiraClient

logger = get_logger("jira_gateway.application.transitions")

SELF_ALIASES = frozenset({"me", "self"})
UNASSIGN_ALIASES = frozenset({"none", "unassign"})
PROJECT_DEFAULT_ALIASES = frozenset({"default"})


class TransitionState(StrEnum):
    IDLE = "idle"
    FETCHING_TRANSITIONS = "fetching_transitions"
    MATCHED = "matched"
    NO_MATCH = "no_match"
    TRANSITIONING = "transitioning"
    DONE = "done"
    FAILED = "failed"


ALLOWED_MOVES: Mapping[TransitionState, frozenset[TransitionState]] = {
    TransitionState.IDLE: frozenset({TransitionState.FETCHING_TRANSITIONS}),
    TransitionState.FETCHING_TRANSITIONS: frozenset(
        {TransitionState.MATCHED, TransitionState.NO_MATCH, TransitionState.FAILED}
    ),
    TransitionState.MATCHED: frozenset({TransitionState.TRANSITIONING}),
    TransitionState.NO_MATCH: frozenset(),
    TransitionState.TRANSITIONING: frozenset({TransitionState.DONE, TransitionState.FAILED}),
    TransitionState.DONE: frozenset(),
    TransitionState.FAILED: frozenset(),
}


@dataclass(frozen=True)
class TransitionRequest:
    issue_key: str
    target_name: str
    comment: str | None = None
    resolution: str | None = None
    assignee: str | None = None

    def fields(self) -> dict[str, object] | None:
        if not self.resolution:
            return None
        return {"resolution": {"name": self.resolution}}


def _initial_history() -> list[TransitionState]:
    return [TransitionState.IDLE]


def _no_candidates() -> tuple[Transition, ...]:
    return ()


@dataclass
class TransitionRun:
    """Record of one workflow execution."""

    request: TransitionRequest
    state: TransitionState = TransitionState.IDLE
    history: list[TransitionState] = field(default_factory=_initial_history)
    candidates: tuple[Transition, ...] = field(default_factory=_no_candidates)
    matched: Transition | None = None
    error: GatewayError | None = None
    cascade_error: GatewayError | None = None
    assignee: Assignee | None = None

    def move_to(self, target: TransitionState) -> None:
        if target not in ALLOWED_MOVES[self.state]:
            raise InvalidStateTransitionError(self.state.value, target.value)
        self.state = target
        self.history.append(target)

    @property
    def valid_names(self) -> list[str]:
        return transition_names(self.candidates)

    @property
    def succeeded(self) -> bool:
        return self.state is TransitionState.DONE

    def describe(self) -> str:
        """One-line human summary of the outcome."""
        key = self.request.issue_key
        if self.state is TransitionState.NO_MATCH:
            valid = ", ".join(self.valid_names) or "none"
            return (
                f"No transition named {self.request.target_name!r} for {key}. "
                f"Valid transitions: {valid}"
            )
        if self.state is TransitionState.FAILED:
            return f"Transition of {key} failed: {self.error}"
        if self.state is TransitionState.DONE and self.matched is not None:
            summary = f"{key} transitioned via {self.matched.name!r}"
            if self.cascade_error is not None:
                return f"{summary}; assignment failed: {self.cascade_error}"
            if self.assignee is not None:
                return f"{summary}; assignee set to {self.assignee.display_name}"
            return summary
        return f"{key}: {self.state.value}"


def match_transition(candidates: Sequence[Transition], target_name: str) -> Transition | None:
    """Case-insensitive exact name match."""
    wanted = target_name.strip().casefold()
    for candidate in candidates:
        if candidate.name.casefold() == wanted:
            return candidate
    return None


async def resolve_assignee(client: JiraClient, query: str) -> Assignee:
    """Resolve an assignee expression to a user.

    ``me``/``self`` resolve to the current user, ``none``/``unassign`` to nobody,
    ``default`` to the project's default assignee, and anything else to the first match
    of a user search.

    Raises:
        AssigneeNotFoundError: When the search matches nobody.
    """
    text = query.strip()
    lowered = text.lower()
    if lowered in SELF_ALIASES:
        return await client.get_current_user()
    if lowered in UNASSIGN_ALIASES:
        return UNASSIGNED
    if lowered in PROJECT_DEFAULT_ALIASES:
        return PROJECT_DEFAULT_ASSIGNEE
    users = await client.find_users(text)
    if not users:
        raise AssigneeNotFoundError(text)
    if len(users) > 1:
        logger.info(
            "Assignee %r matched %s users; using %s", text, len(users), users[0].display_name
        )
    return users[0]


class TransitionWorkflow:
    """Drives a TransitionRun through lookup, match, execution and assignee cascade."""

    def __init__(self, client: JiraClient) -> None:
        self.client = client

    async def run(self, request: TransitionRequest) -> TransitionRun:
        run = TransitionRun(request=request)
        run.move_to(TransitionState.FETCHING_TRANSITIONS)
        try:
            run.candidates = await self.client.get_transitions(request.issue_key)
        except GatewayError as error:
            run.error = error
            run.move_to(TransitionState.FAILED)
            return run

        matched = match_transition(run.candidates, request.target_name)
        if matched is None:
            run.move_to(TransitionState.NO_MATCH)
            return run

        run.matched = matched
        run.move_to(TransitionState.MATCHED)
        run.move_to(TransitionState.TRANSITIONING)
        try:
            await self.client.transition_issue(
                request.issue_key, matched.id, request.fields(), request.comment
            )
        except GatewayError as error:
            run.error = error
            run.move_to(TransitionState.FAILED)
            return run
        run.move_to(TransitionState.DONE)

        if request.assignee:
            await self._cascade_assignee(run, request.assignee)
        return run

    async def _cascade_assignee(self, run: TransitionRun, query: str) -> None:
        try:
            assignee = await resolve_assignee(self.client, query)
            account_id = assignee.account_id if isinstance(assignee, Person) else None
            await self.client.assign_issue(run.request.issue_key, account_id)
        except GatewayError as error:
            logger.warning("Assignee update after transition failed: %s", error)
            run.cascade_error = error
            return
        run.assignee = assignee
