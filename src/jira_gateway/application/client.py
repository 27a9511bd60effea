"""Inbound facade over the Jira API.

``JiraClient`` is the object hosts talk to. Reads go through the cache (where the
resource is cacheable), are decoded once into domain records, and report failures to
the notifier with a retry hook. Writes carry no retry hook and drop the cached copy of
the issue they touch.

Usage example:
    from jira_gateway.application.client import JiraClient

    client = JiraClient(api=api, cache=cache, classifier=classifier, notifier=notifier)
    issue = await client.get_issue("PROJ-1")
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping

from ..domain.error_classifier import ErrorClassifier
from ..domain.issues import Issue, Person, SearchResults, Transition, validate_issue_key
from ..infrastructure.cache import CacheService
from ..io_validation import (
    first_value,
    parse_issue,
    parse_object,
    parse_object_list,
    parse_person,
    parse_projects,
    parse_search_results,
    parse_transitions,
    parse_users,
    unwrap_values,
)
from ..protocols import FailureNotifier
from ..types import CacheKind
from .jira_api import DEFAULT_COMMENT_RESULTS, DEFAULT_SEARCH_RESULTS, JiraApi
from .wrappers import cached, decode_payload, decoded, resilient

CURRENT_USER_KEY = "myself"


def _issue_key(issue_key: str) -> str:
    return issue_key


def _search_key(jql: str, max_results: int = DEFAULT_SEARCH_RESULTS) -> str:
    return f"jql:{jql}|{max_results}"


def _all_boards_key() -> str:
    return "all_boards"


def _project_boards_key(project_key: str) -> str:
    return f"project_boards:{project_key}"


def _board_sprints_key(board_id: int | str) -> str:
    return f"board_sprints:{board_id}"


def _project_key(project_key: str) -> str:
    return project_key


def _user_query_key(query: str) -> str:
    return f"query:{query}"


def _current_user_key() -> str:
    return CURRENT_USER_KEY


class JiraClient:
    """Cached, decoded and failure-reporting access to a Jira site."""

    def __init__(
        self,
        *,
        api: JiraApi,
        cache: CacheService,
        classifier: ErrorClassifier,
        notifier: FailureNotifier,
        enhanced_error_handling: bool = True,
    ) -> None:
        self.api = api
        self.cache = cache
        self.classifier = classifier
        self.notifier = notifier
        self.enhanced_error_handling = enhanced_error_handling

        self._get_current_user = self._read(
            decoded(
                cached(cache, CacheKind.USERS, _current_user_key, api.get_current_user),
                parse_person,
            )
        )
        self._get_issue = self._read(
            decoded(cached(cache, CacheKind.ISSUES, _issue_key, api.get_issue), parse_issue)
        )
        self._search_issues = self._read(
            decoded(
                cached(cache, CacheKind.SEARCH, _search_key, api.search_issues),
                parse_search_results,
            )
        )
        self._get_transitions = self._read(decoded(api.get_transitions, parse_transitions))
        self._get_comments = self._read(decoded(api.get_comments, parse_object))
        self._get_projects = self._read(decoded(api.get_projects, parse_projects))
        self._get_project = self._read(
            decoded(cached(cache, CacheKind.PROJECTS, _project_key, api.get_project), parse_object)
        )
        self._get_boards = self._read(
            decoded(
                cached(cache, CacheKind.BOARDS, _all_boards_key, api.get_boards), unwrap_values
            )
        )
        self._get_project_boards = self._read(
            decoded(
                cached(cache, CacheKind.BOARDS, _project_boards_key, api.get_project_boards),
                unwrap_values,
            )
        )
        self._get_sprints = self._read(
            decoded(
                cached(cache, CacheKind.SPRINTS, _board_sprints_key, api.get_sprints),
                unwrap_values,
            )
        )
        self._get_active_sprint = self._read(decoded(api.get_active_sprint, first_value))
        self._get_epics = self._read(decoded(api.get_epics, unwrap_values))
        self._get_issue_types = self._read(decoded(api.get_issue_types, parse_object_list))
        self._get_create_meta = self._read(decoded(api.get_create_meta, parse_object))
        self._find_users = self._read(
            decoded(cached(cache, CacheKind.USERS, _user_query_key, api.find_users), parse_users)
        )

    def _read[**P, T](self, fetch: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        if not self.enhanced_error_handling:
            return fetch
        return resilient(fetch, classifier=self.classifier, notifier=self.notifier)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_current_user(self) -> Person:
        return await self._get_current_user()

    async def get_issue(self, issue_key: str) -> Issue:
        return await self._get_issue(validate_issue_key(issue_key))

    async def search_issues(
        self, jql: str, max_results: int = DEFAULT_SEARCH_RESULTS
    ) -> SearchResults:
        return await self._search_issues(jql, max_results)

    async def get_transitions(self, issue_key: str) -> tuple[Transition, ...]:
        """Fetch transitions fresh; workflow state must never come from the cache."""
        return await self._get_transitions(validate_issue_key(issue_key))

    async def get_comments(
        self, issue_key: str, max_results: int = DEFAULT_COMMENT_RESULTS
    ) -> dict[str, object]:
        return await self._get_comments(validate_issue_key(issue_key), max_results)

    async def get_projects(self) -> list[dict[str, object]]:
        return await self._get_projects()

    async def get_project(self, project_key: str) -> dict[str, object]:
        return await self._get_project(project_key.strip().upper())

    async def get_boards(self) -> list[dict[str, object]]:
        return await self._get_boards()

    async def get_project_boards(self, project_key: str) -> list[dict[str, object]]:
        return await self._get_project_boards(project_key.strip().upper())

    async def get_sprints(self, board_id: int | str) -> list[dict[str, object]]:
        return await self._get_sprints(board_id)

    async def get_active_sprint(self, board_id: int | str) -> dict[str, object] | None:
        return await self._get_active_sprint(board_id)

    async def get_epics(self, board_id: int | str) -> list[dict[str, object]]:
        return await self._get_epics(board_id)

    async def get_issue_types(self, project_id: int | str) -> list[dict[str, object]]:
        return await self._get_issue_types(project_id)

    async def get_create_meta(
        self, project_key: str, issue_type_id: str | None = None
    ) -> dict[str, object]:
        return await self._get_create_meta(project_key.strip().upper(), issue_type_id)

    async def find_users(self, query: str) -> list[Person]:
        return await self._find_users(query.strip())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_issue(
        self,
        project_key: str,
        issue_type: str,
        summary: str,
        description: str | None = None,
        additional_fields: Mapping[str, object] | None = None,
    ) -> dict[str, object]:
        payload = await self.api.create_issue(
            project_key.strip().upper(), issue_type, summary, description, additional_fields
        )
        return decode_payload(parse_object, payload)

    async def transition_issue(
        self,
        issue_key: str,
        transition_id: str,
        fields: Mapping[str, object] | None = None,
        comment: str | None = None,
    ) -> None:
        key = validate_issue_key(issue_key)
        await self.api.transition_issue(key, transition_id, fields, comment)
        self.cache.remove(CacheKind.ISSUES, key)

    async def assign_issue(self, issue_key: str, account_id: str | None) -> None:
        key = validate_issue_key(issue_key)
        await self.api.assign_issue(key, account_id)
        self.cache.remove(CacheKind.ISSUES, key)

    async def add_comment(self, issue_key: str, comment: str) -> dict[str, object]:
        key = validate_issue_key(issue_key)
        payload = await self.api.add_comment(key, comment)
        self.cache.remove(CacheKind.ISSUES, key)
        return decode_payload(parse_object, payload)

    async def add_watcher(self, issue_key: str, account_id: str) -> None:
        await self.api.add_watcher(validate_issue_key(issue_key), account_id)

    def browse_url(self, issue_key: str) -> str:
        return self.api.browse_url(validate_issue_key(issue_key))
