"""Raw Jira REST endpoints.

Each coroutine issues one logical request through the dispatcher and returns the
undecoded JSON payload. Caching, decoding and failure reporting are layered on top by
``JiraClient``.
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import quote, urlencode

from ..domain.issues import adf_document
from ..infrastructure.dispatcher import Dispatcher
from ..types import ApiVersion

DEFAULT_SEARCH_RESULTS = 50
DEFAULT_COMMENT_RESULTS = 10


def _segment(value: str | int) -> str:
    return quote(str(value), safe="")


class JiraApi:
    """Thin endpoint layer over a Dispatcher."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self.dispatcher = dispatcher

    @property
    def is_cloud(self) -> bool:
        return self.dispatcher.context.is_cloud

    def rich_text(self, text: str) -> object:
        """Body for rich-text fields: ADF on cloud, plain strings on self-hosted servers."""
        return adf_document(text) if self.is_cloud else text

    async def get_current_user(self) -> object | None:
        return await self.dispatcher.dispatch("GET", "/myself")

    async def get_issue(self, issue_key: str) -> object | None:
        return await self.dispatcher.dispatch(
            "GET", f"/issue/{_segment(issue_key)}?expand=renderedFields,transitions"
        )

    async def search_issues(
        self, jql: str, max_results: int = DEFAULT_SEARCH_RESULTS
    ) -> object | None:
        params = urlencode(
            {"jql": jql, "expand": "renderedFields", "maxResults": max_results},
            quote_via=quote,
        )
        return await self.dispatcher.dispatch("GET", f"/search?{params}", ApiVersion.V2)

    async def create_issue(
        self,
        project_key: str,
        issue_type: str,
        summary: str,
        description: str | None = None,
        additional_fields: Mapping[str, object] | None = None,
    ) -> object | None:
        fields: dict[str, object] = {
            "project": {"key": project_key},
            "issuetype": {"name": issue_type},
            "summary": summary,
        }
        if description:
            fields["description"] = self.rich_text(description)
        if additional_fields:
            fields.update(additional_fields)
        return await self.dispatcher.dispatch("POST", "/issue", body={"fields": fields})

    async def get_transitions(self, issue_key: str) -> object | None:
        return await self.dispatcher.dispatch("GET", f"/issue/{_segment(issue_key)}/transitions")

    async def transition_issue(
        self,
        issue_key: str,
        transition_id: str,
        fields: Mapping[str, object] | None = None,
        comment: str | None = None,
    ) -> object | None:
        body: dict[str, object] = {"transition": {"id": transition_id}}
        if fields:
            body["fields"] = dict(fields)
        if comment:
            body["update"] = {"comment": [{"add": {"body": self.rich_text(comment)}}]}
        return await self.dispatcher.dispatch(
            "POST", f"/issue/{_segment(issue_key)}/transitions", body=body
        )

    async def add_comment(self, issue_key: str, comment: str) -> object | None:
        return await self.dispatcher.dispatch(
            "POST",
            f"/issue/{_segment(issue_key)}/comment",
            body={"body": self.rich_text(comment)},
        )

    async def get_comments(
        self, issue_key: str, max_results: int = DEFAULT_COMMENT_RESULTS
    ) -> object | None:
        return await self.dispatcher.dispatch(
            "GET",
            f"/issue/{_segment(issue_key)}/comment?maxResults={max_results}&orderBy=-created",
        )

    async def assign_issue(self, issue_key: str, account_id: str | None) -> object | None:
        """Assign an issue; ``None`` unassigns it.

        Self-hosted servers identify the assignee by user name instead of account id.
        """
        id_field = "accountId" if self.is_cloud else "name"
        return await self.dispatcher.dispatch(
            "PUT", f"/issue/{_segment(issue_key)}/assignee", body={id_field: account_id}
        )

    async def add_watcher(self, issue_key: str, account_id: str) -> object | None:
        return await self.dispatcher.dispatch(
            "POST", f"/issue/{_segment(issue_key)}/watchers", body=account_id
        )

    async def get_projects(self) -> object | None:
        return await self.dispatcher.dispatch("GET", "/project", ApiVersion.V2)

    async def get_project(self, project_key: str) -> object | None:
        return await self.dispatcher.dispatch("GET", f"/project/{_segment(project_key)}")

    async def get_boards(self) -> object | None:
        return await self.dispatcher.dispatch("GET", "/board", ApiVersion.AGILE)

    async def get_project_boards(self, project_key: str) -> object | None:
        return await self.dispatcher.dispatch(
            "GET", f"/board?projectKeyOrId={quote(project_key, safe='')}", ApiVersion.AGILE
        )

    async def get_sprints(self, board_id: int | str) -> object | None:
        return await self.dispatcher.dispatch(
            "GET", f"/board/{_segment(board_id)}/sprint", ApiVersion.AGILE
        )

    async def get_active_sprint(self, board_id: int | str) -> object | None:
        return await self.dispatcher.dispatch(
            "GET", f"/board/{_segment(board_id)}/sprint?state=active", ApiVersion.AGILE
        )

    async def get_epics(self, board_id: int | str) -> object | None:
        return await self.dispatcher.dispatch(
            "GET", f"/board/{_segment(board_id)}/epic", ApiVersion.AGILE
        )

    async def get_issue_types(self, project_id: int | str) -> object | None:
        return await self.dispatcher.dispatch("GET", f"/project/{_segment(project_id)}/issueTypes")

    async def get_create_meta(
        self, project_key: str, issue_type_id: str | None = None
    ) -> object | None:
        params: dict[str, str] = {"projectKeys": project_key}
        if issue_type_id:
            params["issuetypeIds"] = issue_type_id
        params["expand"] = "projects.issuetypes.fields"
        return await self.dispatcher.dispatch(
            "GET", f"/issue/createmeta?{urlencode(params, quote_via=quote)}"
        )

    async def find_users(self, query: str) -> object | None:
        # The v2 user search on self-hosted servers takes ``username`` rather than ``query``.
        param = "query" if self.is_cloud else "username"
        return await self.dispatcher.dispatch(
            "GET", f"/user/search?{urlencode({param: query}, quote_via=quote)}"
        )

    def browse_url(self, issue_key: str) -> str:
        return self.dispatcher.context.browse_url(issue_key)
