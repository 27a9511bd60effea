"""Tests for JQL clause formatting."""

import pytest

from jira_gateway.domain.jql import JqlClause, format_clause, format_jql


@pytest.mark.parametrize(
    ("clause", "expected"),
    [
        (("project", "=", "PROJ"), "project = PROJ"),
        (("status", "=", "In Progress"), 'status = "In Progress"'),
        (("labels", "=", "a,b"), 'labels = "a,b"'),
        (("priority", ">", 3), "priority > 3"),
        (("assignee", "is empty"), "assignee IS EMPTY"),
        (("assignee", "IS NOT EMPTY", "ignored"), "assignee IS NOT EMPTY"),
        (("status", "in", ["Open", "In Review"]), 'status IN (Open,"In Review")'),
        (("status", "NOT IN", ("Done",)), "status NOT IN (Done)"),
        (("status", "IN", "Open"), "status IN Open"),
    ],
)
def test_format_clause(clause: JqlClause, expected: str) -> None:
    assert format_clause(clause) == expected


def test_format_jql_joins_with_and_by_default() -> None:
    clauses: list[JqlClause] = [("project", "=", "PROJ"), ("assignee", "=", "currentUser()")]

    assert format_jql(clauses) == "project = PROJ AND assignee = currentUser()"


def test_format_jql_supports_or() -> None:
    clauses: list[JqlClause] = [("status", "=", "Open"), ("status", "=", "To Do")]

    assert format_jql(clauses, "OR") == 'status = Open OR status = "To Do"'


def test_format_jql_with_no_clauses_is_empty() -> None:
    assert format_jql([]) == ""
