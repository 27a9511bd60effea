"""Tests for raw Jira endpoint construction."""

import asyncio
import json

from jira_gateway.types import HttpResponse
from tests.fakes import FakeTransport, json_response
from tests.support.builders import CLOUD_URL, SELF_HOSTED_URL, build_api


def _ok(transport: FakeTransport, payload: object = None) -> None:
    transport.queue(json_response(200, payload) if payload is not None else HttpResponse(204))


def _body(transport: FakeTransport) -> object:
    return json.loads(transport.requests[-1].body or "null")


def test_get_issue_expands_fields_and_transitions(transport: FakeTransport) -> None:
    _ok(transport, {"key": "PROJ-1"})

    asyncio.run(build_api(transport).get_issue("PROJ-1"))

    assert transport.urls == [
        f"{CLOUD_URL}/rest/api/3/issue/PROJ-1?expand=renderedFields,transitions"
    ]


def test_search_uses_v2_and_encodes_jql(transport: FakeTransport) -> None:
    _ok(transport, {"issues": []})

    asyncio.run(build_api(transport).search_issues('project = "My Proj"', 5))

    assert transport.urls == [
        f"{CLOUD_URL}/rest/api/2/search?jql=project%20%3D%20%22My%20Proj%22"
        "&expand=renderedFields&maxResults=5"
    ]


def test_create_issue_body_uses_adf_on_cloud(transport: FakeTransport) -> None:
    _ok(transport, {"key": "PROJ-9"})

    asyncio.run(
        build_api(transport).create_issue(
            "PROJ", "Task", "Write docs", "Details here", {"labels": ["docs"]}
        )
    )

    request = transport.requests[0]
    assert request.method == "POST"
    assert request.url == f"{CLOUD_URL}/rest/api/3/issue"
    fields = _body(transport)["fields"]  # type: ignore[index]
    assert fields["project"] == {"key": "PROJ"}
    assert fields["issuetype"] == {"name": "Task"}
    assert fields["summary"] == "Write docs"
    assert fields["description"]["type"] == "doc"
    assert fields["labels"] == ["docs"]


def test_create_issue_body_uses_plain_text_on_self_hosted(transport: FakeTransport) -> None:
    _ok(transport, {"key": "PROJ-9"})

    asyncio.run(build_api(transport, cloud=False).create_issue("PROJ", "Task", "S", "plain"))

    assert _body(transport)["fields"]["description"] == "plain"  # type: ignore[index]
    assert transport.urls == [f"{SELF_HOSTED_URL}/rest/api/2/issue"]


def test_transition_issue_body(transport: FakeTransport) -> None:
    _ok(transport)

    asyncio.run(
        build_api(transport).transition_issue(
            "PROJ-1", "31", {"resolution": {"name": "Done"}}, "Shipped"
        )
    )

    body = _body(transport)
    assert transport.urls == [f"{CLOUD_URL}/rest/api/3/issue/PROJ-1/transitions"]
    assert body["transition"] == {"id": "31"}  # type: ignore[index]
    assert body["fields"] == {"resolution": {"name": "Done"}}  # type: ignore[index]
    comment = body["update"]["comment"][0]["add"]["body"]  # type: ignore[index]
    assert comment["type"] == "doc"


def test_transition_issue_minimal_body(transport: FakeTransport) -> None:
    _ok(transport)

    asyncio.run(build_api(transport).transition_issue("PROJ-1", "31"))

    assert _body(transport) == {"transition": {"id": "31"}}


def test_assign_issue_uses_account_id_on_cloud_and_name_on_self_hosted(
    transport: FakeTransport,
) -> None:
    _ok(transport)
    _ok(transport)
    _ok(transport)

    asyncio.run(build_api(transport).assign_issue("PROJ-1", "abc"))
    assert _body(transport) == {"accountId": "abc"}
    assert transport.requests[-1].method == "PUT"

    asyncio.run(build_api(transport).assign_issue("PROJ-1", None))
    assert _body(transport) == {"accountId": None}

    asyncio.run(build_api(transport, cloud=False).assign_issue("PROJ-1", "jdoe"))
    assert _body(transport) == {"name": "jdoe"}


def test_comments_watchers_and_projects(transport: FakeTransport) -> None:
    for _ in range(5):
        _ok(transport, {})
    api = build_api(transport)

    asyncio.run(api.add_comment("PROJ-1", "hi"))
    asyncio.run(api.get_comments("PROJ-1", 3))
    asyncio.run(api.add_watcher("PROJ-1", "abc"))
    asyncio.run(api.get_projects())
    asyncio.run(api.get_issue_types(10001))

    assert transport.urls == [
        f"{CLOUD_URL}/rest/api/3/issue/PROJ-1/comment",
        f"{CLOUD_URL}/rest/api/3/issue/PROJ-1/comment?maxResults=3&orderBy=-created",
        f"{CLOUD_URL}/rest/api/3/issue/PROJ-1/watchers",
        f"{CLOUD_URL}/rest/api/2/project",
        f"{CLOUD_URL}/rest/api/3/project/10001/issueTypes",
    ]
    assert transport.requests[2].body == '"abc"'


def test_agile_endpoints(transport: FakeTransport) -> None:
    for _ in range(5):
        _ok(transport, {"values": []})
    api = build_api(transport)

    asyncio.run(api.get_boards())
    asyncio.run(api.get_project_boards("PROJ"))
    asyncio.run(api.get_sprints(7))
    asyncio.run(api.get_active_sprint(7))
    asyncio.run(api.get_epics(7))

    assert transport.urls == [
        f"{CLOUD_URL}/rest/agile/1.0/board",
        f"{CLOUD_URL}/rest/agile/1.0/board?projectKeyOrId=PROJ",
        f"{CLOUD_URL}/rest/agile/1.0/board/7/sprint",
        f"{CLOUD_URL}/rest/agile/1.0/board/7/sprint?state=active",
        f"{CLOUD_URL}/rest/agile/1.0/board/7/epic",
    ]


def test_create_meta_query(transport: FakeTransport) -> None:
    _ok(transport, {"projects": []})

    asyncio.run(build_api(transport).get_create_meta("PROJ", "10002"))

    assert transport.urls == [
        f"{CLOUD_URL}/rest/api/3/issue/createmeta?projectKeys=PROJ&issuetypeIds=10002"
        "&expand=projects.issuetypes.fields"
    ]


def test_find_users_parameter_depends_on_flavour(transport: FakeTransport) -> None:
    _ok(transport, [])
    _ok(transport, [])

    asyncio.run(build_api(transport).find_users("ada l"))
    asyncio.run(build_api(transport, cloud=False).find_users("ada"))

    assert transport.urls == [
        f"{CLOUD_URL}/rest/api/3/user/search?query=ada%20l",
        f"{SELF_HOSTED_URL}/rest/api/2/user/search?username=ada",
    ]


def test_browse_url(transport: FakeTransport) -> None:
    assert build_api(transport).browse_url("PROJ-1") == f"{CLOUD_URL}/browse/PROJ-1"
