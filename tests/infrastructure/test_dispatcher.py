"""Tests for request dispatch and endpoint-version fallback."""

import asyncio
import json

import pytest

from jira_gateway.exceptions import (
    ApiResponseError,
    DecodeError,
    NetworkError,
    UnsupportedMethodError,
)
from jira_gateway.infrastructure.dispatcher import (
    FALLBACK_ROUTES,
    Dispatcher,
    FallbackRoute,
    build_api_error,
    decode_body,
)
from jira_gateway.types import ApiVersion, HttpResponse
from tests.fakes import FakeTransport, json_response
from tests.support.builders import cloud_context, self_hosted_context

CLOUD = "https://acme.atlassian.net"


def _dispatcher(transport: FakeTransport, *, cloud: bool = True) -> Dispatcher:
    context = cloud_context() if cloud else self_hosted_context()
    return Dispatcher(context=context, transport=transport, timeout_seconds=7.0)


def test_dispatch_builds_request_and_decodes_json(transport: FakeTransport) -> None:
    transport.queue(json_response(200, {"key": "PROJ-1"}))

    result = asyncio.run(_dispatcher(transport).dispatch("get", "/issue/PROJ-1"))

    assert result == {"key": "PROJ-1"}
    request = transport.requests[0]
    assert request.method == "GET"
    assert request.url == f"{CLOUD}/rest/api/3/issue/PROJ-1"
    assert request.timeout_seconds == 7.0
    assert request.body is None
    assert request.headers["Authorization"].startswith("Basic ")


def test_dispatch_serialises_body(transport: FakeTransport) -> None:
    transport.queue(HttpResponse(204, ""))

    result = asyncio.run(
        _dispatcher(transport).dispatch("PUT", "/issue/PROJ-1/assignee", body={"accountId": None})
    )

    assert result is None
    assert json.loads(transport.requests[0].body or "") == {"accountId": None}


def test_dispatch_rejects_unsupported_method_before_io(transport: FakeTransport) -> None:
    with pytest.raises(UnsupportedMethodError):
        asyncio.run(_dispatcher(transport).dispatch("PATCH", "/issue/PROJ-1"))

    assert transport.requests == []


def test_v3_get_falls_back_to_v2_on_404(transport: FakeTransport) -> None:
    transport.queue(json_response(404, {"errorMessages": ["nope"]}), json_response(200, {"ok": 1}))

    result = asyncio.run(_dispatcher(transport).dispatch("GET", "/issue/PROJ-1"))

    assert result == {"ok": 1}
    assert transport.urls == [
        f"{CLOUD}/rest/api/3/issue/PROJ-1",
        f"{CLOUD}/rest/api/2/issue/PROJ-1",
    ]


def test_fallback_happens_at_most_once(transport: FakeTransport) -> None:
    transport.queue(json_response(404, {}), json_response(404, {"errorMessages": ["gone"]}))

    with pytest.raises(ApiResponseError) as exc_info:
        asyncio.run(_dispatcher(transport).dispatch("GET", "/issue/PROJ-1"))

    assert exc_info.value.status_code == 404
    assert exc_info.value.api_version == "v2"
    assert len(transport.requests) == 2


def test_v3_write_does_not_fall_back(transport: FakeTransport) -> None:
    transport.queue(json_response(404, {}))

    with pytest.raises(ApiResponseError):
        asyncio.run(_dispatcher(transport).dispatch("POST", "/issue", body={"fields": {}}))

    assert len(transport.requests) == 1


def test_non_404_errors_do_not_fall_back(transport: FakeTransport) -> None:
    transport.queue(json_response(500, {"errorMessages": ["boom"]}))

    with pytest.raises(ApiResponseError) as exc_info:
        asyncio.run(_dispatcher(transport).dispatch("GET", "/myself"))

    assert exc_info.value.status_code == 500
    assert len(transport.requests) == 1


def test_agile_falls_back_to_latest_for_any_method(transport: FakeTransport) -> None:
    transport.queue(json_response(404, {}), json_response(201, {"id": 5}))

    result = asyncio.run(
        _dispatcher(transport).dispatch("POST", "/sprint", ApiVersion.AGILE, body={"name": "S1"})
    )

    assert result == {"id": 5}
    assert transport.urls[1] == f"{CLOUD}/rest/agile/latest/sprint"


def test_self_hosted_skips_fallback_to_identical_prefix(transport: FakeTransport) -> None:
    transport.queue(json_response(404, {}))

    with pytest.raises(ApiResponseError):
        asyncio.run(_dispatcher(transport, cloud=False).dispatch("GET", "/issue/PROJ-1"))

    assert transport.urls == ["https://jira.acme.internal/rest/api/2/issue/PROJ-1"]


def test_network_errors_propagate_without_fallback(transport: FakeTransport) -> None:
    transport.queue(NetworkError("connection refused"))

    with pytest.raises(NetworkError):
        asyncio.run(_dispatcher(transport).dispatch("GET", "/myself"))

    assert len(transport.requests) == 1


def test_invalid_json_success_body_raises_decode_error(transport: FakeTransport) -> None:
    transport.queue(HttpResponse(200, "<html>login</html>"))

    with pytest.raises(DecodeError) as exc_info:
        asyncio.run(_dispatcher(transport).dispatch("GET", "/myself"))

    assert "Failed to parse JSON response" in str(exc_info.value)


class TestBuildApiError:
    def test_collects_error_messages_and_field_errors(self) -> None:
        response = json_response(
            400,
            {"errorMessages": ["Bad request"], "errors": {"summary": "Field is required"}},
        )

        error = build_api_error(
            response, method="POST", endpoint="/issue", api_version=ApiVersion.V3
        )

        assert error.detail == "Bad request, summary: Field is required"
        assert str(error) == "API Error: 400 - Bad request, summary: Field is required"
        assert error.error_messages == ("Bad request", "summary: Field is required")
        assert error.method == "POST"
        assert error.endpoint == "/issue"

    def test_falls_back_to_truncated_body(self) -> None:
        response = HttpResponse(502, "x" * 500)

        error = build_api_error(response, method="GET", endpoint="/", api_version=ApiVersion.V2)

        assert error.detail == "x" * 300 + "..."

    def test_empty_body_gives_bare_status(self) -> None:
        error = build_api_error(
            HttpResponse(401, ""), method="GET", endpoint="/myself", api_version=ApiVersion.V3
        )

        assert str(error) == "API Error: 401"


def test_decode_body_empty_is_none() -> None:
    assert decode_body("") is None
    assert decode_body("  \n") is None
    assert decode_body('{"a": 1}') == {"a": 1}


def test_fallback_route_table() -> None:
    v3_route = FALLBACK_ROUTES[ApiVersion.V3]
    not_found = ApiResponseError(404, "")

    assert v3_route.applies_to("GET", not_found) is True
    assert v3_route.applies_to("POST", not_found) is False
    assert v3_route.applies_to("GET", ApiResponseError(403, "")) is False
    assert FallbackRoute(ApiVersion.AGILE_LATEST).applies_to("DELETE", not_found) is True
    assert ApiVersion.V2 not in FALLBACK_ROUTES
