"""Request dispatch with endpoint-version fallback.

Usage example:
    from jira_gateway.credentials import build_credential_context
    from jira_gateway.infrastructure.dispatcher import Dispatcher
    from jira_gateway.infrastructure.http import RequestsTransport

    context = build_credential_context("https://acme.atlassian.net", "me@acme.io", "token")
    dispatcher = Dispatcher(context=context, transport=RequestsTransport())
    issue = await dispatcher.dispatch("GET", "/issue/PROJ-1")
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass

from ..credentials import CredentialContext
from ..exceptions import ApiResponseError, DecodeError, UnsupportedMethodError
from ..io_validation import IncomingDataError, validate_json_as
from ..observability import get_logger
from ..protocols import HttpTransport
from ..types import ApiVersion, HttpRequest, HttpResponse

logger = get_logger("jira_gateway.infrastructure.dispatcher")

ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})
DEFAULT_TIMEOUT_SECONDS = 10.0
_MAX_DETAIL_LENGTH = 300


@dataclass(frozen=True)
class FallbackRoute:
    """Alternate API version to try once when the primary answers 404."""

    fallback: ApiVersion
    methods: frozenset[str] | None = None

    def applies_to(self, method: str, error: ApiResponseError) -> bool:
        if not error.is_not_found:
            return False
        return self.methods is None or method in self.methods


FALLBACK_ROUTES: Mapping[ApiVersion, FallbackRoute] = {
    ApiVersion.V3: FallbackRoute(fallback=ApiVersion.V2, methods=frozenset({"GET"})),
    ApiVersion.AGILE: FallbackRoute(fallback=ApiVersion.AGILE_LATEST),
}


def _truncate(text: str) -> str:
    compact = " ".join(text.split())
    if len(compact) > _MAX_DETAIL_LENGTH:
        return compact[:_MAX_DETAIL_LENGTH] + "..."
    return compact


def _error_messages(body: object) -> list[str]:
    if not isinstance(body, dict):
        return []
    messages: list[str] = []
    raw_messages = body.get("errorMessages")
    if isinstance(raw_messages, list):
        messages.extend(str(message) for message in raw_messages if message)
    raw_errors = body.get("errors")
    if isinstance(raw_errors, dict):
        messages.extend(f"{field}: {message}" for field, message in raw_errors.items())
    return messages


def build_api_error(
    response: HttpResponse, *, method: str, endpoint: str, api_version: ApiVersion
) -> ApiResponseError:
    """Turn an error response into a typed error carrying the server's messages."""
    messages: list[str] = []
    if response.text.strip():
        try:
            messages = _error_messages(validate_json_as(object, response.text))
        except IncomingDataError:
            messages = []
    detail = ", ".join(messages) if messages else _truncate(response.text)
    return ApiResponseError(
        response.status_code,
        detail,
        method=method,
        endpoint=endpoint,
        api_version=api_version.value,
        error_messages=messages,
    )


def decode_body(text: str) -> object | None:
    if not text.strip():
        return None
    try:
        return validate_json_as(object, text)
    except IncomingDataError as exc:
        raise DecodeError(_truncate(text)) from exc


class Dispatcher:
    """Builds, sends and decodes one logical request.

    A 404 on a version listed in the fallback table is retried exactly once against the
    fallback version; the fallback hop never consults the table again.
    """

    def __init__(
        self,
        *,
        context: CredentialContext,
        transport: HttpTransport,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        fallback_routes: Mapping[ApiVersion, FallbackRoute] = FALLBACK_ROUTES,
    ) -> None:
        self.context = context
        self.transport = transport
        self.timeout_seconds = timeout_seconds
        self.fallback_routes = fallback_routes

    async def dispatch(
        self,
        method: str,
        endpoint: str,
        api_version: ApiVersion = ApiVersion.V3,
        body: object | None = None,
    ) -> object | None:
        """Issue a request and return the decoded JSON body.

        Args:
            method: GET, POST, PUT or DELETE.
            endpoint: Path below the version prefix, including any query string.
            api_version: Logical API family to resolve the prefix from.
            body: JSON-serialisable payload, or None for no body.

        Returns:
            Decoded JSON, or None for an empty body.

        Raises:
            UnsupportedMethodError: Before any I/O, for other HTTP methods.
            ApiResponseError: For status codes of 400 and above (after any fallback).
            DecodeError: When a successful body is not valid JSON.
            NetworkError: When no response was received.
        """
        normalised_method = method.upper()
        if normalised_method not in ALLOWED_METHODS:
            raise UnsupportedMethodError(method)

        try:
            return await self._send_once(normalised_method, endpoint, api_version, body)
        except ApiResponseError as error:
            route = self.fallback_routes.get(api_version)
            if route is None or not route.applies_to(normalised_method, error):
                raise
            if self.context.path_for(route.fallback) == self.context.path_for(api_version):
                raise
            logger.info(
                "Falling back from %s to %s after 404: %s %s",
                api_version.value,
                route.fallback.value,
                normalised_method,
                endpoint,
            )
            return await self._send_once(normalised_method, endpoint, route.fallback, body)

    def build_request(
        self, method: str, endpoint: str, api_version: ApiVersion, body: object | None
    ) -> HttpRequest:
        url = f"{self.context.base_url}{self.context.path_for(api_version)}{endpoint}"
        return HttpRequest(
            method=method,
            url=url,
            headers=self.context.headers(),
            body=None if body is None else json.dumps(body),
            timeout_seconds=self.timeout_seconds,
        )

    async def _send_once(
        self, method: str, endpoint: str, api_version: ApiVersion, body: object | None
    ) -> object | None:
        request = self.build_request(method, endpoint, api_version, body)
        logger.debug("%s %s", method, request.url)
        response = await self.transport.send(request)
        if response.status_code >= 400:
            raise build_api_error(
                response, method=method, endpoint=endpoint, api_version=api_version
            )
        return decode_body(response.text)
