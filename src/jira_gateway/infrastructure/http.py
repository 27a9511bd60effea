"""HTTP transport backed by a requests session.

Usage example:
    import requests

    from jira_gateway.infrastructure.http import RequestsTransport

    transport = RequestsTransport(session=requests.Session())
    response = await transport.send(request)
"""

from __future__ import annotations

import asyncio
from typing import override

import requests

from ..exceptions import NetworkError, RequestTimeoutError
from ..observability import get_logger
from ..protocols import HttpTransport
from ..types import HttpRequest, HttpResponse

logger = get_logger("jira_gateway.infrastructure.http")


def build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": "jira-gateway"})
    return session


class RequestsTransport(HttpTransport):
    """Performs blocking requests calls in a worker thread.

    Every HTTP status is returned as a response; only failures that never produced a
    response are raised:
    - timeouts raise RequestTimeoutError
    - connection and other transport failures raise NetworkError
    """

    def __init__(self, *, session: requests.Session | None = None) -> None:
        self.session = session or build_session()

    @override
    async def send(self, request: HttpRequest) -> HttpResponse:
        return await asyncio.to_thread(self._send_blocking, request)

    def _send_blocking(self, request: HttpRequest) -> HttpResponse:
        try:
            response = self.session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                data=request.body.encode("utf-8") if request.body is not None else None,
                timeout=request.timeout_seconds,
            )
        except requests.Timeout as exc:
            logger.debug(
                "Timeout after %ss: %s %s", request.timeout_seconds, request.method, request.url
            )
            raise RequestTimeoutError(request.timeout_seconds) from exc
        except requests.RequestException as exc:
            raise NetworkError(str(exc) or type(exc).__name__) from exc
        return HttpResponse(status_code=response.status_code, text=response.text)

    def close(self) -> None:
        self.session.close()
