"""Cache, decode and failure-reporting wrappers for async fetches.

The client composes them as ``resilient(decoded(cached(fetch)))``: the cache stores raw
payloads, decoding happens once per call, and a retry goes back through the cache.

Usage example:
    from jira_gateway.application.wrappers import LoggingNotifier, cached, resilient

    get_issue = cached(cache, CacheKind.ISSUES, lambda key: key, api.get_issue)
    get_issue = resilient(get_issue, classifier=classifier, notifier=LoggingNotifier())
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import override

from ..domain.error_classifier import Classification, ErrorClassifier
from ..exceptions import ConfigurationError, DecodeError, GatewayError
from ..infrastructure.cache import CacheService
from ..io_validation import IncomingDataError
from ..observability import get_logger
from ..protocols import FailureNotifier
from ..types import CacheKind

logger = get_logger("jira_gateway.application.wrappers")


@dataclass(frozen=True)
class FailureReport[T]:
    """A categorised failure handed to the host, with an optional retry hook."""

    error: GatewayError
    classification: Classification
    friendly_message: str
    retry: Callable[[], Awaitable[T]] | None = None

    @property
    def retryable(self) -> bool:
        return self.retry is not None and self.classification.retryable


class LoggingNotifier(FailureNotifier):
    """Writes friendly failure messages to the gateway log."""

    @override
    def notify(self, report: FailureReport[object]) -> None:
        logger.error(
            "%s [%s]%s",
            report.friendly_message,
            report.classification.category.value,
            " (retry available)" if report.retry is not None else "",
        )


def cached[**P](
    cache: CacheService,
    namespace: CacheKind,
    key_fn: Callable[P, str],
    fetch: Callable[P, Awaitable[object | None]],
) -> Callable[P, Awaitable[object | None]]:
    """Serve ``fetch`` results from a cache namespace.

    A hit short-circuits the fetch. On a miss the fetch result is stored unless it is
    ``None``; errors propagate and are never cached.
    """

    @functools.wraps(fetch)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> object | None:
        key = key_fn(*args, **kwargs)
        value, found = cache.get(namespace, key)
        if found:
            return value
        result = await fetch(*args, **kwargs)
        if result is not None:
            cache.set(namespace, key, result)
        return result

    return wrapper


def decode_payload[T](decoder: Callable[[object], T], payload: object) -> T:
    try:
        return decoder(payload)
    except IncomingDataError as exc:
        raise DecodeError(str(exc)) from exc


def decoded[**P, T](
    fetch: Callable[P, Awaitable[object | None]],
    decoder: Callable[[object], T],
) -> Callable[P, Awaitable[T]]:
    """Decode a raw payload into a domain value; shape errors become DecodeError."""

    @functools.wraps(fetch)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        return decode_payload(decoder, await fetch(*args, **kwargs))

    return wrapper


def resilient[**P, T](
    fetch: Callable[P, Awaitable[T]],
    *,
    classifier: ErrorClassifier,
    notifier: FailureNotifier,
) -> Callable[P, Awaitable[T]]:
    """Report gateway failures to ``notifier`` and re-raise them.

    The report carries a zero-argument ``retry`` that re-invokes this wrapper with the
    original arguments. Configuration errors get no retry hook.
    """

    @functools.wraps(fetch)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return await fetch(*args, **kwargs)
        except GatewayError as error:
            raw_message = str(error)
            retry: Callable[[], Awaitable[T]] | None = None
            if not isinstance(error, ConfigurationError):
                retry = functools.partial(wrapper, *args, **kwargs)
            notifier.notify(
                FailureReport(
                    error=error,
                    classification=classifier.classify(raw_message),
                    friendly_message=classifier.format_friendly(raw_message),
                    retry=retry,
                )
            )
            raise

    return wrapper
