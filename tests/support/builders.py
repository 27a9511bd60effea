"""Builders for wiring gateway services against fakes."""

from __future__ import annotations

import random

from jira_gateway.application.client import JiraClient
from jira_gateway.application.jira_api import JiraApi
from jira_gateway.credentials import CredentialContext, build_credential_context
from jira_gateway.domain.error_classifier import ErrorClassifier
from jira_gateway.infrastructure.cache import CacheService, CacheSettings
from jira_gateway.infrastructure.dispatcher import Dispatcher
from jira_gateway.protocols import FailureNotifier, SnapshotStore
from tests.fakes import FakeClock, FakeTransport, RecordingNotifier

CLOUD_URL = "https://acme.atlassian.net"
SELF_HOSTED_URL = "https://jira.acme.internal"


def cloud_context() -> CredentialContext:
    return build_credential_context(CLOUD_URL, "dev@acme.io", "token-123")


def self_hosted_context() -> CredentialContext:
    return build_credential_context(SELF_HOSTED_URL, "", "pat-456", "bearer")


def build_cache(
    *,
    enabled: bool = True,
    ttl_seconds: float = 300.0,
    max_size: int = 100,
    clock: FakeClock | None = None,
    store: SnapshotStore | None = None,
) -> CacheService:
    return CacheService(
        CacheSettings(enabled=enabled, ttl_seconds=ttl_seconds, max_size=max_size),
        store=store,
        clock=clock or FakeClock(),
    )


def build_api(transport: FakeTransport, *, cloud: bool = True) -> JiraApi:
    context = cloud_context() if cloud else self_hosted_context()
    return JiraApi(Dispatcher(context=context, transport=transport))


def build_test_client(
    transport: FakeTransport,
    *,
    cache: CacheService | None = None,
    notifier: FailureNotifier | None = None,
    cloud: bool = True,
    enhanced_error_handling: bool = True,
) -> JiraClient:
    return JiraClient(
        api=build_api(transport, cloud=cloud),
        cache=cache or build_cache(),
        classifier=ErrorClassifier(random.Random(0)),
        notifier=notifier or RecordingNotifier(),
        enhanced_error_handling=enhanced_error_handling,
    )
