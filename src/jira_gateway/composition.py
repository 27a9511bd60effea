"""Composition root for wiring gateway services."""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path

from .application.client import JiraClient
from .application.jira_api import JiraApi
from .application.transitions import TransitionWorkflow
from .application.wrappers import LoggingNotifier
from .cli import CliDependencies, create_app
from .config import GatewayConfig
from .credentials import credential_context_from_config
from .domain.error_classifier import ErrorClassifier
from .infrastructure.background import BackgroundLoop
from .infrastructure.cache import CacheService, CacheSettings
from .infrastructure.dispatcher import Dispatcher
from .infrastructure.http import RequestsTransport
from .infrastructure.snapshots import JsonSnapshotStore, SnapshotScheduler
from .protocols import FailureNotifier, HttpTransport


def build_cache(config: GatewayConfig) -> CacheService:
    """Build the cache service and restore any live entries from the last snapshot."""
    cache = CacheService(
        CacheSettings(
            enabled=config.cache_enabled,
            ttl_seconds=config.cache_ttl_seconds,
            max_size=config.cache_max_size,
        ),
        store=JsonSnapshotStore(Path(config.cache_dir).expanduser()),
    )
    cache.load_snapshot()
    return cache


def build_jira_client(
    *,
    config: GatewayConfig,
    cache: CacheService,
    transport: HttpTransport | None = None,
    notifier: FailureNotifier | None = None,
    rng: random.Random | None = None,
    enhanced_error_handling: bool | None = None,
) -> JiraClient:
    """Wire a JiraClient from configuration.

    ``enhanced_error_handling`` overrides the configured value when given.

    Raises:
        ConfigurationError: When the base URL or credentials are missing or invalid.
    """
    dispatcher = Dispatcher(
        context=credential_context_from_config(config),
        transport=transport or RequestsTransport(),
        timeout_seconds=config.request_timeout_seconds,
    )
    return JiraClient(
        api=JiraApi(dispatcher),
        cache=cache,
        classifier=ErrorClassifier(rng),
        notifier=notifier or LoggingNotifier(),
        enhanced_error_handling=config.enhanced_error_handling
        if enhanced_error_handling is None
        else enhanced_error_handling,
    )


@dataclass(frozen=True)
class Gateway:
    """Everything a long-running host needs, built from one config."""

    config: GatewayConfig
    cache: CacheService
    client: JiraClient
    transitions: TransitionWorkflow
    scheduler: SnapshotScheduler

    def start(self, bridge: BackgroundLoop) -> None:
        """Start the periodic snapshot timer on the bridge's event loop."""
        bridge.run(self._start_scheduler())

    async def _start_scheduler(self) -> None:
        self.scheduler.start()

    def shutdown(self, bridge: BackgroundLoop) -> None:
        """Write a final snapshot, then stop the bridge."""
        bridge.run(self.scheduler.stop())
        bridge.close()


def build_gateway(
    config: GatewayConfig,
    *,
    transport: HttpTransport | None = None,
    notifier: FailureNotifier | None = None,
) -> Gateway:
    """Build the full service graph; reconfiguration means calling this again."""
    cache = build_cache(config)
    client = build_jira_client(
        config=config, cache=cache, transport=transport, notifier=notifier
    )
    return Gateway(
        config=config,
        cache=cache,
        client=client,
        transitions=TransitionWorkflow(client),
        scheduler=SnapshotScheduler(cache, interval_seconds=config.snapshot_interval_seconds),
    )


def build_cli_dependencies(*, config: GatewayConfig, build_client: bool) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    Args:
        config: Gateway configuration.
        build_client: Whether the command needs a Jira client (and thus credentials).
    """
    cache = build_cache(config)
    client: JiraClient | None = None
    if build_client:
        # CLI commands format failures themselves; the client reports nothing.
        client = build_jira_client(config=config, cache=cache, enhanced_error_handling=False)
    return CliDependencies(cache=cache, client=client)


app = create_app(build_cli_dependencies)
