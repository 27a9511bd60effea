"""Tests for composition root wiring."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from jira_gateway import composition
from jira_gateway.application.wrappers import LoggingNotifier
from jira_gateway.config import GatewayConfig
from jira_gateway.exceptions import MissingBaseUrlError, MissingBasicCredentialsError
from jira_gateway.infrastructure.background import BackgroundLoop
from jira_gateway.infrastructure.http import RequestsTransport
from jira_gateway.infrastructure.snapshots import JsonSnapshotStore
from jira_gateway.types import CacheKind
from tests.fakes import FakeTransport, RecordingNotifier, json_response
from tests.support.payloads import user_payload


def _config(tmp_path: Path, **overrides: object) -> GatewayConfig:
    values: dict[str, object] = {
        "jira_url": "https://acme.atlassian.net",
        "jira_email": "dev@acme.io",
        "jira_api_token": "token",
        "cache_dir": str(tmp_path / "cache"),
    }
    values.update(overrides)
    return GatewayConfig(**values)  # type: ignore[arg-type]


def test_build_cache_uses_config_settings(tmp_path: Path) -> None:
    cache = composition.build_cache(_config(tmp_path, cache_ttl_seconds=30, cache_max_size=9))

    assert cache.settings.ttl_seconds == 30
    assert cache.settings.max_size == 9
    assert isinstance(cache.store, JsonSnapshotStore)
    assert cache.store.cache_dir == tmp_path / "cache"


def test_build_cache_restores_previous_snapshot(tmp_path: Path) -> None:
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    (cache_dir / "issues.json").write_text(
        json.dumps(
            {
                "PROJ-1": {
                    "value": {"key": "PROJ-1"},
                    "created_at": 1.0,
                    "last_accessed_at": 1.0,
                    "expires_at": 4_102_444_800.0,
                }
            }
        ),
        encoding="utf-8",
    )

    cache = composition.build_cache(_config(tmp_path))

    assert cache.get(CacheKind.ISSUES, "PROJ-1") == ({"key": "PROJ-1"}, True)


def test_build_jira_client_defaults(tmp_path: Path) -> None:
    config = _config(tmp_path, request_timeout_seconds=4.0, enhanced_error_handling=False)
    cache = composition.build_cache(config)

    client = composition.build_jira_client(config=config, cache=cache)

    assert isinstance(client.api.dispatcher.transport, RequestsTransport)
    assert isinstance(client.notifier, LoggingNotifier)
    assert client.api.dispatcher.timeout_seconds == 4.0
    assert client.enhanced_error_handling is False
    assert client.cache is cache


def test_build_jira_client_rejects_missing_url(tmp_path: Path) -> None:
    config = _config(tmp_path, jira_url="")

    with pytest.raises(MissingBaseUrlError):
        composition.build_jira_client(config=config, cache=composition.build_cache(config))


def test_build_cli_dependencies_client_does_not_report_failures(tmp_path: Path) -> None:
    config = _config(tmp_path, enhanced_error_handling=True)

    deps = composition.build_cli_dependencies(config=config, build_client=True)
    host_client = composition.build_jira_client(config=config, cache=deps.cache)

    assert deps.client is not None
    assert deps.client.enhanced_error_handling is False
    assert host_client.enhanced_error_handling is True


def test_build_cli_dependencies_skips_client_when_not_needed(tmp_path: Path) -> None:
    config = _config(tmp_path, jira_email="")

    deps = composition.build_cli_dependencies(config=config, build_client=False)

    assert deps.client is None
    with pytest.raises(MissingBasicCredentialsError):
        composition.build_cli_dependencies(config=config, build_client=True)


def test_gateway_runs_on_background_loop(tmp_path: Path) -> None:
    transport = FakeTransport()
    transport.queue(json_response(200, user_payload()))
    notifier = RecordingNotifier()
    gateway = composition.build_gateway(
        _config(tmp_path, snapshot_interval_seconds=60),
        transport=transport,
        notifier=notifier,
    )
    bridge = BackgroundLoop()

    gateway.start(bridge)
    try:
        user = bridge.run(gateway.client.get_current_user(), timeout=5)
        assert gateway.scheduler.running is True
    finally:
        gateway.shutdown(bridge)

    assert user.display_name == "Ada Lovelace"
    assert gateway.client.notifier is notifier
    assert gateway.transitions.client is gateway.client
    assert (tmp_path / "cache" / "users.json").exists()
    assert bridge.running is False
