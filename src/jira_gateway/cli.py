"""Diagnostic CLI for the Jira gateway.

Commands:
- whoami: Test the connection and show the authenticated user
- issue: Show one issue
- search: Run a JQL search
- transition: Move an issue through its workflow (optionally reassigning it)
- cache-stats: Show cache hit rates per namespace
- cache-clear: Empty the cache and its snapshot files
- troubleshoot: Print common fixes
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Coroutine
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Protocol

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .application.client import JiraClient
from .application.transitions import TransitionRequest, TransitionWorkflow
from .config import GatewayConfig
from .config_file import load_gateway_config_file
from .domain.error_classifier import TROUBLESHOOTING_GUIDE, ErrorClassifier
from .domain.issues import Person
from .exceptions import ConfigurationError, GatewayError
from .infrastructure.cache import CacheService, CacheStats


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: GatewayConfig, build_client: bool) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    cache: CacheService
    client: JiraClient | None


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: GatewayConfig
    deps_builder: DependenciesBuilder
    classifier: ErrorClassifier

    def build_dependencies(self, *, build_client: bool) -> CliDependencies:
        return self.deps_builder(config=self.config, build_client=build_client)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the jira-gateway entry point.")


class ClientNotConfiguredError(ConfigurationError):
    """Raised when a command needs a client but the builder did not provide one."""

    def __init__(self) -> None:
        super().__init__("Jira client is not configured. Set JIRA_URL and credentials.")


_console = Console()


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _fail(classifier: ErrorClassifier, error: GatewayError) -> typer.Exit:
    rprint(f"[red]{escape(classifier.format_friendly(str(error)))}[/red]")
    return typer.Exit(code=1)


def _run[T](state: CliContext, deps: CliDependencies, coro: Coroutine[object, object, T]) -> T:
    """Run one command coroutine, then persist the cache."""
    try:
        return asyncio.run(coro)
    except GatewayError as error:
        raise _fail(state.classifier, error) from error
    finally:
        deps.cache.save_snapshot()


def _require_client(state: CliContext) -> tuple[CliDependencies, JiraClient]:
    try:
        deps = state.build_dependencies(build_client=True)
        if deps.client is None:
            raise ClientNotConfiguredError()
    except ConfigurationError as error:
        raise _fail(state.classifier, error) from error
    return deps, deps.client


def _version_callback(value: bool) -> None:
    if value:
        rprint(f"jira-gateway {__version__}")
        raise typer.Exit()


def _render_stats(stats: CacheStats) -> Table:
    table = Table(title="Jira Cache Statistics")
    table.add_column("Cache")
    table.add_column("Size", justify="right")
    table.add_column("Hits", justify="right")
    table.add_column("Misses", justify="right")
    table.add_column("Hit Rate", justify="right")
    for ns in stats.namespaces:
        table.add_row(
            ns.name, str(ns.size), str(ns.hits), str(ns.misses), f"{ns.hit_rate:.1f}%"
        )
    return table


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Jira gateway diagnostics: connection, issues, search, transitions, cache",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        config_path: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="TOML config file with non-secret overrides",
            ),
        ] = None,
        no_cache: Annotated[
            bool,
            typer.Option("--no-cache", help="Bypass the response cache"),
        ] = False,
        version: Annotated[
            bool,
            typer.Option(
                "--version",
                callback=_version_callback,
                is_eager=True,
                help="Show the package version and exit",
            ),
        ] = False,
    ) -> None:
        """Initialise CLI context."""
        _ = version
        classifier = ErrorClassifier(random.Random())
        try:
            config = GatewayConfig.from_env()
            if config_path is not None:
                config = config.with_file_overrides(load_gateway_config_file(config_path))
        except ConfigurationError as error:
            raise _fail(classifier, error) from error
        if no_cache:
            config = config.with_overrides(cache_enabled=False)
        ctx.obj = CliContext(config=config, deps_builder=deps_builder, classifier=classifier)

    @app.command()
    def whoami(ctx: typer.Context) -> None:
        """Test the connection and show the authenticated user."""
        state = _get_context(ctx)
        deps, client = _require_client(state)
        user: Person = _run(state, deps, client.get_current_user())
        rprint(f"[green]✓ Connected as[/green] {escape(user.display_name)}")
        rprint(f"  Account: {user.account_id}")
        if user.email_address:
            rprint(f"  Email: {user.email_address}")

    @app.command()
    def issue(
        ctx: typer.Context,
        issue_key: Annotated[str, typer.Argument(help="Issue key, e.g. PROJ-123")],
    ) -> None:
        """Show one issue."""
        state = _get_context(ctx)
        deps, client = _require_client(state)
        found = _run(state, deps, client.get_issue(issue_key))
        rprint(f"[bold]{found.key}[/bold] {escape(found.summary)}")
        rprint(f"  Status: {found.status}")
        rprint(f"  Type: {found.issue_type}")
        rprint(f"  Priority: {found.priority or '-'}")
        rprint(f"  Assignee: {escape(found.assignee.display_name)}")
        rprint(f"  URL: {client.browse_url(found.key)}")
        if found.description:
            rprint("")
            rprint(escape(found.description))

    @app.command()
    def search(
        ctx: typer.Context,
        jql: Annotated[str, typer.Argument(help="JQL query")],
        max_results: Annotated[
            int,
            typer.Option("--max-results", "-n", min=1, help="Maximum number of issues"),
        ] = 50,
    ) -> None:
        """Run a JQL search."""
        state = _get_context(ctx)
        deps, client = _require_client(state)
        results = _run(state, deps, client.search_issues(jql, max_results))
        table = Table(title=f"{results.total} issues")
        table.add_column("Key")
        table.add_column("Status")
        table.add_column("Assignee")
        table.add_column("Summary")
        for found in results.issues:
            table.add_row(found.key, found.status, found.assignee.display_name, found.summary)
        _console.print(table)

    @app.command()
    def transition(
        ctx: typer.Context,
        issue_key: Annotated[str, typer.Argument(help="Issue key, e.g. PROJ-123")],
        target: Annotated[str, typer.Argument(help="Transition name, e.g. 'In Progress'")],
        comment: Annotated[
            str | None,
            typer.Option("--comment", help="Comment to add with the transition"),
        ] = None,
        resolution: Annotated[
            str | None,
            typer.Option("--resolution", help="Resolution name, e.g. Done"),
        ] = None,
        assignee: Annotated[
            str | None,
            typer.Option(
                "--assignee",
                "-a",
                help="Reassign afterwards: 'me', 'none', 'default' or a user search query",
            ),
        ] = None,
    ) -> None:
        """Move an issue through its workflow."""
        state = _get_context(ctx)
        deps, client = _require_client(state)
        request = TransitionRequest(
            issue_key=issue_key,
            target_name=target,
            comment=comment,
            resolution=resolution,
            assignee=assignee,
        )
        run = _run(state, deps, TransitionWorkflow(client).run(request))
        if run.error is not None:
            raise _fail(state.classifier, run.error)
        if not run.succeeded:
            rprint(f"[yellow]{escape(run.describe())}[/yellow]")
            raise typer.Exit(code=1)
        rprint(f"[green]✓ {escape(run.describe())}[/green]")
        if run.cascade_error is not None:
            raise typer.Exit(code=1)

    @app.command(name="cache-stats")
    def cache_stats(ctx: typer.Context) -> None:
        """Show cache hit rates per namespace."""
        state = _get_context(ctx)
        deps = state.build_dependencies(build_client=False)
        stats = deps.cache.stats()
        rprint(f"Cache Enabled: {'Yes' if stats.settings.enabled else 'No'}")
        rprint(f"TTL: {stats.settings.ttl_seconds:g} seconds")
        rprint(f"Max Size: {stats.settings.max_size} entries per cache")
        _console.print(_render_stats(stats))

    @app.command(name="cache-clear")
    def cache_clear(
        ctx: typer.Context,
        namespace: Annotated[
            str | None,
            typer.Option("--namespace", "-n", help="Clear only this namespace"),
        ] = None,
    ) -> None:
        """Empty the cache and its snapshot files."""
        state = _get_context(ctx)
        deps = state.build_dependencies(build_client=False)
        try:
            asyncio.run(deps.cache.clear(namespace))
        except GatewayError as error:
            raise _fail(state.classifier, error) from error
        rprint(f"[green]✓ Cleared {namespace or 'all'} cache[/green]")

    @app.command()
    def troubleshoot() -> None:
        """Print common fixes."""
        rprint(TROUBLESHOOTING_GUIDE)

    _ = (main, whoami, issue, search, transition, cache_stats, cache_clear, troubleshoot)

    return app
