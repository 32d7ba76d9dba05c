"""CLI entry point for the latest command."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import typer

from latest.analysis.status import exit_code
from latest.cli.renderers import (
    err_console,
    quiet_lines,
    render_human,
    to_json,
    with_install_commands,
)
from latest.core.cache import ResponseCache
from latest.core.config import Settings, load_settings
from latest.core.engine import LookupEngine
from latest.core.errors import (
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    LatestError,
    SystemError,
    UserError,
    format_error_message,
)
from latest.core.http import build_client
from latest.core.logging import configure_logging, get_logger
from latest.core.models import LookupMode, LookupRequest, LookupResult
from latest.core.project import ProjectScan, detect_context, scan
from latest.providers.registry import ProviderRegistry, build_registry

log = get_logger(__name__)

app = typer.Typer(
    help="Find the latest version of any command, package, or library.",
    add_completion=False,
)


def handle_error(error: Exception) -> int:
    """Handle errors and return appropriate exit codes.

    Args:
        error: The exception to handle.

    Returns:
        An integer exit code.
    """
    if isinstance(error, LatestError):
        log.error(
            "cli_error",
            error_type=type(error).__name__,
            message=error.message,
            context=error.context,
        )
        err_console.print(format_error_message(error), style="bold red", markup=False)

        if isinstance(error, SystemError):
            return EXIT_SYSTEM_ERROR
        return EXIT_USER_ERROR

    log.error(
        "unexpected_error",
        error=str(error),
        exc_info=True
    )
    err_console.print(f"⚠️ Unexpected error occurred: {error}", style="bold red", markup=False)
    return EXIT_SYSTEM_ERROR


def parse_package_arg(arg: str, registry: ProviderRegistry) -> tuple[str | None, str]:
    """Split an optional ``<source>:`` prefix off a package argument.

    The prefix only counts when it names a registered provider, so
    ``npm:express`` targets npm while ``org.slf4j:slf4j-api`` stays whole.
    """
    prefix, sep, rest = arg.partition(":")
    if sep and prefix in registry:
        return prefix, rest
    return None, arg


def build_requests(
    packages: Sequence[str],
    registry: ProviderRegistry,
    source: str | None = None,
    all_sources: bool = False,
    project: ProjectScan | None = None,
) -> list[LookupRequest]:
    """Turn command-line arguments into lookup requests.

    Raises:
        UnknownSourceError: If ``source`` or a manifest hint is not registered.
    """
    if source is not None:
        registry.provider_by_identity(source)
    if project is not None:
        registry.provider_by_identity(project.source)

    requests = []
    for arg in packages:
        prefix, name = parse_package_arg(arg, registry)
        explicit = prefix or source
        if explicit:
            requests.append(LookupRequest(name, LookupMode.EXPLICIT, source=explicit))
        elif all_sources:
            requests.append(LookupRequest(name, LookupMode.ALL))
        else:
            requests.append(LookupRequest(name, hint=project.source if project else None))
    return requests


async def lookup(
    packages: Sequence[str],
    settings: Settings,
    source: str | None = None,
    all_sources: bool = False,
    project: ProjectScan | None = None,
    use_cache: bool = True,
    root: Path | None = None,
) -> list[LookupResult]:
    """Resolve every package and attach install suggestions.

    Returns:
        Results in argument order.
    """
    root = root or Path.cwd()

    async with build_client(settings.timeout) as client:
        registry = build_registry(
            client=client,
            timeout=settings.timeout,
            precedence=settings.precedence,
            root=root,
        )
        requests = build_requests(packages, registry, source, all_sources, project)
        cache = ResponseCache(settings.cache_dir, ttl=settings.cache_ttl, enabled=use_cache)
        engine = LookupEngine(registry, cache, concurrency=settings.concurrency)
        results = await engine.resolve_many(requests)

    context = detect_context(root)
    return [with_install_commands(r, context) for r in results]


@app.command()
def main(
    packages: Optional[List[str]] = typer.Argument(
        None, help="Packages to look up (if empty, scans project files)"
    ),
    source: Optional[str] = typer.Option(
        None, "--source", "-s", help="Only check a specific source (path, brew, npm, pip, cargo, ...)"
    ),
    all_sources: bool = typer.Option(
        False, "--all", "-a", help="Show all sources where the package is found"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show version number"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass cache (always fetch fresh data)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to stderr"),
) -> None:
    """Look up installed and latest versions.

    Exit code: 0 when everything is up to date, 1 when a package is not
    installed or not found, 2 when a package is outdated.
    """
    configure_logging(level="DEBUG" if verbose else "INFO", enable_console=verbose, force=True)

    try:
        if all_sources and source:
            raise UserError("--all and --source cannot be combined")

        root = Path.cwd()
        project = None
        names = list(packages or [])
        if not names:
            project = scan(root)
            if project is None:
                raise UserError("No project file found. Usage: latest <package> [...]")
            if not json_output and not quiet:
                err_console.print(f"Scanning {project.file}...", style="dim", markup=False)
            names = list(project.packages)

        settings = load_settings()
        results = asyncio.run(lookup(
            names,
            settings,
            source=source,
            all_sources=all_sources,
            project=project,
            use_cache=not no_cache,
            root=root,
        ))
    except Exception as e:
        sys.exit(handle_error(e))

    if json_output:
        typer.echo(to_json(results))
    elif quiet:
        out, err = quiet_lines(results)
        for line in out:
            typer.echo(line)
        for line in err:
            typer.echo(line, err=True)
    else:
        render_human(results, all_sources=all_sources)

    sys.exit(exit_code(results))


if __name__ == "__main__":
    app()
