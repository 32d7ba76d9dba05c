"""Renderers for lookup results: rich text, JSON and quiet output."""

from __future__ import annotations

import dataclasses
import json
from typing import Callable, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from latest.core.models import LookupResult, Status
from latest.core.project import ProjectContext

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

STATUS_STYLES = {
    Status.UP_TO_DATE: "green",
    Status.OUTDATED: "yellow",
    Status.NOT_INSTALLED: "red",
    Status.NOT_FOUND: "red",
}


def _in_project(manifest: str, inside: str, outside: str) -> Callable[[str, ProjectContext], str]:
    return lambda package, ctx: f"{inside if ctx.has(manifest) else outside} {package}"


def _always(command: str) -> Callable[[str, ProjectContext], str]:
    return lambda package, ctx: f"{command} {package}"


INSTALL_COMMANDS: dict[str, Callable[[str, ProjectContext], str]] = {
    "brew": _always("brew install"),
    "apt": _always("sudo apt install"),
    "npm": _in_project("package.json", "npm install", "npm install -g"),
    "pip": _in_project("uv.lock", "uv add", "pip install"),
    "cargo": _in_project("Cargo.toml", "cargo add", "cargo install"),
    "go": _in_project("go.mod", "go get", "go install"),
    "gem": _always("gem install"),
    "composer": _always("composer require"),
    "nuget": _always("dotnet add package"),
    "conda": _always("conda install"),
    "docker": _always("docker pull"),
}


def install_command(source: str, package: str, context: ProjectContext) -> str | None:
    """Suggest how to install ``package`` from ``source``, if we know how."""
    template = INSTALL_COMMANDS.get(source)
    return template(package, context) if template else None


def with_install_commands(result: LookupResult, context: ProjectContext) -> LookupResult:
    """Attach install suggestions to a not-installed result."""
    if result.status is not Status.NOT_INSTALLED:
        return result
    commands = (install_command(v.source, result.package, context) for v in result.available)
    return dataclasses.replace(result, install_commands=tuple(c for c in commands if c))


def format_result(result: LookupResult, show_name: bool) -> str:
    """One-line human summary of a result.

    Args:
        result: The lookup result.
        show_name: Prefix the line with the package name.

    Returns:
        The summary line, without markup.
    """
    prefix = f"{result.package}: " if show_name else ""
    current = result.installed or result.latest

    if result.status is Status.UP_TO_DATE and current is not None:
        return f"{prefix}{current.version}  ✓"
    if result.status is Status.OUTDATED and result.installed and result.latest:
        return f"{prefix}{result.installed.version} → {result.latest.version} available"
    if result.status is Status.NOT_INSTALLED:
        avail = ", ".join(f"{a.version} in {a.source}" for a in result.available)
        return f"{prefix}not installed (available: {avail})"
    return f"{prefix}not found"


def available_table(result: LookupResult) -> Table:
    """Create a Rich Table of every provider that knows the package.

    Args:
        result: An all-sources lookup result.

    Returns:
        A Rich Table with one row per provider.
    """
    table = Table(title=result.package, box=box.MINIMAL_HEAVY_HEAD, title_justify="left")
    table.add_column("Source", style="bold")
    table.add_column("Version")
    table.add_column("Installed", justify="center")

    for v in result.available:
        table.add_row(v.source, v.version, "✓" if v.local else "")

    return table


def render_human(results: Sequence[LookupResult], all_sources: bool = False) -> None:
    """Print results for people; missing packages go to stderr."""
    multi = len(results) > 1

    for r in results:
        if all_sources and r.available:
            console.print(available_table(r))
            continue

        line = format_result(r, show_name=multi)
        if r.status in (Status.NOT_FOUND, Status.NOT_INSTALLED):
            err_console.print(line, style=STATUS_STYLES[r.status], markup=False)
            for command in r.install_commands:
                err_console.print(f"  {command}", style="dim", markup=False)
        else:
            console.print(line, style=STATUS_STYLES[r.status], markup=False)


def to_json(results: Sequence[LookupResult]) -> str:
    """Serialise results: one object for one package, else an array."""
    payload = results[0].to_dict() if len(results) == 1 else [r.to_dict() for r in results]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def quiet_lines(results: Sequence[LookupResult]) -> tuple[list[str], list[str]]:
    """Version-only output as (stdout lines, stderr lines)."""
    out: list[str] = []
    err: list[str] = []
    multi = len(results) > 1

    for r in results:
        info = r.installed or r.latest or (r.available[0] if r.available else None)
        if info is None:
            err.append(f"not found: {r.package}")
        elif multi:
            out.append(f"{r.package}: {info.version}")
        else:
            out.append(info.version)

    return out, err
