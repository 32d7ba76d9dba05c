"""Project manifest scanning."""

from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from latest.core.logging import get_logger

log = get_logger(__name__)

_REQUIREMENT_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


@dataclass(frozen=True)
class ProjectScan:
    """Packages declared by the first matching manifest."""

    file: str
    source: str
    packages: tuple[str, ...]


@dataclass(frozen=True)
class ProjectContext:
    """Manifest files present in the working directory."""

    manifests: frozenset[str] = frozenset()

    def has(self, manifest: str) -> bool:
        return manifest in self.manifests


def _cargo(text: str) -> list[str]:
    doc = tomllib.loads(text)
    names: list[str] = []
    for section in ("dependencies", "dev-dependencies", "build-dependencies"):
        deps = doc.get(section)
        if isinstance(deps, dict):
            names.extend(deps)
    return names


def _npm(text: str) -> list[str]:
    doc = json.loads(text)
    names: list[str] = []
    for section in ("dependencies", "devDependencies"):
        deps = doc.get(section)
        if isinstance(deps, dict):
            names.extend(deps)
    return names


def _uv_lock(text: str) -> list[str]:
    doc = tomllib.loads(text)
    return [str(p["name"]) for p in doc.get("package", []) if isinstance(p, dict) and p.get("name")]


def _pyproject(text: str) -> list[str]:
    doc = tomllib.loads(text)
    deps = doc.get("project", {}).get("dependencies", [])
    names = []
    for requirement in deps:
        match = _REQUIREMENT_NAME.match(requirement.strip()) if isinstance(requirement, str) else None
        if match:
            names.append(match.group(0))
    return names


def _go_mod(text: str) -> list[str]:
    names: list[str] = []
    in_require = False
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("require ("):
            in_require = True
        elif line == ")":
            in_require = False
        elif line.startswith("require "):
            parts = line.removeprefix("require ").split()
            if parts:
                names.append(parts[0])
        elif in_require and line and not line.startswith("//"):
            names.append(line.split()[0])
    return names


def _composer(text: str) -> list[str]:
    doc = json.loads(text)
    names: list[str] = []
    for section in ("require", "require-dev"):
        deps = doc.get(section)
        if isinstance(deps, dict):
            names.extend(n for n in deps if n != "php" and not n.startswith("ext-"))
    return names


# Priority order: the first manifest yielding packages wins.
MANIFESTS: list[tuple[str, str, Callable[[str], list[str]]]] = [
    ("Cargo.toml", "cargo", _cargo),
    ("package.json", "npm", _npm),
    ("uv.lock", "pip", _uv_lock),
    ("pyproject.toml", "pip", _pyproject),
    ("go.mod", "go", _go_mod),
    ("composer.json", "composer", _composer),
]

CONTEXT_FILES = ("uv.lock", "package.json", "Cargo.toml", "go.mod", "composer.json")


def scan(root: Path | None = None) -> ProjectScan | None:
    """Find the first manifest in ``root`` that declares packages.

    Args:
        root: Directory to scan; defaults to the current directory.

    Returns:
        The scan result, or None if no manifest matched.
    """
    root = root or Path.cwd()
    for file, source, parse in MANIFESTS:
        path = root / file
        try:
            text = path.read_text()
        except FileNotFoundError:
            continue
        except (OSError, UnicodeDecodeError) as e:
            log.warning("manifest_unreadable", path=str(path), error=str(e))
            continue

        try:
            packages = parse(text)
        except (ValueError, TypeError, AttributeError) as e:
            log.warning("manifest_malformed", path=str(path), error=str(e))
            continue

        if packages:
            unique = tuple(dict.fromkeys(packages))
            log.info("manifest_scanned", file=file, source=source, count=len(unique))
            return ProjectScan(file=file, source=source, packages=unique)

    return None


def detect_context(root: Path | None = None) -> ProjectContext:
    root = root or Path.cwd()
    return ProjectContext(frozenset(f for f in CONTEXT_FILES if (root / f).exists()))
