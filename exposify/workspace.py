"""npm/yarn workspace discovery and project name resolution."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .errors import ConfigurationError
from .logging import get_logger

logger = get_logger("workspace")


@dataclass
class WorkspaceProject:
    """A package inside the workspace and the directory its sources live in."""

    name: str
    path: str
    src_path: Path


def find_workspace_root(start: Path) -> Optional[Path]:
    """Walk upwards from ``start`` to the first package.json declaring workspaces."""
    current = start.expanduser().resolve()
    for directory in (current, *current.parents):
        manifest = _read_package_json(directory / "package.json")
        if manifest is not None and manifest.get("workspaces"):
            return directory
    return None


def load_workspace_projects(root: Path) -> Dict[str, WorkspaceProject]:
    """Expand the root's workspace globs into named projects."""
    root_manifest = _read_package_json(root / "package.json")
    if root_manifest is None:
        raise ConfigurationError(f"No readable package.json found at {root}")

    patterns = _workspace_patterns(root_manifest.get("workspaces"))
    if not patterns:
        raise ConfigurationError(f"No workspaces defined in {root / 'package.json'}")

    projects: Dict[str, WorkspaceProject] = {}
    for pattern in patterns:
        if pattern.startswith("!"):
            continue
        for match in sorted(root.glob(pattern.rstrip("/"))):
            if not match.is_dir():
                continue
            manifest = _read_package_json(match / "package.json")
            if manifest is None:
                continue
            name = manifest.get("name")
            if not isinstance(name, str) or not name or name in projects:
                continue
            src_dir = match / "src"
            projects[name] = WorkspaceProject(
                name=name,
                path=match.relative_to(root).as_posix(),
                src_path=src_dir if src_dir.is_dir() else match,
            )
    return projects


def resolve_project_names(
    names: Sequence[str], projects: Dict[str, WorkspaceProject]
) -> List[WorkspaceProject]:
    """Resolve each name by exact name, short name, then path suffix.

    Names that match nothing are warned about and dropped; resolving nothing
    at all is a configuration error.
    """
    resolved: List[WorkspaceProject] = []
    for name in names:
        project = projects.get(name)
        if project is None:
            project = next(
                (p for full, p in projects.items() if full.rsplit("/", 1)[-1] == name), None
            )
        if project is None:
            project = next(
                (p for p in projects.values() if p.path == name or p.path.endswith(f"/{name}")),
                None,
            )
        if project is None:
            logger.warning("Could not resolve project '%s'", name)
            continue
        if project not in resolved:
            resolved.append(project)

    if names and not resolved:
        raise ConfigurationError(
            f"Could not resolve any projects from: {', '.join(names)}", choices=list(projects)
        )
    return resolved


def _workspace_patterns(value: Any) -> List[str]:
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    packages = value.get("packages") if isinstance(value, dict) else None
    if isinstance(packages, list):
        return [item for item in packages if isinstance(item, str)]
    return []


def _read_package_json(path: Path) -> Optional[Dict[str, Any]]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.debug("Ignoring unreadable %s: %s", path, exc)
        return None
    return payload if isinstance(payload, dict) else None


__all__ = [
    "WorkspaceProject",
    "find_workspace_root",
    "load_workspace_projects",
    "resolve_project_names",
]
