"""Configuration loading for exposify (.exposify.yml) and generator options."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence

import yaml

from .errors import ConfigurationError

CONFIG_FILENAME = ".exposify.yml"
DEFAULT_ENDPOINT = "/rpc/v1"
DEFAULT_MARKER = "Expose"


@dataclass
class GeneratorOptions:
    """Everything a single generation run needs once sources are resolved."""

    inputs: List[Path]
    output: Path
    target: str
    endpoint: str = DEFAULT_ENDPOINT
    verbose: bool = False
    marker: str = DEFAULT_MARKER
    exclude_paths: List[str] = field(default_factory=list)


@dataclass
class ExposifyConfig:
    """Represents the settings defined in .exposify.yml."""

    root: Path
    target: Optional[str] = None
    output: Optional[Path] = None
    endpoint: Optional[str] = None
    marker: Optional[str] = None
    projects: List[str] = field(default_factory=list)
    exclude_paths: List[str] = field(default_factory=list)


def load_config(config_path: Path, *, required: bool = False) -> ExposifyConfig:
    """Load configuration from disk.

    A missing file yields defaults, unless ``required`` is set because the user
    named the file explicitly.
    """
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {config_file}")
        return ExposifyConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    output = _as_str(data.get("output"))
    return ExposifyConfig(
        root=root,
        target=_as_str(data.get("target")),
        output=root / output if output else None,
        endpoint=_as_str(data.get("endpoint")),
        marker=_as_str(data.get("marker")),
        projects=_as_str_list(data.get("projects")),
        exclude_paths=_as_str_list(data.get("exclude_paths")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_ENDPOINT",
    "DEFAULT_MARKER",
    "ExposifyConfig",
    "GeneratorOptions",
    "load_config",
]
