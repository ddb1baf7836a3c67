"""Client targets and the registry the orchestrator selects from."""

from __future__ import annotations

from typing import Callable, Dict, List

from ..errors import ConfigurationError
from .angular import AngularTarget
from .base import ClientEmitter, EmitReport, Target
from .preact import PreactTarget

_BUILTIN_TARGETS: Dict[str, Callable[[], Target]] = {
    "angular": AngularTarget,
    "preact": PreactTarget,
}


def available_targets() -> List[str]:
    """Return registered target names in registration order."""
    return list(_BUILTIN_TARGETS)


def create_target(name: str) -> Target:
    """Instantiate the target registered under ``name``."""
    factory = _BUILTIN_TARGETS.get(name.lower()) if name else None
    if factory is None:
        raise ConfigurationError(f"Unknown target '{name}'", choices=available_targets())
    instance = factory()
    if not isinstance(instance, Target):
        raise TypeError(f"Target factory for '{name}' did not return a Target instance")
    return instance


__all__ = [
    "AngularTarget",
    "ClientEmitter",
    "EmitReport",
    "PreactTarget",
    "Target",
    "available_targets",
    "create_target",
]
