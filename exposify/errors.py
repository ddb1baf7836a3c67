"""Error taxonomy shared by the analyzer, emitters and CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


class ExposifyError(RuntimeError):
    """Base class for fatal exposify failures reported to the user."""


class ConfigurationError(ExposifyError):
    """Raised for an unknown target, project or malformed configuration."""

    def __init__(self, message: str, *, choices: Iterable[str] = ()) -> None:
        self.choices = tuple(choices)
        if self.choices:
            message = f"{message}. Available: {', '.join(self.choices)}"
        super().__init__(message)


class ParseError(ExposifyError):
    """Raised when a single source file cannot be parsed.

    The analyzer treats this as recoverable: the file is skipped and the run
    continues with the remaining sources.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse {path}: {reason}")


class IoError(ExposifyError):
    """Raised when a source root cannot be read or output cannot be written."""


class SourceRootError(IoError):
    """Raised when a source root is missing or unreadable."""


class OutputError(IoError):
    """Raised when the output directory cannot be created or written."""


class ResolutionWarning(UserWarning):
    """Category for type names that stay unresolved after analysis."""


__all__ = [
    "ConfigurationError",
    "ExposifyError",
    "IoError",
    "OutputError",
    "ParseError",
    "ResolutionWarning",
    "SourceRootError",
]
