"""Deterministic enumeration of TypeScript sources under a root directory."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from fnmatch import translate
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .errors import SourceRootError

# Dependency, VCS and build output directories never hold service sources.
_EXCLUDED_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".angular",
        ".next",
        ".nx",
        ".turbo",
        "node_modules",
        "dist",
        "build",
        "coverage",
    }
)

_SOURCE_SUFFIXES = (".ts", ".tsx")
_SKIPPED_SUFFIXES = (".d.ts", ".spec.ts", ".test.ts", ".spec.tsx", ".test.tsx")


@dataclass(frozen=True)
class _IgnorePattern:
    regex: re.Pattern[str]
    whole_path: bool
    directory_only: bool
    negated: bool

    def hits(self, rel_path: str, is_dir: bool) -> bool:
        if self.whole_path:
            return bool(self.regex.match(rel_path))
        # Unanchored names match any single path segment.
        segments = rel_path.split("/")
        if self.directory_only and not is_dir:
            segments = segments[:-1]
        return any(self.regex.match(segment) for segment in segments)


class IgnoreRules:
    """Gitignore-style patterns from ``<root>/.gitignore`` plus configured excludes.

    Later patterns win, so ``!pattern`` re-includes what an earlier line
    excluded.
    """

    def __init__(self, lines: Iterable[str] = ()) -> None:
        self._patterns: List[_IgnorePattern] = []
        for line in lines:
            self.add(line)

    @classmethod
    def for_root(cls, root: Path, exclude_paths: Sequence[str] = ()) -> "IgnoreRules":
        gitignore = root / ".gitignore"
        lines: List[str] = []
        if gitignore.is_file():
            lines.extend(gitignore.read_text(encoding="utf-8").splitlines())
        lines.extend(exclude_paths)
        return cls(lines)

    def add(self, line: str) -> None:
        text = line.strip()
        if not text or text.startswith("#"):
            return
        negated = text.startswith("!")
        text = text.lstrip("!")
        directory_only = text.endswith("/")
        text = text.rstrip("/")
        whole_path = "/" in text
        text = text.lstrip("/")
        if not text:
            return
        if whole_path and directory_only:
            # A directory pattern also covers everything beneath it.
            regex = re.compile(translate(text)[:-2] + r"(?:/.*)?\Z", re.DOTALL)
        else:
            regex = re.compile(translate(text))
        self._patterns.append(_IgnorePattern(regex, whole_path, directory_only, negated))

    def ignores(self, rel_path: str, is_dir: bool) -> bool:
        ignored = False
        for pattern in self._patterns:
            if pattern.hits(rel_path, is_dir):
                ignored = not pattern.negated
        return ignored


def is_source_file(filename: str) -> bool:
    """True for ``.ts``/``.tsx`` sources that are not declarations or tests."""
    lower = filename.lower()
    return lower.endswith(_SOURCE_SUFFIXES) and not lower.endswith(_SKIPPED_SUFFIXES)


def _check_root(root: Path) -> None:
    if not root.exists():
        raise SourceRootError(f"Source root not found: {root}")
    if not root.is_dir():
        raise SourceRootError(f"Source root is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise SourceRootError(f"Source root is not readable: {root}")


def iter_source_files(root: Path, exclude_paths: Sequence[str] = ()) -> Iterator[Path]:
    """Yield TypeScript sources below ``root`` in lexicographic, recursive order.

    Files of a directory are yielded before its subdirectories are entered, and
    both are visited in sorted name order, so the sequence is stable for a
    fixed tree.
    """
    root = root.expanduser().resolve()
    _check_root(root)
    rules = IgnoreRules.for_root(root, exclude_paths)

    def _fail(error: OSError) -> None:
        raise SourceRootError(f"Failed to read {error.filename}: {error.strerror}") from error

    for dirpath, dirnames, filenames in os.walk(root, onerror=_fail):
        prefix = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if prefix == "." else f"{prefix}/"

        dirnames[:] = [
            name
            for name in sorted(dirnames)
            if name not in _EXCLUDED_DIRS and not rules.ignores(prefix + name, True)
        ]
        for filename in sorted(filenames):
            if is_source_file(filename) and not rules.ignores(prefix + filename, False):
                yield Path(dirpath) / filename


__all__ = ["IgnoreRules", "is_source_file", "iter_source_files"]
