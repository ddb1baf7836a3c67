"""Source analysis: turn TypeScript source roots into an AnalysisResult."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from ..config import DEFAULT_MARKER
from ..errors import ParseError, ResolutionWarning
from ..logging import get_logger
from ..models import AnalysisResult
from ..source_scanner import iter_source_files
from .resolver import resolve
from .typescript import FileDeclarations, TypeScriptParser


class SourceAnalyzer:
    """Scans source roots and resolves exposed services and their types.

    Analysis is two-phase: every file is parsed into raw declarations first,
    then references are resolved against the declarations of all files. Files
    that fail to parse are skipped with a warning.
    """

    def __init__(
        self,
        marker: str = DEFAULT_MARKER,
        exclude_paths: Sequence[str] = (),
        parser: TypeScriptParser | None = None,
    ) -> None:
        self.marker = marker
        self.exclude_paths = list(exclude_paths)
        self.parser = parser or TypeScriptParser(marker=marker)
        self.logger = get_logger("analyzer")
        self.skipped: List[ParseError] = []
        self.warnings: List[ResolutionWarning] = []

    def analyze(self, roots: Sequence[Path | str]) -> AnalysisResult:
        self.skipped = []
        files: List[FileDeclarations] = []
        for root in roots:
            root_path = Path(root)
            self.logger.debug("Scanning %s", root_path)
            for path in iter_source_files(root_path, self.exclude_paths):
                try:
                    declarations = self.parser.parse_file(path)
                except ParseError as exc:
                    self.logger.warning("Skipping %s", exc)
                    self.skipped.append(exc)
                    continue
                files.append(declarations)

        self.logger.debug("Parsed %d files (%d skipped)", len(files), len(self.skipped))
        result, self.warnings = resolve(files, self.logger)
        return result


__all__ = ["SourceAnalyzer", "TypeScriptParser"]
