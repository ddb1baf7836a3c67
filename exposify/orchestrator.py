"""Pipeline orchestration: validate the target, analyze once, emit once."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .analyzers import SourceAnalyzer
from .config import GeneratorOptions
from .emitters import ClientEmitter, Target, create_target
from .logging import get_logger
from .models import AnalysisResult


@dataclass
class GenerationSummary:
    """Counts and paths produced by a generation run."""

    target: str
    services: int
    types: int
    files: List[Path] = field(default_factory=list)
    unresolved: Tuple[str, ...] = ()
    skipped_files: int = 0


class Orchestrator:
    """Coordinates analysis and emission for a single run."""

    def __init__(
        self,
        analyzer: Optional[SourceAnalyzer] = None,
        emitter_factory: Optional[Callable[[Target], ClientEmitter]] = None,
    ) -> None:
        self._analyzer = analyzer
        self._emitter_factory = emitter_factory or ClientEmitter
        self.logger = get_logger("orchestrator")

    def run(self, options: GeneratorOptions) -> GenerationSummary:
        """Generate a client for ``options.target`` from ``options.inputs``."""
        # Unknown targets must fail before any source is read or file written.
        target = create_target(options.target)

        analyzer = self._analyzer or SourceAnalyzer(
            marker=options.marker, exclude_paths=options.exclude_paths
        )
        self.logger.info(
            "Parsing source files from: %s", ", ".join(str(path) for path in options.inputs)
        )
        result = analyzer.analyze(options.inputs)
        self.logger.info("Found %d services, %d types", len(result.services), len(result.types))

        if options.verbose:
            self._log_summary(result)

        self.logger.info("Generating %s client...", target.name)
        report = self._emitter_factory(target).generate(result, options)
        self.logger.info(
            "Generated %d service files (%d files total) in %s",
            len(report.services),
            len(report.files),
            report.output,
        )

        return GenerationSummary(
            target=target.name,
            services=len(result.services),
            types=len(result.types),
            files=report.files,
            unresolved=result.unresolved,
            skipped_files=len(analyzer.skipped),
        )

    def _log_summary(self, result: AnalysisResult) -> None:
        self.logger.info("Services:")
        for service in result.services:
            names = ", ".join(method.name for method in service.methods)
            self.logger.info("  %s (%d methods): %s", service.class_name, len(service.methods), names)
        self.logger.info("Types:")
        for descriptor in result.types:
            self.logger.info("  %s (%s)", descriptor.name, descriptor.kind.value)
        if result.unresolved:
            self.logger.info("Unresolved types: %s", ", ".join(result.unresolved))


__all__ = ["GenerationSummary", "Orchestrator"]
