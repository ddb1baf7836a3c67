"""Cross-file resolution of raw declarations into an AnalysisResult."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from ..errors import ResolutionWarning
from ..models import (
    AnalysisResult,
    MethodDescriptor,
    ParameterDescriptor,
    ServiceDescriptor,
    TypeDescriptor,
)
from .signatures import is_builtin
from .typescript import FileDeclarations, RawMethod, RawService


def resolve(
    files: Sequence[FileDeclarations], logger: logging.Logger
) -> Tuple[AnalysisResult, List[ResolutionWarning]]:
    """Build the name tables from every file, then resolve service references.

    Returns the immutable result together with one warning per unresolved
    reference, in discovery order.
    """
    types = _collect_types(files, logger)
    known = set(types)

    services: List[ServiceDescriptor] = []
    seen_services: Dict[str, str] = {}
    warnings: List[ResolutionWarning] = []
    unresolved: List[str] = []

    for raw in (service for declarations in files for service in declarations.services):
        if raw.class_name in seen_services:
            logger.warning(
                "Service %s in %s conflicts with the declaration in %s; keeping the first",
                raw.class_name,
                raw.source_file,
                seen_services[raw.class_name],
            )
            continue
        seen_services[raw.class_name] = raw.source_file
        services.append(_resolve_service(raw, known, warnings, unresolved, logger))

    result = AnalysisResult(
        services=tuple(services),
        types=tuple(types.values()),
        unresolved=tuple(unresolved),
    )
    return result, warnings


def _collect_types(
    files: Iterable[FileDeclarations], logger: logging.Logger
) -> Dict[str, TypeDescriptor]:
    types: Dict[str, TypeDescriptor] = {}
    for declarations in files:
        for descriptor in declarations.types:
            existing = types.get(descriptor.name)
            if existing is not None:
                logger.warning(
                    "Type %s in %s conflicts with the declaration in %s; keeping the first",
                    descriptor.name,
                    descriptor.source_file,
                    existing.source_file,
                )
                continue
            types[descriptor.name] = descriptor
    return types


def _resolve_service(
    raw: RawService,
    known: Set[str],
    warnings: List[ResolutionWarning],
    unresolved: List[str],
    logger: logging.Logger,
) -> ServiceDescriptor:
    methods: List[MethodDescriptor] = []
    seen: Set[str] = set()
    for method in raw.methods:
        if method.name in seen:
            logger.warning(
                "Duplicate method %s.%s in %s; keeping the first",
                raw.class_name,
                method.name,
                raw.source_file,
            )
            continue
        seen.add(method.name)
        generics = set(raw.type_parameters) | set(method.type_parameters)

        parameters = []
        for param in method.parameters:
            parameters.append(
                ParameterDescriptor(
                    name=param.name,
                    type=param.type,
                    is_model=any(name in known for name in param.references),
                    optional=param.optional,
                    references=param.references,
                )
            )

        for name in _references(method):
            if name in known or name in generics or is_builtin(name):
                continue
            warning = ResolutionWarning(
                f"Type {name} referenced by {raw.class_name}.{method.name} "
                f"({raw.source_file}) was not found; keeping it as an opaque signature"
            )
            warnings.append(warning)
            logger.debug("%s", warning)
            if name not in unresolved:
                unresolved.append(name)

        methods.append(
            MethodDescriptor(
                name=method.name,
                parameters=tuple(parameters),
                return_type=method.return_type,
                markers=method.markers,
                return_references=method.return_references,
            )
        )

    return ServiceDescriptor(
        class_name=raw.class_name,
        methods=tuple(methods),
        source_file=raw.source_file,
        markers=raw.markers,
    )


def _references(method: RawMethod) -> List[str]:
    names: List[str] = []
    for param in method.parameters:
        for name in param.references:
            if name not in names:
                names.append(name)
    for name in method.return_references:
        if name not in names:
            names.append(name)
    return names


__all__ = ["resolve"]
