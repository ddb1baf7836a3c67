"""Metadata model shared by the analyzer and every emitter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class TypeKind(str, Enum):
    """Kinds of top-level type declarations captured from source."""

    RECORD = "record"
    INTERFACE = "interface"
    ENUMERATION = "enumeration"
    ALIAS = "alias"


@dataclass(frozen=True)
class MarkerDescriptor:
    """A decorator attached to a declaration, captured verbatim."""

    name: str
    arguments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParameterDescriptor:
    """A method parameter; position in the parent method defines the payload shape.

    ``references`` lists the type names the declared type mentions, after import
    aliases are applied.
    """

    name: str
    type: str
    is_model: bool = False
    optional: bool = False
    references: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MethodDescriptor:
    """An exposed method with its return type already unwrapped."""

    name: str
    parameters: Tuple[ParameterDescriptor, ...]
    return_type: str
    markers: Tuple[MarkerDescriptor, ...] = ()
    return_references: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ServiceDescriptor:
    """A class carrying the expose marker."""

    class_name: str
    methods: Tuple[MethodDescriptor, ...]
    source_file: str
    markers: Tuple[MarkerDescriptor, ...] = ()


@dataclass(frozen=True)
class PropertyDescriptor:
    name: str
    type: str
    optional: bool = False


@dataclass(frozen=True)
class TypeDescriptor:
    """A top-level record, interface, enumeration or alias declaration."""

    name: str
    kind: TypeKind
    properties: Tuple[PropertyDescriptor, ...]
    source_file: str
    source_code: str
    type_parameters: str = ""
    extends: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    """Services and types discovered in one analyzer run, in discovery order."""

    services: Tuple[ServiceDescriptor, ...] = ()
    types: Tuple[TypeDescriptor, ...] = ()
    unresolved: Tuple[str, ...] = field(default=())

    def type_names(self) -> Tuple[str, ...]:
        return tuple(descriptor.name for descriptor in self.types)

    def find_type(self, name: str) -> Optional[TypeDescriptor]:
        for descriptor in self.types:
            if descriptor.name == name:
                return descriptor
        return None


__all__ = [
    "AnalysisResult",
    "MarkerDescriptor",
    "MethodDescriptor",
    "ParameterDescriptor",
    "PropertyDescriptor",
    "ServiceDescriptor",
    "TypeDescriptor",
    "TypeKind",
]
