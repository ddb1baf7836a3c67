"""Shared emitter: traversal, import collection, marshalling and file writing."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..analyzers.signatures import is_builtin
from ..config import GeneratorOptions
from ..errors import OutputError
from ..logging import get_logger
from ..models import AnalysisResult, MethodDescriptor, ServiceDescriptor, TypeDescriptor, TypeKind

TEMPLATES_DIR = Path(__file__).with_name("templates")
TRANSPORT_FILENAME = "json-rpc.client.ts"
MODELS_FILENAME = "models/index.ts"
SERVICES_DIR = "services"

FILE_HEADER = (
    "/**\n"
    " * Auto-generated by exposify-codegen.\n"
    " * Do not edit manually - changes will be overwritten.\n"
    " */"
)

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class Target(ABC):
    """Rendering callbacks a client target supplies to the shared emitter."""

    name: str

    @abstractmethod
    def render_method(self, service_name: str, method: MethodDescriptor) -> str:
        """Return the source for a single client call site."""

    @abstractmethod
    def render_service(
        self, service: ServiceDescriptor, imports: Sequence[str], rendered_methods: Sequence[str]
    ) -> str:
        """Return the full client file for ``service``."""

    @abstractmethod
    def render_transport(self, endpoint: str) -> str:
        """Return the shared JSON-RPC transport file."""


@dataclass
class EmitReport:
    """Files written by a single ``ClientEmitter.generate`` call."""

    output: Path
    transport: Optional[Path] = None
    models: Optional[Path] = None
    services: List[Path] = field(default_factory=list)

    @property
    def files(self) -> List[Path]:
        written = [path for path in (self.transport, self.models) if path is not None]
        return written + list(self.services)


def ts_string(value: str) -> str:
    """Quote ``value`` as a single-quoted TypeScript string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


_environment: Environment | None = None


def template_environment() -> Environment:
    """Return the Jinja environment shared by every target."""
    global _environment
    if _environment is None:
        env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        env.filters["ts_string"] = ts_string
        env.globals["header"] = FILE_HEADER
        _environment = env
    return _environment


def render_template(name: str, **context: object) -> str:
    return template_environment().get_template(name).render(**context)


def qualified_name(service_name: str, method: MethodDescriptor) -> str:
    return f"{service_name}.{method.name}"


def payload_expression(method: MethodDescriptor) -> Optional[str]:
    """Wire payload for a call: nothing, the lone argument, or a keyed object."""
    if not method.parameters:
        return None
    if len(method.parameters) == 1:
        return method.parameters[0].name
    names = ", ".join(param.name for param in method.parameters)
    return f"{{ {names} }}"


def call_arguments(service_name: str, method: MethodDescriptor) -> str:
    arguments = [ts_string(qualified_name(service_name, method))]
    payload = payload_expression(method)
    if payload is not None:
        arguments.append(payload)
    return ", ".join(arguments)


def parameter_list(method: MethodDescriptor) -> str:
    return ", ".join(
        f"{param.name}{'?' if param.optional else ''}: {param.type}" for param in method.parameters
    )


def collect_imports(service: ServiceDescriptor, type_names: Iterable[str]) -> List[str]:
    """Known type names referenced by the service, in first-reference order.

    Parameters are visited before the return type of each method. Only names
    the analyzer recorded as type references count, so object-literal keys in a
    signature never produce an import.
    """
    known = set(type_names)
    imports: List[str] = []
    for method in service.methods:
        references = [name for param in method.parameters for name in param.references]
        references.extend(method.return_references)
        for name in references:
            if name in known and not is_builtin(name) and name not in imports:
                imports.append(name)
    return imports


def service_filename(class_name: str, *, strip_suffix: bool = True) -> str:
    """``OrderItemsService`` and ``OrderItems`` both become ``order-items.service.ts``.

    With ``strip_suffix`` disabled the whole class name is kept, so
    ``OrdersService`` becomes ``orders-service.service.ts``.
    """
    base = class_name
    if strip_suffix and class_name.endswith("Service") and class_name != "Service":
        base = class_name[: -len("Service")]
    return f"{_WORD_BOUNDARY.sub('-', base).lower()}.service.ts"


def plan_service_files(services: Sequence[ServiceDescriptor]) -> Dict[str, str]:
    """Map each service class name to a distinct file name under ``services/``.

    When two services share a file name, those whose name lost a ``Service``
    suffix keep their full name instead. Any clash left after that raises
    ``OutputError``.
    """
    claims: Dict[str, List[str]] = {}
    for service in services:
        claims.setdefault(service_filename(service.class_name), []).append(service.class_name)

    planned: Dict[str, str] = {}
    for filename, owners in claims.items():
        for owner in owners:
            if len(owners) > 1 and service_filename(owner, strip_suffix=False) != filename:
                planned[owner] = service_filename(owner, strip_suffix=False)
            else:
                planned[owner] = filename

    taken: Dict[str, str] = {}
    for service in services:
        filename = planned[service.class_name]
        if filename in taken:
            raise OutputError(
                f"Services {taken[filename]} and {service.class_name} both map to "
                f"{SERVICES_DIR}/{filename}; rename one of them"
            )
        taken[filename] = service.class_name
    return planned


def render_models(types: Sequence[TypeDescriptor]) -> str:
    known = {descriptor.name for descriptor in types}
    return render_template(
        "shared/models.ts.j2", types=[_model_source(descriptor, known) for descriptor in types]
    )


def _model_source(descriptor: TypeDescriptor, known: Set[str]) -> str:
    if descriptor.kind is TypeKind.RECORD:
        # Only bases declared in the models file can be extended.
        bases = [base for base in descriptor.extends if base.split("<", 1)[0] in known]
        return render_template("shared/record.ts.j2", type=descriptor, bases=bases)
    source = descriptor.source_code.strip()
    if not source.startswith("export "):
        source = f"export {source}"
    return source


class ClientEmitter:
    """Writes a full client for one target from an AnalysisResult."""

    def __init__(self, target: Target) -> None:
        self.target = target
        self.logger = get_logger(f"emitter.{target.name}")

    def generate(self, result: AnalysisResult, options: GeneratorOptions) -> EmitReport:
        output = Path(options.output)
        report = EmitReport(output=output)
        filenames = plan_service_files(result.services)
        for service in result.services:
            if filenames[service.class_name] != service_filename(service.class_name):
                self.logger.warning(
                    "Service %s shares a file name with another service; writing it to %s/%s",
                    service.class_name,
                    SERVICES_DIR,
                    filenames[service.class_name],
                )
        try:
            output.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputError(f"Cannot create output directory {output}: {exc.strerror or exc}") from exc

        report.transport = self._write(output / TRANSPORT_FILENAME, self.target.render_transport(options.endpoint))
        report.models = self._write(output / MODELS_FILENAME, render_models(result.types))

        type_names = result.type_names()
        for service in result.services:
            imports = collect_imports(service, type_names)
            methods = [self.target.render_method(service.class_name, method) for method in service.methods]
            text = self.target.render_service(service, imports, methods)
            report.services.append(
                self._write(output / SERVICES_DIR / filenames[service.class_name], text)
            )
        return report

    def _write(self, path: Path, text: str) -> Path:
        text = f"{text.rstrip()}\n"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8", newline="\n")
        except OSError as exc:
            raise OutputError(f"Cannot write {path}: {exc.strerror or exc}") from exc
        self.logger.info("Generated: %s", path)
        return path


__all__ = [
    "ClientEmitter",
    "EmitReport",
    "FILE_HEADER",
    "MODELS_FILENAME",
    "SERVICES_DIR",
    "TRANSPORT_FILENAME",
    "Target",
    "call_arguments",
    "collect_imports",
    "parameter_list",
    "payload_expression",
    "plan_service_files",
    "qualified_name",
    "render_models",
    "render_template",
    "service_filename",
    "template_environment",
    "ts_string",
]
