"""Tree-sitter powered extraction of services and types from TypeScript files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ..errors import ParseError
from ..models import MarkerDescriptor, PropertyDescriptor, TypeDescriptor, TypeKind
from .signatures import ASYNC_WRAPPERS, UNKNOWN_TYPE, collapse_whitespace

_CLASS_NODES = {"class_declaration", "abstract_class_declaration"}
_TYPE_NODES = {
    "interface_declaration": TypeKind.INTERFACE,
    "enum_declaration": TypeKind.ENUMERATION,
    "type_alias_declaration": TypeKind.ALIAS,
}
_PARAMETER_NODES = {"required_parameter", "optional_parameter"}
_NON_PUBLIC_MODIFIERS = {"private", "protected"}
_SKIPPED_METHOD_TOKENS = {"static", "get", "set"}


@dataclass
class RawParameter:
    name: str
    type: str
    optional: bool
    references: Tuple[str, ...] = ()


@dataclass
class RawMethod:
    name: str
    parameters: List[RawParameter]
    return_type: str
    return_references: Tuple[str, ...] = ()
    markers: Tuple[MarkerDescriptor, ...] = ()
    type_parameters: Tuple[str, ...] = ()


@dataclass
class RawService:
    """A marked class whose type references are not yet resolved."""

    class_name: str
    methods: List[RawMethod]
    source_file: str
    markers: Tuple[MarkerDescriptor, ...] = ()
    type_parameters: Tuple[str, ...] = ()


@dataclass
class FileDeclarations:
    """Everything phase one extracts from a single source file."""

    path: str
    services: List[RawService] = field(default_factory=list)
    types: List[TypeDescriptor] = field(default_factory=list)


class _FileContext:
    """Per-file source bytes plus the import aliases that apply to it."""

    def __init__(self, source_bytes: bytes) -> None:
        self.source_bytes = source_bytes
        self.aliases: Dict[str, str] = {}
        self.namespaces: Set[str] = set()

    def text(self, node: Node) -> str:
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def resolve_name(self, name: str) -> str:
        head, _, rest = name.partition(".")
        if rest and head in self.namespaces:
            return rest
        return self.aliases.get(name, name)

    def render_type(self, node: Node, *, collapse: bool = True) -> Tuple[str, Tuple[str, ...]]:
        """Render ``node`` with import aliases substituted, plus its referenced names."""
        replacements: List[Tuple[int, int, str]] = []
        references: List[str] = []

        def visit(current: Node) -> None:
            if current.type in {"type_identifier", "nested_type_identifier"}:
                original = self.text(current)
                resolved = self.resolve_name(original)
                if resolved != original:
                    replacements.append((current.start_byte, current.end_byte, resolved))
                if resolved not in references:
                    references.append(resolved)
                return
            for child in current.children:
                visit(child)

        visit(node)

        pieces: List[bytes] = []
        cursor = node.start_byte
        for start, end, value in replacements:
            pieces.append(self.source_bytes[cursor:start])
            pieces.append(value.encode("utf-8"))
            cursor = end
        pieces.append(self.source_bytes[cursor : node.end_byte])
        rendered = b"".join(pieces).decode("utf-8", errors="replace")
        if collapse:
            rendered = collapse_whitespace(rendered)
        return rendered, tuple(references)


class TypeScriptParser:
    """Extracts raw services and type declarations using tree-sitter."""

    def __init__(self, marker: str = "Expose") -> None:
        self.marker = marker
        self._parsers: Dict[str, Parser] = {}

    def parse_file(self, path: Path) -> FileDeclarations:
        try:
            source = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(path, f"not valid UTF-8 ({exc.reason})") from exc
        except OSError as exc:
            raise ParseError(path, exc.strerror or str(exc)) from exc
        return self.parse_source(source, path)

    def parse_source(self, source: str, path: Path) -> FileDeclarations:
        source_bytes = source.encode("utf-8")
        tree = self._get_parser(path).parse(source_bytes)
        root = tree.root_node
        if root.has_error:
            error = _first_error(root)
            line = (error.start_point[0] if error is not None else root.start_point[0]) + 1
            raise ParseError(path, f"syntax error near line {line}")

        context = _FileContext(source_bytes)
        declarations = list(_top_level_declarations(root))
        local_names = set()
        for declaration, _ in declarations:
            name_node = declaration.child_by_field_name("name")
            if name_node is not None:
                local_names.add(context.text(name_node))
        self._collect_imports(root, context, local_names)

        result = FileDeclarations(path=str(path))
        for declaration, outer_decorators in declarations:
            name_node = declaration.child_by_field_name("name")
            if name_node is None:
                continue
            name = context.text(name_node)
            if declaration.type in _CLASS_NODES:
                decorators = outer_decorators + [
                    child for child in declaration.children if child.type == "decorator"
                ]
                markers = tuple(self._marker(decorator, context) for decorator in decorators)
                if any(marker.name == self.marker for marker in markers):
                    result.services.append(
                        self._service(declaration, name, markers, context, str(path))
                    )
                else:
                    result.types.append(self._record(declaration, name, context, str(path)))
            else:
                result.types.append(
                    self._type(declaration, name, _TYPE_NODES[declaration.type], context, str(path))
                )
        return result

    def _get_parser(self, path: Path) -> Parser:
        language_key = "tsx" if path.suffix.lower() == ".tsx" else "typescript"
        parser = self._parsers.get(language_key)
        if parser is not None:
            return parser
        if language_key == "tsx":
            language = Language(tree_sitter_typescript.language_tsx())
        else:
            language = Language(tree_sitter_typescript.language_typescript())
        parser = Parser(language)
        self._parsers[language_key] = parser
        return parser

    @staticmethod
    def _collect_imports(root: Node, context: _FileContext, local_names: Set[str]) -> None:
        for statement in root.named_children:
            if statement.type != "import_statement":
                continue
            for clause in statement.named_children:
                if clause.type != "import_clause":
                    continue
                for part in clause.named_children:
                    if part.type == "namespace_import":
                        for child in part.named_children:
                            if child.type == "identifier":
                                context.namespaces.add(context.text(child))
                    elif part.type == "named_imports":
                        for specifier in part.named_children:
                            if specifier.type != "import_specifier":
                                continue
                            imported = specifier.child_by_field_name("name")
                            alias = specifier.child_by_field_name("alias")
                            if imported is None or alias is None or imported.type == "string":
                                continue
                            local = context.text(alias)
                            # A local declaration with the same name shadows the import.
                            if local not in local_names:
                                context.aliases[local] = context.text(imported)

    @staticmethod
    def _marker(decorator: Node, context: _FileContext) -> MarkerDescriptor:
        expression = next(
            (child for child in decorator.named_children if child.type != "comment"), None
        )
        if expression is None:
            return MarkerDescriptor(name=context.text(decorator).lstrip("@"))
        arguments: Tuple[str, ...] = ()
        if expression.type == "call_expression":
            args_node = expression.child_by_field_name("arguments")
            if args_node is not None:
                arguments = tuple(
                    context.text(arg) for arg in args_node.named_children if arg.type != "comment"
                )
            function = expression.child_by_field_name("function")
            if function is not None:
                expression = function
        name = context.resolve_name(collapse_whitespace(context.text(expression)))
        return MarkerDescriptor(name=name, arguments=arguments)

    def _service(
        self,
        declaration: Node,
        name: str,
        markers: Tuple[MarkerDescriptor, ...],
        context: _FileContext,
        source_file: str,
    ) -> RawService:
        methods: List[RawMethod] = []
        body = declaration.child_by_field_name("body")
        if body is not None:
            for member, decorators in _class_members(body):
                if not self._is_exposed_method(member, context):
                    continue
                methods.append(self._method(member, decorators, context))
        return RawService(
            class_name=name,
            methods=methods,
            source_file=source_file,
            markers=markers,
            type_parameters=_type_parameter_names(declaration, context),
        )

    @staticmethod
    def _is_exposed_method(member: Node, context: _FileContext) -> bool:
        if member.type != "method_definition":
            return False
        name_node = member.child_by_field_name("name")
        if name_node is None or name_node.type != "property_identifier":
            return False
        if context.text(name_node) == "constructor":
            return False
        for child in member.children:
            if child.type == "accessibility_modifier" and context.text(child) in _NON_PUBLIC_MODIFIERS:
                return False
            if not child.is_named and child.type in _SKIPPED_METHOD_TOKENS:
                return False
        return True

    def _method(self, member: Node, decorators: List[Node], context: _FileContext) -> RawMethod:
        name = context.text(member.child_by_field_name("name"))
        parameters: List[RawParameter] = []
        params_node = member.child_by_field_name("parameters")
        if params_node is not None:
            parameters = _parameters(params_node, context)

        return_type, return_references = UNKNOWN_TYPE, ()
        type_node = _annotation_type(member.child_by_field_name("return_type"))
        if type_node is not None:
            return_type, return_references = context.render_type(_unwrap(type_node, context))

        return RawMethod(
            name=name,
            parameters=parameters,
            return_type=return_type,
            return_references=return_references,
            markers=tuple(self._marker(decorator, context) for decorator in decorators),
            type_parameters=_type_parameter_names(member, context),
        )

    @staticmethod
    def _record(declaration: Node, name: str, context: _FileContext, source_file: str) -> TypeDescriptor:
        properties: List[PropertyDescriptor] = []
        body = declaration.child_by_field_name("body")
        if body is not None:
            for member, _ in _class_members(body):
                if member.type != "public_field_definition":
                    continue
                if any(
                    (child.type == "accessibility_modifier" and context.text(child) in _NON_PUBLIC_MODIFIERS)
                    or (not child.is_named and child.type == "static")
                    for child in member.children
                ):
                    continue
                prop = _property(member, context)
                if prop is not None:
                    properties.append(prop)
        return _descriptor(
            declaration,
            name,
            TypeKind.RECORD,
            properties,
            context,
            source_file,
            extends=_base_classes(declaration, context),
        )

    @staticmethod
    def _type(
        declaration: Node, name: str, kind: TypeKind, context: _FileContext, source_file: str
    ) -> TypeDescriptor:
        properties: List[PropertyDescriptor] = []
        if kind is TypeKind.ENUMERATION:
            body = declaration.child_by_field_name("body")
            for member in body.named_children if body is not None else []:
                if member.type == "enum_assignment":
                    member_name = member.child_by_field_name("name")
                    value = member.child_by_field_name("value")
                    properties.append(
                        PropertyDescriptor(
                            name=context.text(member_name) if member_name is not None else "",
                            type=context.text(value) if value is not None else "",
                        )
                    )
                elif member.type in {"property_identifier", "string"}:
                    properties.append(PropertyDescriptor(name=context.text(member), type=""))
        else:
            field_name = "body" if kind is TypeKind.INTERFACE else "value"
            body = declaration.child_by_field_name(field_name)
            if body is not None and body.type in {"interface_body", "object_type"}:
                for member in body.named_children:
                    if member.type != "property_signature":
                        continue
                    prop = _property(member, context)
                    if prop is not None:
                        properties.append(prop)
        return _descriptor(declaration, name, kind, properties, context, source_file)


def _top_level_declarations(root: Node) -> Iterator[Tuple[Node, List[Node]]]:
    for child in root.named_children:
        decorators: List[Node] = []
        declaration: Optional[Node] = child
        if child.type == "export_statement":
            decorators = [node for node in child.children if node.type == "decorator"]
            declaration = child.child_by_field_name("declaration")
        if declaration is None:
            continue
        if declaration.type in _CLASS_NODES or declaration.type in _TYPE_NODES:
            yield declaration, decorators


def _class_members(body: Node) -> Iterator[Tuple[Node, List[Node]]]:
    """Yield class members with their decorators, wherever the grammar places them."""
    pending: List[Node] = []
    for child in body.named_children:
        if child.type == "decorator":
            pending.append(child)
            continue
        if child.type == "comment":
            continue
        decorators = pending + [node for node in child.children if node.type == "decorator"]
        pending = []
        yield child, decorators


def _parameters(params_node: Node, context: _FileContext) -> List[RawParameter]:
    parameters: List[RawParameter] = []
    for node in params_node.named_children:
        if node.type not in _PARAMETER_NODES:
            continue
        pattern = node.child_by_field_name("pattern")
        if pattern is None or pattern.type == "this":
            continue
        if pattern.type == "identifier":
            name = context.text(pattern)
        elif pattern.type == "rest_pattern" and pattern.named_children:
            name = context.text(pattern.named_children[0])
        else:
            name = f"arg{len(parameters)}"

        type_text, references = UNKNOWN_TYPE, ()
        type_node = _annotation_type(node.child_by_field_name("type"))
        if type_node is not None:
            type_text, references = context.render_type(type_node)
        optional = node.type == "optional_parameter" or node.child_by_field_name("value") is not None
        parameters.append(
            RawParameter(name=name, type=type_text, optional=optional, references=references)
        )
    return parameters


def _property(member: Node, context: _FileContext) -> Optional[PropertyDescriptor]:
    name_node = member.child_by_field_name("name")
    if name_node is None or name_node.type == "private_property_identifier":
        return None
    type_text = UNKNOWN_TYPE
    type_node = _annotation_type(member.child_by_field_name("type"))
    if type_node is not None:
        type_text, _ = context.render_type(type_node)
    optional = any(not child.is_named and child.type == "?" for child in member.children)
    return PropertyDescriptor(name=context.text(name_node), type=type_text, optional=optional)


def _descriptor(
    declaration: Node,
    name: str,
    kind: TypeKind,
    properties: List[PropertyDescriptor],
    context: _FileContext,
    source_file: str,
    extends: Tuple[str, ...] = (),
) -> TypeDescriptor:
    source_code, _ = context.render_type(declaration, collapse=False)
    type_parameters = declaration.child_by_field_name("type_parameters")
    return TypeDescriptor(
        name=name,
        kind=kind,
        properties=tuple(properties),
        source_file=source_file,
        source_code=source_code,
        type_parameters=context.text(type_parameters) if type_parameters is not None else "",
        extends=extends,
    )


def _base_classes(declaration: Node, context: _FileContext) -> Tuple[str, ...]:
    """Render the ``extends`` targets of a class, with type arguments and aliases applied."""
    bases: List[str] = []
    for heritage in declaration.named_children:
        if heritage.type != "class_heritage":
            continue
        for clause in heritage.named_children:
            if clause.type != "extends_clause":
                continue
            for node in clause.named_children:
                target, arguments = node, None
                if node.type == "instantiation_expression" and node.named_children:
                    target = node.named_children[0]
                    arguments = next(
                        (child for child in node.named_children if child.type == "type_arguments"), None
                    )
                if target.type == "type_arguments":
                    if bases:
                        bases[-1] += context.render_type(target)[0]
                    continue
                if target.type not in {"identifier", "member_expression"}:
                    continue
                base = context.resolve_name(context.text(target))
                if arguments is not None:
                    base += context.render_type(arguments)[0]
                bases.append(base)
    return tuple(bases)


def _annotation_type(annotation: Optional[Node]) -> Optional[Node]:
    if annotation is None or annotation.type != "type_annotation":
        return None
    return next((child for child in annotation.named_children if child.type != "comment"), None)


def _unwrap(type_node: Node, context: _FileContext) -> Node:
    """Strip one recognised async wrapper; any other shape passes through."""
    if type_node.type != "generic_type":
        return type_node
    name_node = type_node.child_by_field_name("name")
    arguments = type_node.child_by_field_name("type_arguments")
    if name_node is None or arguments is None:
        return type_node
    if context.resolve_name(context.text(name_node)) not in ASYNC_WRAPPERS:
        return type_node
    inner = [child for child in arguments.named_children if child.type != "comment"]
    if len(inner) != 1:
        return type_node
    return inner[0]


def _type_parameter_names(node: Node, context: _FileContext) -> Tuple[str, ...]:
    type_parameters = node.child_by_field_name("type_parameters")
    if type_parameters is None:
        return ()
    names: List[str] = []
    for parameter in type_parameters.named_children:
        if parameter.type != "type_parameter":
            continue
        name_node = parameter.child_by_field_name("name")
        if name_node is not None:
            names.append(context.text(name_node))
    return tuple(names)


def _first_error(node: Node) -> Optional[Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


__all__ = [
    "FileDeclarations",
    "RawMethod",
    "RawParameter",
    "RawService",
    "TypeScriptParser",
]
