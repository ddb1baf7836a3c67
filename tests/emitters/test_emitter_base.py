"""Tests for the shared client emitter."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest

from exposify.config import GeneratorOptions
from exposify.emitters import ClientEmitter, PreactTarget
from exposify.emitters.base import (
    MODELS_FILENAME,
    TRANSPORT_FILENAME,
    call_arguments,
    collect_imports,
    parameter_list,
    payload_expression,
    plan_service_files,
    render_models,
    service_filename,
    ts_string,
)
from exposify.errors import OutputError
from exposify.models import (
    AnalysisResult,
    MethodDescriptor,
    ParameterDescriptor,
    PropertyDescriptor,
    ServiceDescriptor,
    TypeDescriptor,
    TypeKind,
)


def _names(signature: str) -> tuple[str, ...]:
    return tuple(dict.fromkeys(re.findall(r"[A-Za-z_]\w*", signature)))


def _method(name: str, *params: tuple[str, str], returns: str = "void") -> MethodDescriptor:
    return MethodDescriptor(
        name=name,
        parameters=tuple(
            ParameterDescriptor(name=p, type=t, references=_names(t)) for p, t in params
        ),
        return_type=returns,
        return_references=_names(returns),
    )


def _record(name: str, *props: PropertyDescriptor, extends: tuple[str, ...] = ()) -> TypeDescriptor:
    return TypeDescriptor(
        name=name,
        kind=TypeKind.RECORD,
        properties=props,
        source_file="models.ts",
        source_code=f"class {name} {{}}",
        extends=extends,
    )


def _orders_result() -> AnalysisResult:
    service = ServiceDescriptor(
        class_name="Orders",
        methods=(
            _method("list", returns="Order[]"),
            _method("create", ("dto", "NewOrder"), returns="Order"),
            _method("move", ("id", "string"), ("target", "Warehouse"), returns="boolean"),
        ),
        source_file="orders.service.ts",
    )
    types = (
        _record("Order", PropertyDescriptor("id", "string")),
        _record("NewOrder", PropertyDescriptor("note", "string", optional=True)),
        _record("Warehouse"),
    )
    return AnalysisResult(services=(service,), types=types)


def _options(tmp_path: Path, **overrides: object) -> GeneratorOptions:
    values: dict[str, object] = {
        "inputs": [],
        "output": tmp_path / "out",
        "target": "preact",
        "endpoint": "/rpc/v1",
    }
    values.update(overrides)
    return GeneratorOptions(**values)  # type: ignore[arg-type]


def test_payload_follows_marshalling_convention() -> None:
    assert payload_expression(_method("list")) is None
    assert payload_expression(_method("get", ("id", "string"))) == "id"
    assert (
        payload_expression(_method("move", ("id", "string"), ("to", "string"), ("at", "Date")))
        == "{ id, to, at }"
    )


def test_call_arguments_use_qualified_name() -> None:
    assert call_arguments("Orders", _method("list")) == "'Orders.list'"
    assert call_arguments("Orders", _method("get", ("id", "string"))) == "'Orders.get', id"
    assert (
        call_arguments("Orders", _method("move", ("a", "string"), ("b", "number")))
        == "'Orders.move', { a, b }"
    )


def test_parameter_list_marks_optional_parameters() -> None:
    method = MethodDescriptor(
        name="search",
        parameters=(
            ParameterDescriptor(name="term", type="string"),
            ParameterDescriptor(name="limit", type="number", optional=True),
        ),
        return_type="string[]",
    )
    assert parameter_list(method) == "term: string, limit?: number"


def test_ts_string_escapes_quotes() -> None:
    assert ts_string("/rpc/v1") == "'/rpc/v1'"
    assert ts_string("it's") == "'it\\'s'"


def test_collect_imports_in_first_reference_order() -> None:
    result = _orders_result()
    imports = collect_imports(result.services[0], result.type_names())
    assert imports == ["Order", "NewOrder", "Warehouse"]


def test_collect_imports_skips_unknown_and_builtin_names() -> None:
    service = ServiceDescriptor(
        class_name="Files",
        methods=(
            _method("upload", ("file", "Blob"), ("meta", "Record<string, Meta>"), returns="Stored"),
            _method("stamp", returns="Date"),
        ),
        source_file="files.ts",
    )
    assert collect_imports(service, ["Meta", "Date"]) == ["Meta"]


@pytest.mark.parametrize(
    ("class_name", "expected"),
    [
        ("Orders", "orders.service.ts"),
        ("OrdersService", "orders.service.ts"),
        ("OrderItemsService", "order-items.service.ts"),
        ("HTTPGateway", "http-gateway.service.ts"),
    ],
)
def test_service_filename(class_name: str, expected: str) -> None:
    assert service_filename(class_name) == expected


def test_render_models_converts_records_and_passes_other_kinds_through() -> None:
    types = (
        _record(
            "Order",
            PropertyDescriptor("id", "string"),
            PropertyDescriptor("note", "string", optional=True),
        ),
        TypeDescriptor(
            name="Status",
            kind=TypeKind.ENUMERATION,
            properties=(),
            source_file="status.ts",
            source_code="enum Status {\n  Open = 'open',\n}",
        ),
    )
    text = render_models(types)
    assert "export interface Order {\n  id: string;\n  note?: string;\n}" in text
    assert "export enum Status {\n  Open = 'open',\n}" in text


def test_generate_writes_transport_models_and_services(tmp_path: Path) -> None:
    report = ClientEmitter(PreactTarget()).generate(_orders_result(), _options(tmp_path))

    out = tmp_path / "out"
    assert report.transport == out / TRANSPORT_FILENAME
    assert report.models == out / MODELS_FILENAME
    assert report.services == [out / "services" / "orders.service.ts"]
    for path in report.files:
        text = path.read_text(encoding="utf-8")
        assert text.startswith("/**\n * Auto-generated by exposify-codegen.")
        assert text.endswith("}\n") or text.endswith(";\n")
    assert "let endpoint = '/rpc/v1';" in (out / TRANSPORT_FILENAME).read_text(encoding="utf-8")


def test_generate_without_services_writes_no_service_files(tmp_path: Path) -> None:
    report = ClientEmitter(PreactTarget()).generate(AnalysisResult(), _options(tmp_path))

    assert report.services == []
    assert not (tmp_path / "out" / "services").exists()
    assert (tmp_path / "out" / MODELS_FILENAME).read_text(encoding="utf-8").endswith("export {};\n")


def test_regeneration_overwrites_and_is_byte_identical(tmp_path: Path) -> None:
    fresh = tmp_path / "fresh"
    reused = tmp_path / "reused"
    emitter = ClientEmitter(PreactTarget())

    emitter.generate(_orders_result(), _options(tmp_path, output=fresh))
    (reused / "services").mkdir(parents=True)
    (reused / "services" / "orders.service.ts").write_text("stale content\n" * 50, encoding="utf-8")
    emitter.generate(_orders_result(), _options(tmp_path, output=reused))
    emitter.generate(_orders_result(), _options(tmp_path, output=reused))

    for relative in (TRANSPORT_FILENAME, MODELS_FILENAME, "services/orders.service.ts"):
        assert (fresh / relative).read_bytes() == (reused / relative).read_bytes()


def test_unwritable_output_raises_output_error(tmp_path: Path) -> None:
    blocker = tmp_path / "out"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(OutputError):
        ClientEmitter(PreactTarget()).generate(_orders_result(), _options(tmp_path))


def test_collect_imports_ignores_object_literal_keys() -> None:
    service = ServiceDescriptor(
        class_name="Search",
        methods=(
            MethodDescriptor(
                name="find",
                parameters=(ParameterDescriptor(name="filter", type="{ Order: string }"),),
                return_type="number",
            ),
        ),
        source_file="search.ts",
    )
    assert collect_imports(service, ["Order"]) == []


def test_render_models_keeps_record_base_classes() -> None:
    types = (
        _record("Entity", PropertyDescriptor("id", "string")),
        _record("Order", PropertyDescriptor("total", "number"), extends=("Entity",)),
        _record("Page", PropertyDescriptor("items", "Order[]"), extends=("Window<Order>",)),
    )
    text = render_models(types)
    assert "export interface Order extends Entity {\n  total: number;\n}" in text
    assert "export interface Page {\n  items: Order[];\n}" in text


def _service(class_name: str, method: str) -> ServiceDescriptor:
    return ServiceDescriptor(
        class_name=class_name, methods=(_method(method, returns="boolean"),), source_file="a.ts"
    )


def test_service_file_names_are_distinct_when_suffix_stripping_collides() -> None:
    planned = plan_service_files([_service("OrdersService", "archive"), _service("Orders", "list")])
    assert planned == {
        "OrdersService": "orders-service.service.ts",
        "Orders": "orders.service.ts",
    }


def test_generate_writes_one_file_per_service_on_name_collision(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    result = AnalysisResult(services=(_service("Orders", "list"), _service("OrdersService", "archive")))
    caplog.set_level(logging.WARNING, logger="exposify")

    report = ClientEmitter(PreactTarget()).generate(result, _options(tmp_path))

    services_dir = tmp_path / "out" / "services"
    assert report.services == [
        services_dir / "orders.service.ts",
        services_dir / "orders-service.service.ts",
    ]
    assert "'Orders.list'" in report.services[0].read_text(encoding="utf-8")
    assert "'OrdersService.archive'" in report.services[1].read_text(encoding="utf-8")
    assert "OrdersService" in caplog.text


def test_unavoidable_file_name_collision_writes_nothing(tmp_path: Path) -> None:
    result = AnalysisResult(services=(_service("Orders", "list"), _service("ORDERS", "purge")))

    with pytest.raises(OutputError) as excinfo:
        ClientEmitter(PreactTarget()).generate(result, _options(tmp_path))

    assert "Orders" in str(excinfo.value) and "ORDERS" in str(excinfo.value)
    assert not (tmp_path / "out").exists()
