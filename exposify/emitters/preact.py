"""Preact target: free async functions over a module-scoped fetch transport."""

from __future__ import annotations

from typing import Sequence

from ..models import MethodDescriptor, ServiceDescriptor
from .base import Target, call_arguments, parameter_list, render_template


class PreactTarget(Target):
    name = "preact"

    def render_method(self, service_name: str, method: MethodDescriptor) -> str:
        return render_template(
            "preact/method.ts.j2",
            method=method,
            params=parameter_list(method),
            call_args=call_arguments(service_name, method),
        )

    def render_service(
        self, service: ServiceDescriptor, imports: Sequence[str], rendered_methods: Sequence[str]
    ) -> str:
        # Functions are module level, so the class name only appears in call sites.
        return render_template(
            "preact/service.ts.j2",
            imports=list(imports),
            methods=list(rendered_methods),
        )

    def render_transport(self, endpoint: str) -> str:
        return render_template("preact/transport.ts.j2", endpoint=endpoint)


__all__ = ["PreactTarget"]
