"""Angular target: injectable service classes returning Observables."""

from __future__ import annotations

from typing import Sequence

from ..models import MethodDescriptor, ServiceDescriptor
from .base import Target, call_arguments, parameter_list, render_template


class AngularTarget(Target):
    """Renders one ``@Injectable`` class per service backed by ``HttpClient``."""

    name = "angular"

    def render_method(self, service_name: str, method: MethodDescriptor) -> str:
        return render_template(
            "angular/method.ts.j2",
            method=method,
            params=parameter_list(method),
            call_args=call_arguments(service_name, method),
        )

    def render_service(
        self, service: ServiceDescriptor, imports: Sequence[str], rendered_methods: Sequence[str]
    ) -> str:
        return render_template(
            "angular/service.ts.j2",
            service=service,
            imports=list(imports),
            methods=list(rendered_methods),
        )

    def render_transport(self, endpoint: str) -> str:
        return render_template("angular/transport.ts.j2", endpoint=endpoint)


__all__ = ["AngularTarget"]
