"""
Component registration.

Components (API classes, or anything with a register(registrator) method)
register themselves with a ComponentRegistrator, which compiles each API
class into an APIDefinition and mounts its routes on the FastAPI app.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from fastapi import Request as HTTPRequest
from starlette.responses import Response as StarletteResponse

from apicontract.api.classifier import render_error
from apicontract.api.definition import APIDefinition, DefinitionError, compile_definition
from apicontract.api.handler import handle_request
from apicontract.api.request import RawRequest, Reply, Response
from apicontract.observability import RequestLogger

from .http import to_http_response, to_raw_request, to_router_path

if TYPE_CHECKING:
    from apicontract.api.handler import API

    from .dependencies import AppContext

logger = logging.getLogger(__name__)


class APIRegistry:
    """Ordered registry of compiled API definitions."""

    def __init__(self) -> None:
        self._by_name: dict[str, APIDefinition] = {}
        self._by_route: dict[tuple[str, str], APIDefinition] = {}

    def add(self, definition: APIDefinition) -> None:
        route = (definition.method, definition.full_path)
        if definition.name in self._by_name:
            raise DefinitionError(f"API {definition.name} is already registered")
        if route in self._by_route:
            existing = self._by_route[route]
            raise DefinitionError(
                f"{definition.method} {definition.full_path} is already served by {existing.name}"
            )
        self._by_name[definition.name] = definition
        self._by_route[route] = definition

    def get(self, name: str) -> APIDefinition | None:
        return self._by_name.get(name)

    def find(self, method: str, full_path: str) -> APIDefinition | None:
        return self._by_route.get((method.upper(), full_path))

    def __iter__(self) -> Iterator[APIDefinition]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)


class ComponentRegistrator:
    """
    Registers components with an app.

    Example:
        registrator = ComponentRegistrator(app, "todo", context)
        registrator.register_components([CreateTodoAPI, ListTodosAPI])
    """

    def __init__(self, app: FastAPI, service: str, context: AppContext):
        self.app = app
        self.service = service
        self.context = context
        self.registry = APIRegistry()

    @property
    def apis(self) -> list[type[API]]:
        return [definition.handler_cls for definition in self.registry]

    def register_components(self, components: Iterable[Any] | Mapping[str, Any]) -> None:
        items = components.values() if isinstance(components, Mapping) else components
        for component in items:
            register = getattr(component, "register", None)
            if register is not None:
                register(self)

    def register_api(self, api_cls: type[API]) -> APIDefinition:
        """
        Compile an API class and mount its routes.

        Raises:
            DefinitionError: With the API class name prefixed
        """
        try:
            definition = compile_definition(api_cls, self.service)
            self.registry.add(definition)
        except DefinitionError as e:
            logger.error(f"failed to register API: {api_cls.__name__}")
            raise DefinitionError(f"{api_cls.__name__}: {e}") from e

        self._add_routes(definition)
        logger.debug(f"[registrator] {definition.method} {definition.full_path} -> {definition.name}")
        return definition

    def _add_routes(self, definition: APIDefinition) -> None:
        context = self.context
        route_path = to_router_path(definition.full_path)

        async def endpoint(request: HTTPRequest) -> StarletteResponse:
            reply = Reply()
            raw: RawRequest | None = None
            try:
                raw = await to_raw_request(request)
                response = await handle_request(definition, raw, context, reply)
            except Exception as err:
                response = render_error(err, context.settings, definition, raw, reply.headers)
            _log_completion(definition, raw, response)
            return to_http_response(response)

        self.app.add_route(
            route_path,
            endpoint,
            methods=[definition.method],
            name=definition.name,
            include_in_schema=False,
        )

        if definition.cors is not None:
            cors = definition.cors

            async def preflight(request: HTTPRequest) -> StarletteResponse:
                return StarletteResponse(headers=cors.header_values(context.settings))

            self.app.add_route(
                route_path,
                preflight,
                methods=["OPTIONS"],
                name=f"{definition.name}Preflight",
                include_in_schema=False,
            )


def _log_completion(
    definition: APIDefinition,
    raw: RawRequest | None,
    response: Response,
) -> None:
    if raw is None:
        RequestLogger(api_name=definition.name).request_completed(response.status, 0.0)
        return
    RequestLogger(request_id=raw.request_id, api_name=definition.name).request_completed(
        response.status, raw.elapsed_ms
    )


__all__ = [
    "APIRegistry",
    "ComponentRegistrator",
]
