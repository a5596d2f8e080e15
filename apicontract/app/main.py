"""
apicontract - service assembly.

make_app() builds a FastAPI application serving a set of API components:

    app = make_app("todo", [CreateTodoAPI, ListTodosAPI])

Routes live at /<service><PATH>. Every route renders its own errors, so
each response is either schema-valid or a well-defined error body.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from apicontract.api.client import ClientFactory
from apicontract.config import Settings
from apicontract.observability import configure_logging
from apicontract.transaction import RetryingUnitOfWork, UnitOfWork, describe

from .dependencies import AppContext, get_settings
from .middleware import add_health_check, add_latency_tracker
from .registrator import ComponentRegistrator

logger = logging.getLogger(__name__)


def make_app(
    service: str | None = None,
    components: Iterable[Any] | Mapping[str, Any] = (),
    *,
    settings: Settings | None = None,
    unit_of_work: UnitOfWork | None = None,
    shared: dict[str, Any] | None = None,
    http_client_factory: ClientFactory | None = None,
) -> FastAPI:
    """
    Create the FastAPI application for a service.

    Args:
        service: Route prefix; defaults to settings.service_name
        components: API classes (or other components with register())
        settings: Defaults to get_settings()
        unit_of_work: Engine for TxAPI attempts; defaults to an in-memory one
        shared: Process-wide store handed to every handler
        http_client_factory: Builds the client used by API.call_api()

    Raises:
        DefinitionError: If any API declares an invalid contract
    """
    settings = settings if settings is not None else get_settings()
    service = service or settings.service_name
    configure_logging(settings)

    context = AppContext(
        settings=settings,
        unit_of_work=unit_of_work if unit_of_work is not None else RetryingUnitOfWork(),
        shared=shared if shared is not None else {},
    )
    if http_client_factory is not None:
        context.http_client_factory = http_client_factory

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {service} ({len(registrator.registry)} APIs)...")
        logger.info(f"Unit of work: {describe(context.unit_of_work)}")
        try:
            for api_cls in registrator.apis:
                await api_cls.setup(context)
        except Exception as e:
            logger.error(f"Failed to set up {service}: {e}", exc_info=True)
            raise

        yield

        logger.info(f"Shutting down {service}...")

    app = FastAPI(
        title=service,
        lifespan=lifespan,
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
        debug=settings.logging.report_error_detail,
    )

    add_latency_tracker(app, settings.latency_tracker)
    add_health_check(app, settings.health_check)

    registrator = ComponentRegistrator(app, service, context)
    registrator.register_components(components)

    app.state.context = context
    app.state.registrator = registrator
    return app


def serve(app: FastAPI, host: str = "0.0.0.0", port: int = 8000, **options: Any) -> None:
    """Run an app with uvicorn."""
    uvicorn.run(app, host=host, port=port, **options)


__all__ = [
    "make_app",
    "serve",
]
