"""Application assembly and demo server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Build the Starlette app with InertiaMiddleware and an Inertia instance
- Own the SSR httpx client through the lifespan
- Run the demo application under uvicorn
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware

from inertiakit import __version__
from inertiakit.config import Settings
from inertiakit.factory import Inertia
from inertiakit.middleware import InertiaMiddleware
from inertiakit.shell import render_shell
from inertiakit.ssr import HttpGateway, build_http_client

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Sequence

    from starlette.routing import BaseRoute

    from inertiakit.protocols import GatewayProtocol, ShellRenderer

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    routes: Sequence[BaseRoute] = (),
    middleware_class: type[InertiaMiddleware] = InertiaMiddleware,
    gateway: GatewayProtocol | None = None,
    shell: ShellRenderer | None = None,
) -> Starlette:
    """Build a Starlette app speaking the Inertia protocol.

    When no gateway is given and SSR is enabled, the lifespan creates an
    HttpGateway backed by a shared httpx client and closes it on shutdown.
    """
    settings = settings or Settings()
    inertia = Inertia(settings, gateway=gateway, shell=shell or render_shell)

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        http_client = None
        if inertia.gateway is None and settings.ssr.enabled:
            http_client = build_http_client(settings.ssr)
            inertia.gateway = HttpGateway(http_client, settings.ssr)

        log.info(
            "app_started",
            version=__version__,
            asset_version=inertia.get_version(),
            ssr_enabled=settings.ssr.enabled,
        )

        try:
            yield
        finally:
            if http_client is not None:
                inertia.gateway = None
                await http_client.aclose()
            log.info("app_stopping")

    app = Starlette(
        routes=list(routes),
        middleware=[Middleware(middleware_class, inertia=inertia)],
        lifespan=lifespan,
    )
    app.state.inertia = inertia
    return app


def main() -> None:
    """Run the demo application."""
    from inertiakit.demo import DemoMiddleware, demo_routes

    settings = Settings()
    setup_logging(settings)

    app = create_app(settings, routes=demo_routes(), middleware_class=DemoMiddleware)

    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


if __name__ == "__main__":
    main()
