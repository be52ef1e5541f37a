"""Integration test fixtures.

Apps are driven in-process through httpx.ASGITransport. The transport does not
run the lifespan, so no SSR client is created unless a test passes a gateway.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from inertiakit.demo import DemoMiddleware, UserDirectory, demo_routes
from inertiakit.server import create_app

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.applications import Starlette

    from inertiakit.config import Settings


@pytest.fixture()
def directory() -> UserDirectory:
    return UserDirectory()


@pytest.fixture()
def demo_app(settings: Settings, directory: UserDirectory) -> Starlette:
    return create_app(settings, routes=demo_routes(directory), middleware_class=DemoMiddleware)


@pytest.fixture()
async def demo_client(demo_app: Starlette) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=demo_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://localhost") as client:
        yield client
