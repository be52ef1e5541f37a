"""Shared test fixtures for the inertiakit test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from starlette.requests import Request

from inertiakit.config import Settings
from inertiakit.directive import ReloadDirective
from inertiakit.props import optional

RequestFactory = Callable[..., Request]


@pytest.fixture()
def settings() -> Settings:
    """Settings with a fixed asset version and SSR turned off."""
    return Settings(version="v1", ssr={"enabled": False})


@pytest.fixture()
def full_load() -> ReloadDirective:
    return ReloadDirective(is_inertia=True)


@pytest.fixture()
def users_props() -> dict[str, Any]:
    """Props of the Users/Index page: one optional prop among plain values."""
    return {
        "users": [{"id": 1, "name": "Alice"}],
        "filters": {"search": ""},
        "stats": optional(lambda: {"total": 1}),
    }


@pytest.fixture()
def make_request() -> RequestFactory:
    """Build bare Starlette requests for code that only reads headers, URL and state."""

    def _make(
        path: str = "/",
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        query: str = "",
    ) -> Request:
        scope = {
            "type": "http",
            "method": method,
            "scheme": "http",
            "server": ("testserver", 80),
            "path": path,
            "root_path": "",
            "query_string": query.encode(),
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
            "state": {},
        }
        return Request(scope)

    return _make
