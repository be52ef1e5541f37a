"""End-to-end tests against the demo application."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import respx

from inertiakit.config import Settings
from inertiakit.demo import DemoMiddleware, demo_routes
from inertiakit.server import create_app
from inertiakit.testing import AssertablePage, reload_headers

if TYPE_CHECKING:
    from inertiakit.demo import UserDirectory


class TestUsersIndex:
    async def test_first_visit_renders_html_shell(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.get("/users")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        (
            AssertablePage.from_response(response)
            .with_component("Users/Index")
            .with_url("http://localhost/users")
            .has("users", count=3)
            .missing("stats")
        )

    async def test_full_load(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.get("/users", headers=reload_headers(version="v1"))
        page = (
            AssertablePage.from_response(response)
            .with_component("Users/Index")
            .where("appName", "Inertia Demo")
            .where("filters", {"search": ""})
            .has("users", count=3)
            .has("roles")
            .has("feed.data", count=5)
            .missing("stats")
            .missing("activity")
            .deferred("activity", group="sidebar")
        )
        assert page.page["onceProps"]["roles"]["prop"] == "roles"
        assert page.page["scrollProps"]["feed"]["nextPage"] == 2
        assert "mergeProps" not in page.page

    async def test_partial_reload_only_users(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.get(
            "/users", headers=reload_headers("Users/Index", only=["users"], version="v1")
        )
        page = AssertablePage.from_response(response).has("users").missing("filters")
        assert set(page.props) == {"users", "errors"}
        assert "deferredProps" not in page.page

    async def test_partial_reload_optional_and_deferred(
        self, demo_client: httpx.AsyncClient
    ) -> None:
        response = await demo_client.get(
            "/users", headers=reload_headers("Users/Index", only=["stats", "activity"])
        )
        (
            AssertablePage.from_response(response)
            .where("stats", {"totalUsers": 3, "activeToday": 2})
            .has("activity", count=3)
            .missing("users")
        )

    async def test_partial_for_other_component_is_full_load(
        self, demo_client: httpx.AsyncClient
    ) -> None:
        response = await demo_client.get(
            "/users", headers=reload_headers("Dashboard", only=["stats"])
        )
        AssertablePage.from_response(response).has("users").has("filters").missing("stats")

    async def test_cached_once_prop_skipped(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.get("/users", headers=reload_headers(except_once=["roles"]))
        page = AssertablePage.from_response(response).missing("roles")
        assert "onceProps" not in page.page

    async def test_scroll_page_merges(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.get(
            "/users?page=5", headers=reload_headers("Users/Index", only=["feed"])
        )
        page = AssertablePage.from_response(response).with_count("feed.data", 3)
        assert page.page["mergeProps"] == ["feed.data"]
        assert page.page["scrollProps"]["feed"]["nextPage"] is None

    async def test_scroll_prepend_intent(self, demo_client: httpx.AsyncClient) -> None:
        headers = reload_headers("Users/Index", only=["feed"], scroll_intent="prepend")
        response = await demo_client.get("/users?page=2", headers=headers)
        assert response.json()["prependProps"] == ["feed.data"]

    async def test_search_filter(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.get("/users?search=bob", headers=reload_headers())
        (
            AssertablePage.from_response(response)
            .with_count("users", 1)
            .where("users.0.name", "Bob Smith")
        )


class TestUserWrites:
    async def test_store_redirects(
        self, demo_client: httpx.AsyncClient, directory: UserDirectory
    ) -> None:
        response = await demo_client.post(
            "/users", json={"name": "Dan", "email": "dan@example.com"}, headers=reload_headers()
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/users"
        assert [u.name for u in directory.all()][-1] == "Dan"

    async def test_store_validation_errors(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.post(
            "/users", json={"name": "Dan"}, headers=reload_headers(error_bag="createUser")
        )
        assert response.status_code == 200
        (
            AssertablePage.from_response(response)
            .with_component("Users/Create")
            .has("errors.createUser.email")
        )

    async def test_update_redirect_is_303(
        self, demo_client: httpx.AsyncClient, directory: UserDirectory
    ) -> None:
        response = await demo_client.put(
            "/users/2",
            json={"name": "Robert", "email": "bob@example.com"},
            headers=reload_headers(),
        )
        assert response.status_code == 303
        user = directory.get(2)
        assert user is not None and user.name == "Robert"

    async def test_delete_redirect_is_303(
        self, demo_client: httpx.AsyncClient, directory: UserDirectory
    ) -> None:
        response = await demo_client.delete("/users/3", headers=reload_headers())
        assert response.status_code == 303
        assert directory.get(3) is None

    async def test_unknown_user(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.delete("/users/99", headers=reload_headers())
        assert response.status_code == 404

    async def test_touch_redirects_back(self, demo_client: httpx.AsyncClient) -> None:
        headers = {**reload_headers(), "Referer": "http://localhost/users/1"}
        response = await demo_client.post("/users/1/touch", headers=headers)
        assert response.status_code == 302
        assert response.headers["location"] == "http://localhost/users/1"


class TestOtherPages:
    async def test_show_always_includes_timestamp(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.get(
            "/users/1", headers=reload_headers("Users/Show", only=["nothing"])
        )
        AssertablePage.from_response(response).has("timestamp").missing("user")

    async def test_external_location(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.get("/docs", headers=reload_headers())
        assert response.status_code == 409
        assert response.headers["x-inertia-location"] == "https://inertiajs.com/"

    async def test_stale_assets(self, demo_client: httpx.AsyncClient) -> None:
        response = await demo_client.get("/", headers=reload_headers(version="old"))
        assert response.status_code == 409
        assert response.headers["x-inertia-location"] == "http://localhost/"


class TestServerSideRendering:
    async def test_html_uses_render_service(self) -> None:
        settings = Settings(version="v1")
        app = create_app(settings, routes=demo_routes(), middleware_class=DemoMiddleware)

        with respx.mock:
            respx.post("http://127.0.0.1:13714/render").mock(
                return_value=httpx.Response(
                    200, json={"head": ["<title>Home</title>"], "body": "<div id=\"app\">ok</div>"}
                )
            )
            # Run the lifespan so the SSR client is created and closed.
            async with app.router.lifespan_context(app):
                transport = httpx.ASGITransport(app=app)
                async with httpx.AsyncClient(transport=transport, base_url="http://localhost") as client:
                    response = await client.get("/")

        assert "<title>Home</title>" in response.text
        assert '<div id="app">ok</div>' in response.text
        assert app.state.inertia.gateway is None

    async def test_render_service_down_falls_back(self) -> None:
        settings = Settings(version="v1")
        app = create_app(settings, routes=demo_routes(), middleware_class=DemoMiddleware)

        with respx.mock:
            respx.post("http://127.0.0.1:13714/render").mock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            async with app.router.lifespan_context(app):
                transport = httpx.ASGITransport(app=app)
                async with httpx.AsyncClient(transport=transport, base_url="http://localhost") as client:
                    response = await client.get("/")

        AssertablePage.from_response(response).with_component("Home/Index")
