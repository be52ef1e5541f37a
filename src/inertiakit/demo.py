"""Demo application: a small user directory exercising every prop flavour.

Served by ``inertiakit-demo``. Handlers read JSON bodies, as the client
router sends them.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError
from starlette.responses import RedirectResponse, Response
from starlette.routing import Route

from inertiakit.factory import get_inertia
from inertiakit.middleware import InertiaMiddleware
from inertiakit.models.page import ScrollMetadata
from inertiakit.props import always, defer, once, optional, scroll
from inertiakit.state import get_shared_state

if TYPE_CHECKING:
    from collections.abc import Mapping

    from starlette.requests import Request

FEED_PAGE_SIZE = 5
FEED_TOTAL_ITEMS = 23


class User(BaseModel):
    id: int = 0
    name: str
    email: str
    role: str = "User"
    created_at: datetime | None = None


class UserDirectory:
    """In-memory user store seeded with sample data."""

    def __init__(self) -> None:
        now = datetime.now(UTC)
        self._users = [
            User(id=1, name="Alice Johnson", email="alice@example.com", role="Admin",
                 created_at=now - timedelta(days=30)),
            User(id=2, name="Bob Smith", email="bob@example.com", created_at=now - timedelta(days=20)),
            User(id=3, name="Carol White", email="carol@example.com", created_at=now - timedelta(days=10)),
        ]
        self._next_id = 4

    def all(self, search: str = "") -> list[User]:
        needle = search.lower()
        return [u for u in self._users if needle in u.name.lower() or needle in u.email.lower()]

    def get(self, user_id: int) -> User | None:
        return next((u for u in self._users if u.id == user_id), None)

    def create(self, user: User) -> User:
        created = user.model_copy(update={"id": self._next_id, "created_at": datetime.now(UTC)})
        self._next_id += 1
        self._users.append(created)
        return created

    def update(self, user_id: int, user: User) -> bool:
        for index, existing in enumerate(self._users):
            if existing.id == user_id:
                self._users[index] = existing.model_copy(
                    update={"name": user.name, "email": user.email, "role": user.role}
                )
                return True
        return False

    def delete(self, user_id: int) -> bool:
        existing = self.get(user_id)
        if existing is None:
            return False
        self._users.remove(existing)
        return True


def _feed_page(page: int) -> dict[str, Any]:
    start = (page - 1) * FEED_PAGE_SIZE
    stop = min(start + FEED_PAGE_SIZE, FEED_TOTAL_ITEMS)
    return {
        "data": [{"id": n, "text": f"Activity #{n}"} for n in range(start + 1, stop + 1)],
        "page": page,
    }


def _feed_metadata(value: dict[str, Any]) -> ScrollMetadata:
    total_pages = -(-FEED_TOTAL_ITEMS // FEED_PAGE_SIZE)
    return ScrollMetadata.from_page_numbers(value["page"], total_pages)


def _validation_errors(exc: ValidationError) -> dict[str, str]:
    return {".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()}


def _user_id(request: Request) -> int:
    return int(request.path_params["user_id"])


class DemoMiddleware(InertiaMiddleware):
    def share(self, request: Request) -> Mapping[str, Any]:
        shared = dict(super().share(request))
        shared["appName"] = "Inertia Demo"
        return shared


def demo_routes(directory: UserDirectory | None = None) -> list[Route]:
    users = directory or UserDirectory()

    async def home(request: Request) -> Response:
        return await get_inertia(request).render(
            request, "Home/Index", {"message": "Welcome to the Inertia demo."}
        )

    async def index(request: Request) -> Response:
        search = request.query_params.get("search", "")
        feed_page = max(int(request.query_params.get("page", "1") or 1), 1)

        async def stats() -> dict[str, int]:
            await asyncio.sleep(0.01)
            return {"totalUsers": len(users.all()), "activeToday": 2}

        async def activity() -> list[str]:
            await asyncio.sleep(0.01)
            return [f"{u.name} signed in" for u in users.all()]

        return await get_inertia(request).render(
            request,
            "Users/Index",
            {
                "users": lambda: [u.model_dump(mode="json") for u in users.all(search)],
                "filters": {"search": search},
                "stats": optional(stats),
                "activity": defer(activity, group="sidebar"),
                "roles": once(lambda: ["Admin", "User"], ttl_seconds=3600),
                "feed": scroll(lambda: _feed_page(feed_page), metadata=_feed_metadata),
            },
        )

    async def create(request: Request) -> Response:
        return await get_inertia(request).render(request, "Users/Create", {})

    async def store(request: Request) -> Response:
        try:
            user = User.model_validate(await request.json())
        except ValidationError as exc:
            get_shared_state(request).set_errors(_validation_errors(exc))
            return await create(request)

        users.create(user)
        return RedirectResponse("/users", status_code=302)

    async def show(request: Request) -> Response:
        user = users.get(_user_id(request))
        if user is None:
            return Response("Not Found", status_code=404)
        return await get_inertia(request).render(
            request,
            "Users/Show",
            {
                "user": user.model_dump(mode="json"),
                "timestamp": always(lambda: datetime.now(UTC).isoformat()),
            },
        )

    async def update(request: Request) -> Response:
        try:
            user = User.model_validate(await request.json())
        except ValidationError as exc:
            get_shared_state(request).set_errors(_validation_errors(exc))
            existing = users.get(_user_id(request))
            return await get_inertia(request).render(
                request, "Users/Edit", {"user": existing.model_dump(mode="json") if existing else None}
            )

        if not users.update(_user_id(request), user):
            return Response("Not Found", status_code=404)
        return RedirectResponse("/users", status_code=302)

    async def destroy(request: Request) -> Response:
        if not users.delete(_user_id(request)):
            return Response("Not Found", status_code=404)
        return RedirectResponse("/users", status_code=302)

    async def touch(request: Request) -> Response:
        # Nothing to render: the middleware sends the client back where it came from.
        if users.get(_user_id(request)) is None:
            return Response("Not Found", status_code=404)
        return Response(status_code=200)

    async def docs(request: Request) -> Response:
        return get_inertia(request).location(request, "https://inertiajs.com/")

    return [
        Route("/", home, methods=["GET"]),
        Route("/users", index, methods=["GET"]),
        Route("/users", store, methods=["POST"]),
        Route("/users/create", create, methods=["GET"]),
        Route("/users/{user_id:int}", show, methods=["GET"]),
        Route("/users/{user_id:int}", update, methods=["PUT"]),
        Route("/users/{user_id:int}", destroy, methods=["DELETE"]),
        Route("/users/{user_id:int}/touch", touch, methods=["POST"]),
        Route("/docs", docs, methods=["GET"]),
    ]
