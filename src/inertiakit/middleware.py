"""Protocol middleware.

InertiaMiddleware wraps the host application and applies the request-level
protocol rules around every handler:
  - attaches a fresh SharedState and seeds it with the shared props
  - answers stale-asset GET visits with 409 + X-Inertia-Location
  - rewrites empty 200 responses into a redirect back
  - turns 302 into 303 after PUT/PATCH/DELETE
  - adds ``Vary: X-Inertia`` to every response

Implemented as pure ASGI (not BaseHTTPMiddleware) so streaming responses are
never buffered. Subclass it and override the hooks (``share``, ``version``,
``root_view``, ``url_resolver``, ``on_version_change``, ``on_empty_response``)
to customise per-request behavior. Any of them except ``version``,
``root_view`` and ``url_resolver`` may be a coroutine.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

import structlog
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from inertiakit import headers as h
from inertiakit.directive import parse_reload_directive
from inertiakit.props import always
from inertiakit.state import get_shared_state, scope_errors
from inertiakit.version import (
    VersionState,
    check_version,
    coerce_redirect_status,
    empty_response_location,
    version_mismatch_response,
)

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from inertiakit.factory import Inertia

log = structlog.get_logger()


class InertiaMiddleware:
    def __init__(self, app: ASGIApp, *, inertia: Inertia) -> None:
        self.app = app
        self.inertia = inertia

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def share(self, request: Request) -> Mapping[str, Any]:
        """Props shared with every page rendered during this request.

        The default shares the validation errors, scoped to the requested
        error bag. Overrides should extend ``super().share(request)``. They may
        also be coroutines.
        """
        shared = get_shared_state(request)
        error_bag = parse_reload_directive(request.headers).error_bag
        return {"errors": always(lambda: scope_errors(shared.errors, error_bag))}

    def version(self, request: Request) -> str:
        """Asset version checked against the client's and stamped on the page."""
        return self.inertia.get_version()

    def root_view(self, request: Request) -> str | None:
        return None

    def url_resolver(self, request: Request) -> Callable[[], str] | None:
        """Override the page ``url``; None keeps the full request URL."""
        return None

    def on_version_change(self, request: Request) -> Response:
        return version_mismatch_response(str(request.url))

    def on_empty_response(self, request: Request) -> Response:
        location = empty_response_location(request.headers.get("referer"))
        return RedirectResponse(location, status_code=coerce_redirect_status(request.method, 302))

    # ------------------------------------------------------------------
    # ASGI
    # ------------------------------------------------------------------

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        directive = parse_reload_directive(request.headers)
        method = request.method

        shared = get_shared_state(request)
        shared.share_many(await _maybe_await(self.share(request)))
        root_view = self.root_view(request)
        if root_view:
            shared.set_root_view(root_view)
        resolver = self.url_resolver(request)
        if resolver is not None:
            shared.resolve_url_using(resolver)

        current = self.version(request)
        shared.set_version(current)

        if directive.is_inertia:
            if check_version(method, directive.version, current) is VersionState.MISMATCH:
                log.info(
                    "version_mismatch",
                    requested=directive.version,
                    current=current,
                    path=request.url.path,
                )
                response = await _maybe_await(self.on_version_change(request))
                response.headers.add_vary_header(h.INERTIA)
                await response(scope, receive, send)
                return

        start: Message | None = None
        replaced = False

        async def send_wrapper(message: Message) -> None:
            nonlocal start, replaced

            if replaced:
                return

            if message["type"] == "http.response.start":
                # Held until the next message shows whether the response is empty.
                start = message
                return

            if start is not None:
                held, start = start, None
                status = held["status"]

                if (
                    directive.is_inertia
                    and status == 200
                    and message["type"] == "http.response.body"
                    and not message.get("body")
                    and not message.get("more_body", False)
                ):
                    replaced = True
                    log.debug("empty_response_replaced", path=request.url.path)
                    response = await _maybe_await(self.on_empty_response(request))
                    response.headers.add_vary_header(h.INERTIA)
                    await response(scope, receive, send)
                    return

                if directive.is_inertia:
                    held["status"] = coerce_redirect_status(method, status)
                MutableHeaders(scope=held).add_vary_header(h.INERTIA)
                await send(held)

            await send(message)

        await self.app(scope, receive, send_wrapper)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
