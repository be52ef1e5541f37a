"""Response factory.

``Inertia`` turns a component name and props bag into either the JSON page
object (protocol requests) or the HTML shell embedding it (first visits). One
instance lives on ``app.state.inertia`` for the application's lifetime; all
per-request data comes from the request itself.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from inertiakit import headers as h
from inertiakit.config import Settings
from inertiakit.directive import parse_reload_directive
from inertiakit.errors import ErrorCode, InertiaError
from inertiakit.page import PageBuilder
from inertiakit.resolver import PropertyResolver
from inertiakit.shell import render_shell
from inertiakit.state import get_shared_state

if TYPE_CHECKING:
    from starlette.requests import Request

    from inertiakit.models.page import PageDescriptor
    from inertiakit.protocols import GatewayProtocol, ShellRenderer

log = structlog.get_logger()

VersionProvider = Callable[[], str]


class Inertia:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        gateway: GatewayProtocol | None = None,
        shell: ShellRenderer = render_shell,
        resolver: PropertyResolver | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.gateway = gateway
        self._shell = shell
        self._resolver = resolver or PropertyResolver()
        self._builder = PageBuilder()
        self._version: str | VersionProvider = self.settings.version

    # ------------------------------------------------------------------
    # Asset version
    # ------------------------------------------------------------------

    def set_version(self, version: str | VersionProvider) -> None:
        """Set the asset version, or a callable evaluated on every request."""
        self._version = version

    def get_version(self) -> str:
        version = self._version() if callable(self._version) else self._version
        return version or ""

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def find_component_or_fail(self, component: str) -> None:
        """Raise COMPONENT_NOT_FOUND when page checks are enabled and no file matches."""
        pages = self.settings.pages
        if not pages.ensure_exist or not pages.paths:
            return

        for directory in pages.paths:
            for extension in pages.extensions:
                if (Path(directory) / f"{component}{extension}").is_file():
                    return

        raise InertiaError(
            code=ErrorCode.COMPONENT_NOT_FOUND,
            message=f"Inertia page component '{component}' not found.",
            suggestion=f"Looked in {', '.join(pages.paths)} for {', '.join(pages.extensions)}.",
        )

    async def build_page(
        self,
        request: Request,
        component: str,
        props: Mapping[str, Any] | None = None,
    ) -> PageDescriptor:
        self.find_component_or_fail(component)

        shared = get_shared_state(request)
        directive = parse_reload_directive(request.headers)

        resolved = await self._resolver.resolve(
            shared.merged_with(props),
            component=component,
            directive=directive,
            request=request,
        )

        encrypt = shared.encrypt_history_override
        if encrypt is None:
            encrypt = self.settings.history.encrypt

        page = self._builder.build(
            component=component,
            url=str(request.url),
            version=shared.version if shared.version is not None else self.get_version(),
            resolved=resolved,
            directive=directive,
            clear_history=shared.clear_history_requested,
            encrypt_history=encrypt,
            url_resolver=shared.url_resolver,
        )
        log.debug(
            "page_built",
            component=component,
            partial=resolved.partial,
            props=list(resolved.values),
        )
        return page

    async def render(
        self,
        request: Request,
        component: str,
        props: Mapping[str, Any] | None = None,
    ) -> Response:
        """Render ``component`` as JSON for protocol requests, HTML otherwise."""
        page = (await self.build_page(request, component, props)).to_payload()

        if parse_reload_directive(request.headers).is_inertia:
            return JSONResponse(page, headers={h.INERTIA: "true"})

        ssr = None
        if self.gateway is not None and self.settings.ssr.enabled:
            ssr = await self.gateway.dispatch(page)

        document = self._shell(
            page=page,
            ssr=ssr,
            root_view=get_shared_state(request).root_view or self.settings.root_view,
            element_id=self.settings.root_element_id,
            use_script_element=self.settings.use_script_element,
        )
        return HTMLResponse(document)

    def location(self, request: Request, url: str) -> Response:
        """Send the client to ``url`` with a full page visit.

        Protocol requests get 409 + X-Inertia-Location so the client router
        leaves the SPA; plain requests get an ordinary redirect.
        """
        if parse_reload_directive(request.headers).is_inertia:
            return Response(status_code=409, headers={h.LOCATION: url})
        return RedirectResponse(url, status_code=302)


def get_inertia(request: Request) -> Inertia:
    """Return the application's Inertia instance.

    Raises:
        InertiaError: STATE_NOT_INITIALIZED when the app was not built with
            create_app() and nothing set ``app.state.inertia``.
    """
    inertia = getattr(request.app.state, "inertia", None)
    if inertia is None:
        raise InertiaError(
            code=ErrorCode.STATE_NOT_INITIALIZED,
            message="No Inertia instance on app.state.",
            suggestion="Build the application with create_app() or set app.state.inertia.",
        )
    return inertia
