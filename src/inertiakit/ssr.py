"""Server-side rendering gateway.

Posts the page object to an external render service. Pre-rendering is an
optimisation: every failure (disabled, missing bundle, connection error,
timeout, bad status, malformed body) yields ``None`` and the page falls back to
client-side hydration. Failures are logged, never raised.

The gateway receives an httpx.AsyncClient via constructor injection. The
application lifespan owns the client lifecycle.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from inertiakit.models.page import SsrResult

if TYPE_CHECKING:
    from inertiakit.config import SsrSettings

log = structlog.get_logger()

DEFAULT_BUNDLE_PATHS: tuple[str, ...] = (
    "wwwroot/ssr/ssr.mjs",
    "wwwroot/ssr/ssr.js",
    "bootstrap/ssr/ssr.mjs",
    "bootstrap/ssr/ssr.js",
    "public/ssr/ssr.mjs",
    "public/ssr/ssr.js",
)


def build_http_client(settings: SsrSettings) -> httpx.AsyncClient:
    """Create the shared httpx client for the render service. Called once at startup."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": "inertiakit-ssr/1.0"},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def detect_bundle(base_path: str | Path | None = None, *custom_paths: str | None) -> Path | None:
    """Locate the SSR bundle.

    Custom paths are checked first (relative ones against ``base_path``), then
    the conventional locations. First match wins; None when nothing exists.
    """
    base = Path(base_path) if base_path is not None else Path.cwd()

    for candidate in (*custom_paths, *DEFAULT_BUNDLE_PATHS):
        if not candidate:
            continue
        path = Path(candidate)
        if not path.is_absolute():
            path = base / path
        if path.is_file():
            return path.resolve()
    return None


class HttpGateway:
    """SSR gateway implementing GatewayProtocol over HTTP."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: SsrSettings,
        *,
        base_path: str | Path | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._base_path = base_path

    @property
    def render_url(self) -> str:
        return f"{self._settings.url.rstrip('/')}/render"

    def bundle_path(self) -> Path | None:
        """The configured bundle, or an auto-detected one when none is configured."""
        if self._settings.bundle:
            path = Path(self._settings.bundle)
            if not path.is_absolute() and self._base_path is not None:
                path = Path(self._base_path) / path
            return path
        return detect_bundle(self._base_path)

    def should_dispatch(self) -> bool:
        if not self._settings.enabled:
            return False

        if self._settings.ensure_bundle_exists and self._settings.bundle:
            bundle = self.bundle_path()
            if bundle is None or not bundle.is_file():
                log.warning("ssr_bundle_missing", path=str(bundle))
                return False

        return True

    async def dispatch(self, page: dict[str, Any]) -> SsrResult | None:
        """Render ``page`` remotely. Returns None on any failure."""
        if not self.should_dispatch():
            return None

        try:
            response = await self._client.post(
                self.render_url,
                json=page,
                timeout=self._settings.timeout_seconds,
            )

            if not response.is_success:
                log.warning(
                    "ssr_dispatch_failed",
                    reason="bad_status",
                    status_code=response.status_code,
                )
                return None

            data = response.json()
            head = data.get("head") if isinstance(data, dict) else None
            body = data.get("body") if isinstance(data, dict) else None
            if not isinstance(head, list) or not isinstance(body, str):
                log.warning("ssr_dispatch_failed", reason="invalid_response")
                return None

            result = SsrResult(head="\n".join(str(part) for part in head), body=body)
            log.debug("ssr_dispatch_complete", component=page.get("component"))
            return result

        except httpx.TimeoutException:
            log.warning("ssr_dispatch_failed", reason="timeout", url=self.render_url)
            return None
        except httpx.HTTPError:
            log.warning("ssr_dispatch_failed", reason="network", url=self.render_url, exc_info=True)
            return None
        except ValueError:
            # Response body is not JSON
            log.warning("ssr_dispatch_failed", reason="invalid_response", exc_info=True)
            return None
        except Exception:
            log.error("ssr_dispatch_unexpected_error", exc_info=True)
            return None

    async def is_healthy(self) -> bool:
        """True when the render service answers its health endpoint."""
        try:
            response = await self._client.get(f"{self._settings.url.rstrip('/')}/health")
        except httpx.HTTPError:
            return False
        return response.is_success
