"""Protocol interfaces for pluggable collaborators.

Prop contributors, the SSR gateway and the HTML shell renderer are referenced
through these protocols, not concrete classes. This allows:
- Host applications to hand in their own objects without subclassing
- Tests to use lightweight in-memory gateways instead of an HTTP service
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from inertiakit.models.context import PropertyContext, RenderContext
    from inertiakit.models.page import SsrResult


@runtime_checkable
class PropertiesProvider(Protocol):
    """Object that expands into several props.

    The key it was registered under is dropped and replaced by every key the
    provider returns. May return the mapping directly or an awaitable of it.
    """

    def to_inertia_properties(
        self, context: RenderContext
    ) -> Mapping[str, Any] | Awaitable[Mapping[str, Any]]: ...


@runtime_checkable
class PropertyProvider(Protocol):
    """Object that computes the value of the key it is registered under."""

    def to_inertia_property(self, context: PropertyContext) -> Any: ...


class GatewayProtocol(Protocol):
    """Interface for the server-side rendering gateway."""

    async def dispatch(self, page: dict[str, Any]) -> SsrResult | None: ...


class ShellRenderer(Protocol):
    """Renders the HTML document for a first (non-protocol) visit."""

    def __call__(
        self,
        *,
        page: dict[str, Any],
        ssr: SsrResult | None,
        root_view: str,
        element_id: str,
        use_script_element: bool,
    ) -> str: ...
