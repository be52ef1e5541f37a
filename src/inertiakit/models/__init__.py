from __future__ import annotations

from inertiakit.models.context import PropertyContext, RenderContext
from inertiakit.models.page import PageDescriptor, ScrollMetadata, SsrResult

__all__ = [
    # context
    "RenderContext",
    "PropertyContext",
    # page
    "PageDescriptor",
    "ScrollMetadata",
    "SsrResult",
]
