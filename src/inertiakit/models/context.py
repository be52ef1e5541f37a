from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RenderContext:
    """Handed to properties providers while a component is being rendered."""

    component: str
    request: Any  # Usually a starlette Request; None outside of HTTP


@dataclass(frozen=True)
class PropertyContext:
    """Handed to a single-property provider while its key is being resolved."""

    key: str  # Dotted path for nested props, e.g. "auth.user"
    props: Mapping[str, Any]
    request: Any
