"""Prop specifications.

A prop is one ``PropertySpec``: a resolvable value tagged with its calling
convention, plus orthogonal behavior flags. Flags compose freely, so a prop can
be deferred *and* mergeable *and* once without a dedicated class for each
combination.

Specs are immutable; the chaining helpers return modified copies::

    defer(load_comments, group="sidebar").merge().once(ttl_seconds=3600)
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Literal

from inertiakit.errors import ErrorCode, InertiaError
from inertiakit.models.page import ScrollMetadata
from inertiakit.protocols import PropertiesProvider, PropertyProvider

DEFAULT_DEFER_GROUP = "default"
DEFAULT_SCROLL_WRAPPER = "data"

ScrollMetadataSource = ScrollMetadata | Callable[[Any], ScrollMetadata | None]


class PropKind(StrEnum):
    STATIC = "static"
    SYNC = "sync"
    ASYNC = "async"
    CONTRIBUTOR = "contributor"


@dataclass(frozen=True)
class MergeBehavior:
    path: str | None = None  # Merge at "<key>.<path>" instead of the key itself
    deep: bool = False
    only_on_partial: bool = False
    prepend: bool = False


@dataclass(frozen=True)
class OncePolicy:
    ttl_seconds: float | None = None  # None: cached by the client until reset


@dataclass(frozen=True)
class ScrollBehavior:
    wrapper: str = DEFAULT_SCROLL_WRAPPER
    metadata: ScrollMetadataSource | None = None


@dataclass(frozen=True)
class PropertySpec:
    value: Any
    kind: PropKind = PropKind.STATIC
    always: bool = False
    ignore_first_load: bool = False
    defer_group: str | None = None
    merging: MergeBehavior | None = None
    once_policy: OncePolicy | None = None
    scrolling: ScrollBehavior | None = None

    def __post_init__(self) -> None:
        if self.defer_group is not None and not self.ignore_first_load:
            raise InertiaError(
                code=ErrorCode.INVALID_PROP,
                message="A defer group requires the prop to be excluded from the first load.",
                suggestion="Create deferred props with defer(callback, group=...).",
            )
        if self.scrolling is not None and (
            self.merging is None or self.merging.deep or not self.merging.only_on_partial
        ):
            raise InertiaError(
                code=ErrorCode.INVALID_PROP,
                message="Scroll props are always merged shallowly and only on partial reloads.",
                suggestion="Use append()/prepend() to change a scroll prop's merge intent.",
            )
        if self.kind is PropKind.CONTRIBUTOR and isinstance(self.value, PropertiesProvider):
            if self._has_flags():
                raise InertiaError(
                    code=ErrorCode.INVALID_PROP,
                    message="A properties provider expands into other keys and cannot carry flags.",
                    suggestion="Return flagged specs from to_inertia_properties() instead.",
                )

    def _has_flags(self) -> bool:
        return (
            self.always
            or self.ignore_first_load
            or self.merging is not None
            or self.once_policy is not None
            or self.scrolling is not None
        )

    @property
    def is_deferred(self) -> bool:
        return self.defer_group is not None

    @property
    def is_mergeable(self) -> bool:
        return self.merging is not None

    @property
    def is_once(self) -> bool:
        return self.once_policy is not None

    # ------------------------------------------------------------------
    # Chaining helpers
    # ------------------------------------------------------------------

    def once(self, ttl_seconds: float | None = None) -> PropertySpec:
        return replace(self, once_policy=OncePolicy(ttl_seconds=ttl_seconds))

    def merge(self, path: str | None = None) -> PropertySpec:
        current = self.merging or MergeBehavior()
        return replace(self, merging=replace(current, path=path if path else current.path))

    def deep_merge(self) -> PropertySpec:
        current = self.merging or MergeBehavior()
        return replace(self, merging=replace(current, deep=True))

    def only_on_partial(self) -> PropertySpec:
        if self.merging is None:
            raise InertiaError(
                code=ErrorCode.INVALID_PROP,
                message="only_on_partial() applies to mergeable props.",
                suggestion="Call merge() or deep_merge() first.",
            )
        return replace(self, merging=replace(self.merging, only_on_partial=True))

    def append(self, path: str | None = None) -> PropertySpec:
        return self._with_direction(prepend=False, path=path)

    def prepend(self, path: str | None = None) -> PropertySpec:
        return self._with_direction(prepend=True, path=path)

    def with_merge_intent(self, intent: Literal["append", "prepend"] | None) -> PropertySpec:
        """Apply the client's infinite-scroll merge intent, keeping the path."""
        if intent is None or self.merging is None:
            return self
        return replace(self, merging=replace(self.merging, prepend=intent == "prepend"))

    def _with_direction(self, *, prepend: bool, path: str | None) -> PropertySpec:
        current = self.merging or MergeBehavior()
        if path is None and self.scrolling is not None:
            path = self.scrolling.wrapper
        return replace(
            self,
            merging=replace(current, prepend=prepend, path=path if path else current.path),
        )


def _kind_of(value: Any) -> PropKind:
    if isinstance(value, (PropertiesProvider, PropertyProvider)):
        return PropKind.CONTRIBUTOR
    if inspect.iscoroutinefunction(value):
        return PropKind.ASYNC
    if callable(value) and not isinstance(value, type):
        return PropKind.SYNC
    return PropKind.STATIC


def _callback_kind(fn: Callable[..., Any], factory: str) -> PropKind:
    kind = _kind_of(fn)
    if kind not in (PropKind.SYNC, PropKind.ASYNC):
        raise InertiaError(
            code=ErrorCode.INVALID_PROP,
            message=f"{factory}() expects a callable, got {type(fn).__name__}.",
            suggestion="Wrap the value in a function so it is only computed when requested.",
        )
    return kind


def as_spec(value: Any) -> PropertySpec:
    """Normalise a raw props-bag value into a PropertySpec."""
    if isinstance(value, PropertySpec):
        return value
    return PropertySpec(value=value, kind=_kind_of(value))


prop = as_spec


def optional(fn: Callable[..., Any]) -> PropertySpec:
    """Prop computed only when a partial reload asks for it by name."""
    return PropertySpec(value=fn, kind=_callback_kind(fn, "optional"), ignore_first_load=True)


def defer(fn: Callable[..., Any], group: str | None = None) -> PropertySpec:
    """Prop left out of the first load and fetched by the client right after."""
    return PropertySpec(
        value=fn,
        kind=_callback_kind(fn, "defer"),
        ignore_first_load=True,
        defer_group=group or DEFAULT_DEFER_GROUP,
    )


def always(value: Any) -> PropertySpec:
    """Prop included in every response, whatever the partial reload asks for."""
    return replace(as_spec(value), always=True)


def merge(value: Any) -> PropertySpec:
    return replace(as_spec(value), merging=MergeBehavior())


def deep_merge(value: Any) -> PropertySpec:
    return replace(as_spec(value), merging=MergeBehavior(deep=True))


def once(fn: Callable[..., Any], ttl_seconds: float | None = None) -> PropertySpec:
    """Prop the client caches across visits; skipped while the client has it."""
    return PropertySpec(
        value=fn,
        kind=_callback_kind(fn, "once"),
        once_policy=OncePolicy(ttl_seconds=ttl_seconds),
    )


def scroll(
    value: Any,
    wrapper: str = DEFAULT_SCROLL_WRAPPER,
    metadata: ScrollMetadataSource | None = None,
) -> PropertySpec:
    """Paginated prop for infinite scrolling.

    The ``wrapper`` key of the value is appended client-side on partial
    reloads. ``metadata`` is either a ScrollMetadata or a callable that
    extracts one from the resolved value.
    """
    base = as_spec(value)
    return replace(
        base,
        merging=MergeBehavior(path=wrapper, only_on_partial=True),
        scrolling=ScrollBehavior(wrapper=wrapper, metadata=metadata),
    )
