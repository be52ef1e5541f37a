"""Prop resolution algorithm.

Pure business logic: receives a props bag and a ReloadDirective, returns the
resolved values plus the spec index the page builder needs. No knowledge of
HTTP responses, configuration or I/O beyond the prop callbacks themselves.

Order matters:
  1. Expand properties providers into their keys
  2. Settle the key set (partial reload only/except, first-load exclusions)
  3. Drop once-props the client already holds
  4. Resolve only the surviving specs, async ones concurrently
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from inertiakit.models.context import PropertyContext, RenderContext
from inertiakit.models.page import ScrollMetadata
from inertiakit.props import PropertySpec, PropKind, as_spec
from inertiakit.protocols import PropertiesProvider, PropertyProvider

if TYPE_CHECKING:
    from inertiakit.directive import ReloadDirective

log = structlog.get_logger()

MAX_NESTING_DEPTH = 16


@dataclass
class ResolvedProps:
    """Output of a resolution pass."""

    # key → resolved value, only for keys that survived filtering
    values: dict[str, Any] = field(default_factory=dict)

    # dotted path → spec, for every surviving top-level key and every
    # explicit PropertySpec found in nested mappings (pre-order)
    specs: dict[str, PropertySpec] = field(default_factory=dict)

    # every top-level key present before filtering → spec
    candidates: dict[str, PropertySpec] = field(default_factory=dict)

    # once-props left out because the client reported them as cached
    skipped_once: frozenset[str] = frozenset()

    # dotted path → pagination metadata extracted from scroll props
    scroll_metadata: dict[str, ScrollMetadata] = field(default_factory=dict)

    partial: bool = False


@dataclass
class _Level:
    values: dict[str, Any] = field(default_factory=dict)
    specs: dict[str, PropertySpec] = field(default_factory=dict)
    scroll_metadata: dict[str, ScrollMetadata] = field(default_factory=dict)

    def absorb(self, child: _Level) -> None:
        self.specs.update(child.specs)
        self.scroll_metadata.update(child.scroll_metadata)


def select_keys(
    candidates: Mapping[str, PropertySpec],
    directive: ReloadDirective,
    *,
    partial: bool,
) -> dict[str, PropertySpec]:
    """Apply partial-reload filtering to the top-level key set.

    ``always`` specs are never dropped. On a full load, specs flagged
    ``ignore_first_load`` are dropped.
    """
    if partial and directive.only:
        return {k: s for k, s in candidates.items() if k in directive.only or s.always}

    if partial and directive.except_:
        return {k: s for k, s in candidates.items() if k not in directive.except_ or s.always}

    if partial:
        return dict(candidates)

    return {k: s for k, s in candidates.items() if not s.ignore_first_load or s.always}


def skip_cached_once(
    selected: Mapping[str, PropertySpec],
    directive: ReloadDirective,
    *,
    partial: bool,
) -> tuple[dict[str, PropertySpec], frozenset[str]]:
    """Drop once-props the client already has.

    A cached once-prop is recomputed when a partial reload names it in
    ``only`` or when the reset header covers it.
    """
    kept: dict[str, PropertySpec] = {}
    skipped: set[str] = set()
    for key, spec in selected.items():
        cached = spec.is_once and key in directive.except_once and not spec.always
        requested = partial and key in directive.only
        if cached and not requested and not directive.should_reset(key):
            skipped.add(key)
            continue
        kept[key] = spec
    return kept, frozenset(skipped)


class PropertyResolver:
    """Evaluates a props bag into a flat value map for one request."""

    def __init__(self, *, max_depth: int = MAX_NESTING_DEPTH) -> None:
        self._max_depth = max_depth

    async def resolve(
        self,
        props: Mapping[str, Any],
        *,
        component: str,
        directive: ReloadDirective,
        request: Any = None,
    ) -> ResolvedProps:
        partial = directive.is_partial_for(component)

        expanded = await self._expand_providers(props, RenderContext(component, request))
        candidates = {key: as_spec(value) for key, value in expanded.items()}

        selected = select_keys(candidates, directive, partial=partial)
        selected, skipped_once = skip_cached_once(selected, directive, partial=partial)

        if skipped_once:
            log.debug("once_props_skipped", component=component, keys=sorted(skipped_once))

        level = await self._resolve_level(selected, request, prefix="", depth=0, top=True)

        return ResolvedProps(
            values=level.values,
            specs=level.specs,
            candidates=candidates,
            skipped_once=skipped_once,
            scroll_metadata=level.scroll_metadata,
            partial=partial,
        )

    async def _expand_providers(
        self, props: Mapping[str, Any], context: RenderContext
    ) -> dict[str, Any]:
        expanded: dict[str, Any] = {}
        for key, value in props.items():
            provider = value.value if isinstance(value, PropertySpec) else value
            if not isinstance(provider, PropertiesProvider):
                expanded[key] = value
                continue

            provided = provider.to_inertia_properties(context)
            if inspect.isawaitable(provided):
                provided = await provided
            expanded.update(provided)
        return expanded

    async def _resolve_level(
        self,
        items: Mapping[str, Any],
        request: Any,
        *,
        prefix: str,
        depth: int,
        top: bool = False,
    ) -> _Level:
        level = _Level()
        pending: dict[str, Callable[[], Awaitable[_Level]]] = {}
        children: dict[str, _Level] = {}
        inline_awaitables: list[Any] = []

        for key, raw in items.items():
            path = f"{prefix}{key}"
            spec = as_spec(raw)
            if top or isinstance(raw, PropertySpec):
                level.specs[path] = spec

            if spec.kind is PropKind.ASYNC:
                pending[key] = self._awaiting(spec, key, path, request, depth)
                continue

            try:
                value = self._evaluate_inline(spec, path, items, request)
            except BaseException:
                _close_awaitables(inline_awaitables)
                raise

            if inspect.isawaitable(value):
                inline_awaitables.append(value)
            if inspect.isawaitable(value) or isinstance(value, Mapping):
                pending[key] = self._finisher(value, spec, key, path, request, depth)
                continue

            level.values[key] = value
            self._record_scroll(level, spec, path, value)

        if pending:
            children = await self._gather(pending)

        ordered: dict[str, Any] = {}
        for key in items:
            child = children.get(key)
            if child is None:
                if key in level.values:
                    ordered[key] = level.values[key]
                continue
            ordered[key] = child.values[key]
            level.absorb(child)
        level.values = ordered
        return level

    def _evaluate_inline(
        self, spec: PropertySpec, path: str, items: Mapping[str, Any], request: Any
    ) -> Any:
        if spec.kind is PropKind.SYNC:
            return spec.value()
        if spec.kind is PropKind.CONTRIBUTOR and isinstance(spec.value, PropertyProvider):
            return spec.value.to_inertia_property(PropertyContext(path, items, request))
        return spec.value

    def _awaiting(
        self,
        spec: PropertySpec,
        key: str,
        path: str,
        request: Any,
        depth: int,
    ) -> Callable[[], Awaitable[_Level]]:
        # The coroutine is only created inside the task group, so a failing
        # sibling never leaves an un-awaited coroutine behind.
        async def run() -> _Level:
            return await self._settle(await spec.value(), spec, key, path, request, depth)

        return run

    def _finisher(
        self,
        value: Any,
        spec: PropertySpec,
        key: str,
        path: str,
        request: Any,
        depth: int,
    ) -> Callable[[], Awaitable[_Level]]:
        async def run() -> _Level:
            if inspect.isawaitable(value):
                return await self._settle(await value, spec, key, path, request, depth)
            return await self._settle(value, spec, key, path, request, depth)

        return run

    async def _settle(
        self,
        value: Any,
        spec: PropertySpec,
        key: str,
        path: str,
        request: Any,
        depth: int,
    ) -> _Level:
        result = _Level()
        if isinstance(value, Mapping) and depth >= self._max_depth:
            log.debug("prop_nesting_truncated", path=path, max_depth=self._max_depth)
        elif isinstance(value, Mapping):
            nested = await self._resolve_level(value, request, prefix=f"{path}.", depth=depth + 1)
            result.absorb(nested)
            value = nested.values
        result.values[key] = value
        self._record_scroll(result, spec, path, value)
        return result

    async def _gather(
        self, pending: Mapping[str, Callable[[], Awaitable[_Level]]]
    ) -> dict[str, _Level]:
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = {key: tg.create_task(run()) for key, run in pending.items()}
        except BaseExceptionGroup as group:
            # Surface the callback's own exception rather than the group wrapper.
            raise group.exceptions[0] from None
        return {key: task.result() for key, task in tasks.items()}

    @staticmethod
    def _record_scroll(level: _Level, spec: PropertySpec, path: str, value: Any) -> None:
        if spec.scrolling is None or spec.scrolling.metadata is None:
            return
        source = spec.scrolling.metadata
        metadata = source if isinstance(source, ScrollMetadata) else source(value)
        if metadata is not None:
            level.scroll_metadata[path] = metadata


def _close_awaitables(awaitables: list[Any]) -> None:
    for awaitable in awaitables:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
