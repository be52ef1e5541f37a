"""Unit tests for inertiakit.props."""

from __future__ import annotations

from typing import Any

import pytest

from inertiakit.errors import ErrorCode, InertiaError
from inertiakit.models.page import ScrollMetadata
from inertiakit.props import (
    DEFAULT_DEFER_GROUP,
    MergeBehavior,
    PropertySpec,
    PropKind,
    always,
    as_spec,
    deep_merge,
    defer,
    merge,
    once,
    optional,
    scroll,
)


def _load() -> list[int]:
    return [1, 2, 3]


async def _aload() -> list[int]:
    return [1, 2, 3]


class _Contributor:
    def to_inertia_property(self, context: Any) -> str:
        return context.key


class _Expander:
    def to_inertia_properties(self, context: Any) -> dict[str, Any]:
        return {"a": 1}


# ---------------------------------------------------------------------------
# Kind detection
# ---------------------------------------------------------------------------


class TestAsSpec:
    def test_plain_value_is_static(self) -> None:
        spec = as_spec([1, 2])
        assert spec.kind is PropKind.STATIC
        assert spec.value == [1, 2]

    def test_function_is_sync(self) -> None:
        assert as_spec(_load).kind is PropKind.SYNC

    def test_coroutine_function_is_async(self) -> None:
        assert as_spec(_aload).kind is PropKind.ASYNC

    def test_class_is_static(self) -> None:
        assert as_spec(dict).kind is PropKind.STATIC

    def test_providers_are_contributors(self) -> None:
        assert as_spec(_Contributor()).kind is PropKind.CONTRIBUTOR
        assert as_spec(_Expander()).kind is PropKind.CONTRIBUTOR

    def test_spec_passes_through(self) -> None:
        spec = always(1)
        assert as_spec(spec) is spec


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


class TestFactories:
    def test_optional(self) -> None:
        spec = optional(_load)
        assert spec.ignore_first_load is True
        assert spec.is_deferred is False

    def test_optional_rejects_value(self) -> None:
        with pytest.raises(InertiaError) as exc_info:
            optional([1, 2])  # type: ignore[arg-type]
        assert exc_info.value.code == ErrorCode.INVALID_PROP

    def test_defer_default_group(self) -> None:
        spec = defer(_aload)
        assert spec.ignore_first_load is True
        assert spec.defer_group == DEFAULT_DEFER_GROUP
        assert spec.kind is PropKind.ASYNC

    def test_defer_custom_group(self) -> None:
        assert defer(_load, group="sidebar").defer_group == "sidebar"

    def test_always(self) -> None:
        assert always("x").always is True

    def test_merge(self) -> None:
        assert merge([1]).merging == MergeBehavior()

    def test_deep_merge(self) -> None:
        assert deep_merge({"a": 1}).merging == MergeBehavior(deep=True)

    def test_once(self) -> None:
        spec = once(_load, ttl_seconds=60)
        assert spec.is_once is True
        assert spec.once_policy is not None
        assert spec.once_policy.ttl_seconds == 60

    def test_scroll(self) -> None:
        spec = scroll({"data": []}, metadata=ScrollMetadata(current_page=1))
        assert spec.merging == MergeBehavior(path="data", only_on_partial=True)
        assert spec.scrolling is not None
        assert spec.scrolling.wrapper == "data"


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


class TestChaining:
    def test_flags_compose(self) -> None:
        spec = defer(_load, group="sidebar").merge().once(ttl_seconds=10)
        assert spec.is_deferred
        assert spec.is_mergeable
        assert spec.is_once

    def test_chaining_returns_copies(self) -> None:
        base = merge([1])
        deep = base.deep_merge()
        assert base.merging is not None and base.merging.deep is False
        assert deep.merging is not None and deep.merging.deep is True

    def test_merge_path(self) -> None:
        spec = merge({"items": []}).merge("items")
        assert spec.merging is not None
        assert spec.merging.path == "items"

    def test_only_on_partial_requires_merge(self) -> None:
        with pytest.raises(InertiaError):
            as_spec([1]).only_on_partial()

    def test_only_on_partial(self) -> None:
        spec = merge([1]).only_on_partial()
        assert spec.merging is not None and spec.merging.only_on_partial

    def test_scroll_prepend_defaults_to_wrapper(self) -> None:
        spec = scroll({"items": []}, wrapper="items").prepend()
        assert spec.merging == MergeBehavior(path="items", only_on_partial=True, prepend=True)

    def test_with_merge_intent(self) -> None:
        spec = scroll({"data": []})
        assert spec.with_merge_intent("prepend").merging.prepend is True  # type: ignore[union-attr]
        assert spec.with_merge_intent(None) is spec


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_defer_group_requires_ignore_first_load(self) -> None:
        with pytest.raises(InertiaError) as exc_info:
            PropertySpec(value=_load, kind=PropKind.SYNC, defer_group="x")
        assert exc_info.value.code == ErrorCode.INVALID_PROP

    def test_scroll_cannot_deep_merge(self) -> None:
        with pytest.raises(InertiaError):
            scroll({"data": []}).deep_merge()

    def test_expander_cannot_carry_flags(self) -> None:
        with pytest.raises(InertiaError):
            always(_Expander())
