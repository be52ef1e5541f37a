"""Page descriptor assembly.

Combines the resolver output with the request's ReloadDirective into the page
object: merge hints, deferred groups, once-prop expiry and scroll metadata.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from inertiakit.models.page import PageDescriptor

if TYPE_CHECKING:
    from inertiakit.directive import ReloadDirective
    from inertiakit.props import PropertySpec
    from inertiakit.resolver import ResolvedProps


def merge_paths(
    resolved: ResolvedProps, directive: ReloadDirective
) -> tuple[list[str], list[str], list[str]]:
    """Return ``(merge, prepend, deep_merge)`` dot-paths for the surviving specs.

    Only-on-partial specs are reported on partial reloads only. Keys the
    client asked to reset are never reported, so the client replaces them.
    """
    merge: list[str] = []
    prepend: list[str] = []
    deep: list[str] = []

    for path, spec in resolved.specs.items():
        spec = _with_scroll_intent(spec, directive)
        merging = spec.merging
        if merging is None:
            continue
        if merging.only_on_partial and not resolved.partial:
            continue
        if _is_reset(path, directive):
            continue

        entry = f"{path}.{merging.path}" if merging.path else path
        if merging.deep:
            deep.append(entry)
        elif merging.prepend:
            prepend.append(entry)
        else:
            merge.append(entry)

    return merge, prepend, deep


def deferred_groups(resolved: ResolvedProps, directive: ReloadDirective) -> dict[str, list[str]]:
    """Group the deferred keys left out of a full load.

    Partial reloads carry no deferred metadata. Deferred once-props the client
    already caches are not listed, so the client does not fetch them again.
    """
    if resolved.partial:
        return {}

    groups: dict[str, list[str]] = {}
    for key, spec in resolved.candidates.items():
        if spec.defer_group is None or key in resolved.values:
            continue
        if spec.is_once and key in directive.except_once:
            continue
        groups.setdefault(spec.defer_group, []).append(key)
    return groups


def once_props(resolved: ResolvedProps, *, now: float | None = None) -> dict[str, dict[str, Any]]:
    """Describe the once-props transmitted in this response.

    ``expiresAt`` is a millisecond timestamp, or None when the client keeps
    the value until a reset.
    """
    now = time.time() if now is None else now
    described: dict[str, dict[str, Any]] = {}
    for key, spec in resolved.candidates.items():
        if spec.once_policy is None or key not in resolved.values:
            continue
        ttl = spec.once_policy.ttl_seconds
        expires_at = int((now + ttl) * 1000) if ttl is not None else None
        described[key] = {"prop": key, "expiresAt": expires_at}
    return described


def scroll_props(resolved: ResolvedProps, directive: ReloadDirective) -> dict[str, dict[str, Any]]:
    return {
        path: {
            **metadata.model_dump(mode="json", by_alias=True),
            "reset": _is_reset(path, directive),
        }
        for path, metadata in resolved.scroll_metadata.items()
    }


def _with_scroll_intent(spec: PropertySpec, directive: ReloadDirective) -> PropertySpec:
    if spec.scrolling is None:
        return spec
    return spec.with_merge_intent(directive.scroll_intent)


def _is_reset(path: str, directive: ReloadDirective) -> bool:
    return directive.should_reset(path) or directive.should_reset(path.split(".", 1)[0])


class PageBuilder:
    """Builds the PageDescriptor for one response."""

    def build(
        self,
        *,
        component: str,
        url: str,
        version: str,
        resolved: ResolvedProps,
        directive: ReloadDirective,
        clear_history: bool = False,
        encrypt_history: bool = False,
        url_resolver: Callable[[], str] | None = None,
    ) -> PageDescriptor:
        merge, prepend, deep = merge_paths(resolved, directive)
        return PageDescriptor(
            component=component,
            url=url,
            version=version,
            props=resolved.values,
            merge_props=merge,
            prepend_props=prepend,
            deep_merge_props=deep,
            deferred_props=deferred_groups(resolved, directive),
            once_props=once_props(resolved),
            scroll_props=scroll_props(resolved, directive),
            clear_history=clear_history,
            encrypt_history=encrypt_history,
            url_resolver=url_resolver,
        )
