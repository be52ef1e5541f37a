"""Per-request shared state.

SharedState is created by InertiaMiddleware for every HTTP request and stored
in the ASGI scope state (``request.state.inertia``). Middleware-like stages
and handlers share props and per-response options through it; nothing is kept
at process level.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

STATE_KEY = "inertia"


class SharedState:
    """Props and response options accumulated while a request is handled."""

    def __init__(self, props: Mapping[str, Any] | None = None) -> None:
        self._props: dict[str, Any] = dict(props or {})
        self.root_view: str | None = None
        self.encrypt_history_override: bool | None = None
        self.clear_history_requested = False
        self.url_resolver: Callable[[], str] | None = None
        self.errors: dict[str, Any] = {}
        self.version: str | None = None

    def share(self, key: str, value: Any) -> None:
        self._props[key] = value

    def share_many(self, props: Mapping[str, Any]) -> None:
        self._props.update(props)

    def get(self, key: str, default: Any = None) -> Any:
        return self._props.get(key, default)

    def all(self) -> dict[str, Any]:
        return dict(self._props)

    def flush(self) -> None:
        self._props.clear()

    def merged_with(self, props: Mapping[str, Any] | None) -> dict[str, Any]:
        """Shared props overlaid with ``props``; the caller wins on collision."""
        merged = dict(self._props)
        if props:
            merged.update(props)
        return merged

    def encrypt_history(self, encrypt: bool = True) -> None:
        self.encrypt_history_override = encrypt

    def clear_history(self) -> None:
        self.clear_history_requested = True

    def set_root_view(self, name: str) -> None:
        self.root_view = name

    def set_errors(self, errors: Mapping[str, Any]) -> None:
        """Validation errors exposed to the page through the shared ``errors`` prop."""
        self.errors = dict(errors)

    def set_version(self, version: str) -> None:
        """Asset version stamped on pages rendered during this request."""
        self.version = version

    def resolve_url_using(self, resolver: Callable[[], str] | None) -> None:
        self.url_resolver = resolver


def get_shared_state(request: Any) -> SharedState:
    """Return the request's SharedState, attaching a fresh one if missing."""
    state = getattr(request.state, STATE_KEY, None)
    if state is None:
        state = SharedState()
        setattr(request.state, STATE_KEY, state)
    return state


def scope_errors(errors: Mapping[str, Any], error_bag: str | None) -> dict[str, Any]:
    """Nest a validation-error map under ``error_bag`` when one is requested.

    Forms on a page that share field names use distinct error bags so their
    errors do not collide client-side.
    """
    if not error_bag:
        return dict(errors)
    return {error_bag: dict(errors)}
