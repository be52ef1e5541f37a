"""Helpers for testing Inertia endpoints with httpx.

Build protocol headers with ``reload_headers`` and inspect what came back with
``AssertablePage``::

    response = await client.get("/users", headers=reload_headers("Users/Index", only=["users"]))
    AssertablePage.from_response(response).with_component("Users/Index").has("users")
"""

from __future__ import annotations

import html
import json
import re
from collections.abc import Iterable
from typing import Any

import httpx

from inertiakit import headers as h

_DATA_PAGE_ATTR = re.compile(r'data-page="([^"]*)"')
_DATA_PAGE_SCRIPT = re.compile(
    r'<script data-page="[^"]*" type="application/json">(.*?)</script>', re.DOTALL
)

_MISSING = object()


def reload_headers(
    component: str | None = None,
    *,
    only: Iterable[str] = (),
    except_: Iterable[str] = (),
    version: str | None = None,
    reset: Iterable[str] = (),
    except_once: Iterable[str] = (),
    error_bag: str | None = None,
    scroll_intent: str | None = None,
) -> dict[str, str]:
    """Headers the client router sends; a partial reload when ``component`` is set."""
    headers = {h.INERTIA: "true"}
    if version is not None:
        headers[h.VERSION] = version
    if component is not None:
        headers[h.PARTIAL_COMPONENT] = component
    if only := ",".join(only):
        headers[h.PARTIAL_DATA] = only
    if except_ := ",".join(except_):
        headers[h.PARTIAL_EXCEPT] = except_
    if reset := ",".join(reset):
        headers[h.RESET] = reset
    if except_once := ",".join(except_once):
        headers[h.EXCEPT_ONCE_PROPS] = except_once
    if error_bag:
        headers[h.ERROR_BAG] = error_bag
    if scroll_intent:
        headers[h.SCROLL_MERGE_INTENT] = scroll_intent
    return headers


class AssertablePage:
    """Fluent assertions over a page object. Each method returns ``self``."""

    def __init__(self, page: dict[str, Any]) -> None:
        self.page = page

    @classmethod
    def from_response(cls, response: httpx.Response) -> AssertablePage:
        """Extract the page from a JSON protocol response or an HTML shell."""
        if response.headers.get(h.INERTIA) == "true":
            return cls(response.json())

        text = response.text
        if match := _DATA_PAGE_SCRIPT.search(text):
            return cls(json.loads(match.group(1).replace("<\\/", "</")))
        if match := _DATA_PAGE_ATTR.search(text):
            return cls(json.loads(html.unescape(match.group(1))))

        raise AssertionError(f"Response is not an Inertia page (status {response.status_code}).")

    @property
    def props(self) -> dict[str, Any]:
        return self.page.get("props", {})

    def _lookup(self, path: str) -> Any:
        current: Any = self.props
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                return _MISSING
        return current

    def with_component(self, component: str) -> AssertablePage:
        actual = self.page.get("component")
        assert actual == component, f"Expected component '{component}', got '{actual}'."
        return self

    def with_url(self, url: str) -> AssertablePage:
        actual = self.page.get("url")
        assert actual == url, f"Expected url '{url}', got '{actual}'."
        return self

    def with_version(self, version: str) -> AssertablePage:
        actual = self.page.get("version")
        assert actual == version, f"Expected version '{version}', got '{actual}'."
        return self

    def has(self, path: str, count: int | None = None) -> AssertablePage:
        value = self._lookup(path)
        assert value is not _MISSING, f"Prop '{path}' is missing."
        if count is not None:
            self.with_count(path, count)
        return self

    def missing(self, path: str) -> AssertablePage:
        assert self._lookup(path) is _MISSING, f"Prop '{path}' is present."
        return self

    def where(self, path: str, expected: Any) -> AssertablePage:
        value = self._lookup(path)
        assert value is not _MISSING, f"Prop '{path}' is missing."
        assert value == expected, f"Prop '{path}' is {value!r}, expected {expected!r}."
        return self

    def with_count(self, path: str, count: int) -> AssertablePage:
        value = self._lookup(path)
        assert value is not _MISSING, f"Prop '{path}' is missing."
        assert len(value) == count, f"Prop '{path}' has {len(value)} items, expected {count}."
        return self

    def deferred(self, key: str, group: str = "default") -> AssertablePage:
        keys = self.page.get("deferredProps", {}).get(group, [])
        assert key in keys, f"Prop '{key}' is not deferred in group '{group}'."
        return self
