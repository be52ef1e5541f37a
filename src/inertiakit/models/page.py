from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Keys that are always part of the page object, even when empty.
_ALWAYS_EMITTED = frozenset({"component", "props", "url", "version"})


class ScrollMetadata(BaseModel):
    """Pagination cursor information attached to an infinite-scroll prop."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    page_name: str = "page"
    current_page: int | str | None = None
    previous_page: int | str | None = None
    next_page: int | str | None = None

    @classmethod
    def from_page_numbers(
        cls, current_page: int, total_pages: int, page_name: str = "page"
    ) -> ScrollMetadata:
        return cls(
            page_name=page_name,
            current_page=current_page,
            previous_page=current_page - 1 if current_page > 1 else None,
            next_page=current_page + 1 if current_page < total_pages else None,
        )

    @classmethod
    def from_cursors(
        cls,
        current_cursor: str | None,
        previous_cursor: str | None = None,
        next_cursor: str | None = None,
        cursor_name: str = "cursor",
    ) -> ScrollMetadata:
        return cls(
            page_name=cursor_name,
            current_page=current_cursor,
            previous_page=previous_cursor,
            next_page=next_cursor,
        )

    @classmethod
    def final(cls, current_page: int, page_name: str = "page") -> ScrollMetadata:
        """Metadata for the last page: there is no next page."""
        return cls(
            page_name=page_name,
            current_page=current_page,
            previous_page=current_page - 1 if current_page > 1 else None,
        )


class SsrResult(BaseModel):
    """Pre-rendered HTML fragments returned by the SSR service."""

    head: str
    body: str


class PageDescriptor(BaseModel):
    """The page object sent to the client router.

    Built fresh for every response and never mutated afterwards. The URL
    resolver, when set, is evaluated by ``to_payload()`` so the value reflects
    configuration at emission time rather than at build time.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    component: str
    url: str
    version: str = ""
    props: dict[str, Any] = Field(default_factory=dict)
    merge_props: list[str] = Field(default_factory=list)
    prepend_props: list[str] = Field(default_factory=list)
    deep_merge_props: list[str] = Field(default_factory=list)
    deferred_props: dict[str, list[str]] = Field(default_factory=dict)
    once_props: dict[str, dict[str, Any]] = Field(default_factory=dict)
    scroll_props: dict[str, dict[str, Any]] = Field(default_factory=dict)
    clear_history: bool = False
    encrypt_history: bool = False

    url_resolver: Callable[[], str] | None = Field(default=None, exclude=True)

    def resolved_url(self) -> str:
        if self.url_resolver is not None:
            return self.url_resolver()
        return self.url

    def to_payload(self) -> dict[str, Any]:
        """Serialise to the JSON-ready page object.

        Empty metadata collections and false history flags are omitted.
        """
        data = self.model_dump(mode="json", by_alias=True)
        data["url"] = self.resolved_url()
        return {key: value for key, value in data.items() if key in _ALWAYS_EMITTED or value}
