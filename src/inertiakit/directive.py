"""Reload directive parsing.

Pure function from request headers to an immutable ReloadDirective. Malformed
or missing headers never raise; they parse into empty defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from starlette.datastructures import Headers

from inertiakit import headers as h

ScrollIntent = Literal["append", "prepend"]

RESET_ALL = "all"


@dataclass(frozen=True)
class ReloadDirective:
    """Snapshot of the protocol headers of a single request."""

    is_inertia: bool = False
    partial_component: str = ""
    version: str | None = None
    only: frozenset[str] = field(default_factory=frozenset)
    except_: frozenset[str] = field(default_factory=frozenset)
    error_bag: str | None = None
    reset: frozenset[str] = field(default_factory=frozenset)
    scroll_intent: ScrollIntent | None = None
    except_once: frozenset[str] = field(default_factory=frozenset)

    def is_partial_for(self, component: str) -> bool:
        """True when this is a partial reload targeting ``component``.

        A partial reload aimed at another component is treated as a full load.
        """
        return self.is_inertia and bool(self.partial_component) and (
            self.partial_component == component
        )

    @property
    def reset_all(self) -> bool:
        return RESET_ALL in self.reset

    def should_reset(self, key: str) -> bool:
        return self.reset_all or key in self.reset


def _split_list(raw: str | None) -> frozenset[str]:
    """Split a comma-separated header value, trimming and dropping empties."""
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def _as_headers(raw: Mapping[str, str]) -> Headers:
    if isinstance(raw, Headers):
        return raw
    return Headers(headers={str(k): str(v) for k, v in raw.items()})


def parse_reload_directive(raw_headers: Mapping[str, str]) -> ReloadDirective:
    """Parse protocol headers into a ReloadDirective.

    Header lookup is case-insensitive. Rules:
      - the marker header must equal ``"true"`` (any case)
      - list headers are comma-separated; entries are trimmed, empties dropped
      - the reset header accepts ``"all"`` as a single-element set
      - scroll intent is ``append``/``prepend``; anything else is ignored
    """
    headers = _as_headers(raw_headers)

    is_inertia = headers.get(h.INERTIA, "").strip().lower() == "true"

    version = headers.get(h.VERSION)
    error_bag = headers.get(h.ERROR_BAG, "").strip() or None

    reset_raw = headers.get(h.RESET, "").strip()
    reset = frozenset({RESET_ALL}) if reset_raw == RESET_ALL else _split_list(reset_raw)

    intent_raw = headers.get(h.SCROLL_MERGE_INTENT, "").strip().lower()
    scroll_intent: ScrollIntent | None = None
    if intent_raw == "append":
        scroll_intent = "append"
    elif intent_raw == "prepend":
        scroll_intent = "prepend"

    return ReloadDirective(
        is_inertia=is_inertia,
        partial_component=headers.get(h.PARTIAL_COMPONENT, "").strip(),
        version=version,
        only=_split_list(headers.get(h.PARTIAL_DATA)),
        except_=_split_list(headers.get(h.PARTIAL_EXCEPT)),
        error_bag=error_bag,
        reset=reset,
        scroll_intent=scroll_intent,
        except_once=_split_list(headers.get(h.EXCEPT_ONCE_PROPS)),
    )
