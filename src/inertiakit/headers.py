"""Protocol header names exchanged between the client router and the server."""

from __future__ import annotations

INERTIA = "X-Inertia"
VERSION = "X-Inertia-Version"
PARTIAL_COMPONENT = "X-Inertia-Partial-Component"
PARTIAL_DATA = "X-Inertia-Partial-Data"
PARTIAL_EXCEPT = "X-Inertia-Partial-Except"
ERROR_BAG = "X-Inertia-Error-Bag"
RESET = "X-Inertia-Reset"
SCROLL_MERGE_INTENT = "X-Inertia-Infinite-Scroll-Merge-Intent"
EXCEPT_ONCE_PROPS = "X-Inertia-Except-Once-Props"

# Response only: sent with 409 to force a full client-side visit.
LOCATION = "X-Inertia-Location"
