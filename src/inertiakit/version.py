"""Asset-version gate and response status rules.

Three independent decisions taken after routing, all pure:
  - version check: a GET whose client asset version differs from the current
    one must be answered with 409 + X-Inertia-Location (full reload)
  - redirect coercion: 302 after PUT/PATCH/DELETE becomes 303 so the browser
    follows it with GET
  - empty response: a 200 with no body is turned into a redirect back
"""

from __future__ import annotations

from enum import StrEnum

from starlette.responses import Response

from inertiakit import headers as h

READ_ONLY_METHODS: frozenset[str] = frozenset({"GET"})
REDIRECT_COERCED_METHODS: frozenset[str] = frozenset({"PUT", "PATCH", "DELETE"})


class VersionState(StrEnum):
    NO_CHECK = "no_check"
    MATCH = "match"
    MISMATCH = "mismatch"


def check_version(method: str, requested: str | None, current: str | None) -> VersionState:
    """Compare the client's asset version against the current one.

    Only read-only navigations are checked; form submissions are never
    interrupted. A mismatch needs both versions to be non-empty.
    """
    if method.upper() not in READ_ONLY_METHODS:
        return VersionState.NO_CHECK
    if not requested or not current:
        return VersionState.NO_CHECK
    if requested == current:
        return VersionState.MATCH
    return VersionState.MISMATCH


def version_mismatch_response(url: str) -> Response:
    """409 instructing the client to perform a full visit of ``url``."""
    return Response(status_code=409, headers={h.LOCATION: url})


def coerce_redirect_status(method: str, status_code: int) -> int:
    if status_code == 302 and method.upper() in REDIRECT_COERCED_METHODS:
        return 303
    return status_code


def empty_response_location(referer: str | None) -> str:
    """Where to send the client after an action that rendered nothing."""
    return referer or "/"
