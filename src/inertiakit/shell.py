"""Default HTML document for first (non-protocol) visits.

Hosts with their own templating pass a ShellRenderer to Inertia instead; this
one has a single layout and ignores ``root_view``.
"""

from __future__ import annotations

import html
import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from inertiakit.models.page import SsrResult

_DOCUMENT = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
{head}
</head>
<body>
{body}
</body>
</html>
"""


def page_json(page: dict[str, Any]) -> str:
    return json.dumps(page, separators=(",", ":"), ensure_ascii=False)


def render_root_element(page: dict[str, Any], element_id: str, *, use_script_element: bool) -> str:
    """The element the client app mounts on, carrying the serialised page."""
    encoded = page_json(page)
    element_id = html.escape(element_id, quote=True)

    if use_script_element:
        # "</" would terminate the script element early
        safe = encoded.replace("</", "<\\/")
        return (
            f'<script data-page="{element_id}" type="application/json">{safe}</script>\n'
            f'<div id="{element_id}"></div>'
        )

    return f'<div id="{element_id}" data-page="{html.escape(encoded, quote=True)}"></div>'


def render_shell(
    *,
    page: dict[str, Any],
    ssr: SsrResult | None,
    root_view: str,
    element_id: str,
    use_script_element: bool,
) -> str:
    if ssr is not None:
        return _DOCUMENT.format(head=ssr.head, body=ssr.body)

    return _DOCUMENT.format(
        head="",
        body=render_root_element(page, element_id, use_script_element=use_script_element),
    )
