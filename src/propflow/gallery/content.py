"""Content: conditional rendering by first-match dispatch.

Loading is checked before emptiness on purpose: while loading, the item
list is usually empty too, and the loading message must win.
"""

from __future__ import annotations

from html import escape

from propflow.attributes import AttributeSet
from propflow.component import component
from propflow.dispatch import always, cond, has, if_else, is_empty

Loading = always("Loading...")
Missing = always("No results.")


@component(schema={"items": list, "render_item": object}, name="ItemSection")
def ItemSection(attrs: AttributeSet) -> str:
    render_item = attrs.get("render_item") or (lambda item: f"<div>{escape(str(item))}</div>")
    return "<section>" + "".join(render_item(item) for item in attrs.get("items") or []) + "</section>"


@component(schema={"content": str}, name="TextSection")
def TextSection(attrs: AttributeSet) -> str:
    return f"<section>{escape(str(attrs.get('content') or ''))}</section>"


Content = cond(
    [
        (has("loading"), Loading),
        (is_empty("items"), Missing),
    ],
    default=ItemSection,
    display_name="Content",
)

LoadingContent = if_else(has("loading"), Loading, TextSection, display_name="LoadingContent")
