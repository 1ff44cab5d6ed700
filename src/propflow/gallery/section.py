"""Section: a wrapped component with a three-stage attribute pipeline.

Raw attributes are filtered to SimpleSection's schema, a children length is
derived and merged in, and the heading is upper-cased, in that order.
"""

from __future__ import annotations

from html import escape
from typing import Any

from propflow.attributes import AttributeSet
from propflow.component import component, pick_by_schema, wrap
from propflow.compose import compose
from propflow.stages import Compute, Evolve


@component(
    schema={
        "heading": str,
        "children": str,
        "children_length": int,
        "class_name": str,
    },
    name="SimpleSection",
)
def SimpleSection(attrs: AttributeSet) -> str:
    class_attr = f' class="{escape(attrs["class_name"])}"' if attrs.get("class_name") else ""
    return (
        f"<section{class_attr}>"
        f"<h1>{escape(str(attrs.get('heading', '')))}</h1>"
        f"<div>{escape(str(attrs.get('children', '')))}</div>"
        f"<div>{attrs.get('children_length', '')}</div>"
        "</section>"
    )


def add_length(attrs: AttributeSet) -> dict[str, Any]:
    """Derive children_length from children."""
    return {"children_length": len(attrs["children"])}


section_attributes = pick_by_schema(SimpleSection)
with_length = Compute(add_length, reads={"children"}, writes={"children_length"})
upper_heading = Evolve({"heading": str.upper})

section_props = compose([upper_heading, with_length, section_attributes], name="section")

Section = wrap(SimpleSection, section_props, display_name="Section")
