"""Reference compositions built with propflow.

- section: allow-listing, derived and evolved attributes behind a wrapper
- content: loading / empty / normal branching with first-match dispatch
- counter: table-built reducer
"""

from propflow.gallery.content import Content, LoadingContent
from propflow.gallery.counter import counter
from propflow.gallery.section import Section, SimpleSection

__all__ = [
    "Section",
    "SimpleSection",
    "Content",
    "LoadingContent",
    "counter",
]
