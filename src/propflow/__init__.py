"""Declarative attribute pipelines and dispatch tables.

This package implements point-free style component composition with
explicit, named combinators:
- Attribute stages: pick, compute (derive and merge), evolve
- Right-to-left composition of stages into one Pipeline
- Component wrapping: transform attributes, then construct an element
- Predicate dispatch with first-match-wins and a default branch
- Reducers built from (action type, handler) tables

Formal Model:
    Stage s: Attrs → Attrs
    compose([s1, ..., sn]) = s1 ∘ ... ∘ sn
    wrap(C, s)(a) = construct(C, s(a))
"""

from propflow.attributes import compute, evolve, merge, pick, prop
from propflow.component import Component, component, map_props, pick_by_schema, wrap
from propflow.compose import Pipeline, compose, identity
from propflow.dispatch import Branch, Dispatcher, T, always, cond, dispatch, has, if_else, is_empty, negate
from propflow.element import Element, create_element, render
from propflow.errors import (
    CompositionArityError,
    ConfigError,
    MissingAttributeError,
    NoMatchError,
    PropflowError,
)
from propflow.reducer import Action, Reducer, combine_reducers, create_reducer, replay, scan
from propflow.stages import Compute, Evolve, Pick

__all__ = [
    "pick",
    "compute",
    "evolve",
    "merge",
    "prop",
    "Pick",
    "Compute",
    "Evolve",
    "Pipeline",
    "compose",
    "identity",
    "Component",
    "component",
    "wrap",
    "map_props",
    "pick_by_schema",
    "Element",
    "create_element",
    "render",
    "Branch",
    "Dispatcher",
    "dispatch",
    "cond",
    "if_else",
    "has",
    "is_empty",
    "negate",
    "always",
    "T",
    "Action",
    "Reducer",
    "create_reducer",
    "combine_reducers",
    "replay",
    "scan",
    "PropflowError",
    "MissingAttributeError",
    "NoMatchError",
    "CompositionArityError",
    "ConfigError",
]
