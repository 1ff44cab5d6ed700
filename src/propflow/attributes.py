"""Attribute set primitives.

An attribute set is any ``Mapping[str, Any]``. Every function here returns a
new ``dict`` and leaves its inputs untouched.

Formal Model:
    pick(K, a)    = {k: a[k] for k in keys(a) ∩ K}
    compute(f, a) = merge(a, f(a))
    evolve(T, a)  = {k: T[k](v) if k in T else v for k, v in a}
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from propflow.errors import MissingAttributeError

# Type aliases
AttributeSet = Mapping[str, Any]
DeriveFn = Callable[[AttributeSet], AttributeSet]
TransformFn = Callable[[Any], Any]


def merge(base: AttributeSet, override: AttributeSet) -> dict[str, Any]:
    """Merge two attribute sets; ``override`` wins on key collision."""
    merged = dict(base)
    merged.update(override)
    return merged


def as_missing_attribute(error: KeyError, attrs: AttributeSet, source: str | None) -> MissingAttributeError | None:
    """Translate a KeyError into MissingAttributeError when it names an absent attribute.

    Returns None when the KeyError is about something else: no key given,
    or a key that attrs actually holds (so the lookup that failed was on
    some other mapping).
    """
    if not error.args:
        return None
    key = error.args[0]
    try:
        present = key in attrs
    except TypeError:
        return None
    if present:
        return None
    return MissingAttributeError(key, source)


def pick(allowed: Iterable[str], attrs: AttributeSet) -> dict[str, Any]:
    """Restrict attrs to the allowed keys.

    Allowed keys that are absent from attrs are simply absent from the
    result; nothing is defaulted.

    Args:
        allowed: Keys to keep. A single string is one key, not a
            collection of one-character keys.
        attrs: Input attribute set

    Returns:
        New attribute set with only the allowed keys
    """
    allowed_keys = frozenset([allowed] if isinstance(allowed, str) else allowed)
    return {key: value for key, value in attrs.items() if key in allowed_keys}


def compute(derive: DeriveFn, attrs: AttributeSet) -> dict[str, Any]:
    """Derive supplemental attributes and merge them over the originals.

    Args:
        derive: Pure function returning the supplemental attributes
        attrs: Input attribute set

    Returns:
        ``merge(attrs, derive(attrs))``

    Raises:
        MissingAttributeError: If derive reads a key absent from attrs.
            KeyErrors naming any other key (an internal lookup table,
            say) propagate unchanged.
    """
    try:
        derived = derive(attrs)
    except MissingAttributeError:
        raise
    except KeyError as e:
        missing = as_missing_attribute(e, attrs, getattr(derive, "__name__", None))
        if missing is None:
            raise
        raise missing from e
    return merge(attrs, derived)


def evolve(transforms: Mapping[str, TransformFn], attrs: AttributeSet) -> dict[str, Any]:
    """Transform the values of keys present in both transforms and attrs.

    Keys are never added or removed.
    """
    return {key: transforms[key](value) if key in transforms else value for key, value in attrs.items()}


def prop(key: str) -> Callable[[AttributeSet], Any]:
    """Build an accessor that reads one attribute.

    The accessor raises MissingAttributeError instead of a bare KeyError
    so missing input can be told apart from other failures.
    """

    def read(attrs: AttributeSet) -> Any:
        try:
            return attrs[key]
        except KeyError:
            raise MissingAttributeError(key, f"prop({key!r})") from None

    read.__name__ = f"prop_{key}"
    read.__qualname__ = f"prop({key!r})"
    return read
