"""Equality evaluator: decides whether a watched value is unchanged.

Two modes:
- shallow (default): identity, value equality for immutable scalars of the
  same type, and NaN treated as equal to NaN.
- deep: structural comparison of mappings, sequences, sets and the
  attributes of plain objects.

NaN is unequal to itself under ``==``. Treating two NaNs as "unchanged"
keeps a watcher on a NaN value from firing on every sweep. Neither mode
raises.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence, Set

# Immutable scalars that compare by value. Python gives no interning
# guarantee, so ``is`` alone would report equal strings and ints as changed.
_SCALARS = (str, bytes, int, float, complex, bool, type(None))


def is_nan(value: object) -> bool:
    return isinstance(value, float) and math.isnan(value)


def are_equal(new_value: object, old_value: object, deep: bool = False) -> bool:
    """Return True if new_value counts as unchanged from old_value."""
    if deep:
        return deep_equal(new_value, old_value)

    if new_value is old_value:
        return True
    if type(new_value) is type(old_value) and isinstance(new_value, _SCALARS):
        return new_value == old_value or (is_nan(new_value) and is_nan(old_value))
    return False


def deep_equal(a: object, b: object) -> bool:
    """Structural equality with NaN == NaN at any depth.

    Instances of the same class that keep object's default ``__eq__`` are
    compared attribute by attribute. Self-referential structures are
    handled: a pair of objects already being compared counts as equal.
    """
    return _deep_equal(a, b, set())


def _deep_equal(a: object, b: object, seen: set[tuple[int, int]]) -> bool:
    if a is b:
        return True
    if is_nan(a) and is_nan(b):
        return True

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        if _revisited(a, b, seen):
            return True
        for key, value in a.items():
            if key not in b or not _deep_equal(value, b[key], seen):
                return False
        return True

    if isinstance(a, Set) and isinstance(b, Set):
        return _safe_eq(a, b)

    if _is_container_sequence(a) and _is_container_sequence(b):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        if _revisited(a, b, seen):
            return True
        return all(_deep_equal(x, y, seen) for x, y in zip(a, b))

    if type(a) is type(b) and _is_plain_instance(a):
        attrs_a, attrs_b = _attributes(a), _attributes(b)
        if attrs_a is None:
            return _safe_eq(a, b)
        if attrs_a.keys() != attrs_b.keys():
            return False
        if _revisited(a, b, seen):
            return True
        return all(_deep_equal(value, attrs_b[name], seen) for name, value in attrs_a.items())

    return _safe_eq(a, b)


def _is_plain_instance(value: object) -> bool:
    # Functions, classes and modules are builtins-typed and keep identity.
    cls = type(value)
    return cls.__eq__ is object.__eq__ and cls.__module__ != "builtins"


def _revisited(a: object, b: object, seen: set[tuple[int, int]]) -> bool:
    # Both objects stay alive for the whole comparison, so ids are stable.
    pair = (id(a), id(b))
    if pair in seen:
        return True
    seen.add(pair)
    return False


def _attributes(obj: object) -> dict[str, object] | None:
    """Instance attributes from __dict__ and __slots__, or None if it has neither."""
    attrs = dict(vars(obj)) if hasattr(obj, "__dict__") else {}
    has_slots = False
    for cls in type(obj).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__"):
                continue
            has_slots = True
            if hasattr(obj, name):
                attrs[name] = getattr(obj, name)
    if not has_slots and not hasattr(obj, "__dict__"):
        return None
    return attrs


def _is_container_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _safe_eq(a: object, b: object) -> bool:
    # Array-like objects return elementwise results or raise on bool().
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        return False
