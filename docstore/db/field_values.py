"""Field-level array mutations usable inside write payloads.

``array_union`` appends values not already present, ``array_remove`` drops every
occurrence of the given values. In an update they become ``$addToSet``/``$pullAll``;
in a full set they resolve to the values themselves or an empty array.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple


@dataclass(frozen=True)
class ArrayUnion:
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class ArrayRemove:
    values: Tuple[Any, ...]


def array_union(*values: Any) -> ArrayUnion:
    return ArrayUnion(tuple(values))


def array_remove(*values: Any) -> ArrayRemove:
    return ArrayRemove(tuple(values))


def _dedupe(values: Tuple[Any, ...]) -> List[Any]:
    out: List[Any] = []
    for v in values:
        if v not in out:
            out.append(v)
    return out


def resolve_for_set(value: Any) -> Any:
    """Replace sentinels (at any depth) with the array they produce on a fresh document."""
    if isinstance(value, ArrayUnion):
        return _dedupe(value.values)
    if isinstance(value, ArrayRemove):
        return []
    if isinstance(value, Mapping):
        return {k: resolve_for_set(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [resolve_for_set(v) for v in value]
    return value


def build_update(data: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Translate a merge payload into a MongoDB update document.

    Top-level keys may be dotted field paths. Plain values go to ``$set``.
    An empty payload yields an empty update, which the driver rejects.
    """
    update: Dict[str, Dict[str, Any]] = {}
    for field, value in data.items():
        if isinstance(value, ArrayUnion):
            update.setdefault("$addToSet", {})[field] = {"$each": _dedupe(value.values)}
        elif isinstance(value, ArrayRemove):
            update.setdefault("$pullAll", {})[field] = list(value.values)
        else:
            update.setdefault("$set", {})[field] = resolve_for_set(value)
    return update


__all__ = [
    "ArrayUnion",
    "ArrayRemove",
    "array_union",
    "array_remove",
    "resolve_for_set",
    "build_update",
]
