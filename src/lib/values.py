"""
JSON-like value model

Extracted data, original records and component props are all plain Python
values: None, bool, int/float, str, list/tuple and dict. This module gives
them an explicit kind so the differ and merger can walk them generically
instead of poking at types ad hoc.

Paths are dot-delimited keys ("data.profile.theme") addressing nested dicts.
"""

import copy
import math
from enum import Enum
from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, Optional, Tuple


class ValueKind(Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    MAP = "map"
    OTHER = "other"   # opaque values returned by caller code, compared with ==


class _Missing:
    """Sentinel for absent keys (distinct from a present None)"""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def kind_of(value: Any) -> ValueKind:
    """
    Classify a value

    bool is checked before numbers because bool is an int subclass.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, Mapping):
        return ValueKind.MAP
    return ValueKind.OTHER


def is_map(value: Any) -> bool:
    return kind_of(value) == ValueKind.MAP


def is_array(value: Any) -> bool:
    return kind_of(value) == ValueKind.ARRAY


def values_equal(a: Any, b: Any) -> bool:
    """
    Deep structural equality over the value kinds

    Unlike ``==``, True and 1 are different values, and a list equals a
    tuple with the same items. NaN equals NaN.
    """
    kind = kind_of(a)
    if kind != kind_of(b):
        return False

    if kind == ValueKind.MAP:
        if set(a.keys()) != set(b.keys()):
            return False
        return all(values_equal(a[key], b[key]) for key in a)

    if kind == ValueKind.ARRAY:
        if len(a) != len(b):
            return False
        return all(values_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True

    return a == b


def value_clone(value: Any) -> Any:
    """Deep copy; tuples become lists and mappings become dicts"""
    kind = kind_of(value)
    if kind == ValueKind.MAP:
        return {key: value_clone(item) for key, item in value.items()}
    if kind == ValueKind.ARRAY:
        return [value_clone(item) for item in value]
    if kind == ValueKind.OTHER:
        return copy.deepcopy(value)
    return value


def path_split(path: str) -> List[str]:
    return path.split(".")


def path_join(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def path_set(obj: Dict[str, Any], path: str, value: Any) -> None:
    """
    Write a dotted path, creating (or replacing non-dict) intermediate nodes

    Example:
        >>> data = {}
        >>> path_set(data, "user.profile.theme", "dark")
        >>> data
        {'user': {'profile': {'theme': 'dark'}}}
    """
    parts = path_split(path)
    current = obj
    for part in parts[:-1]:
        if not is_map(current.get(part)):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def leaves_iterate(obj: Any, prefix: str = "") -> Iterator[Tuple[str, Any]]:
    """
    Yield (dotted path, value) for every leaf of a nested dict

    Arrays and scalars are leaves; so is an empty dict, which would
    otherwise vanish from the listing.
    """
    for key, value in obj.items():
        path = path_join(prefix, str(key))
        if is_map(value) and value:
            yield from leaves_iterate(value, path)
        else:
            yield path, value


def path_selected(path: str, selectors: List[str]) -> bool:
    """
    Check whether a path is covered by a list of selector paths

    A selector covers itself, everything below it and everything above it
    (the ancestors must be walked to reach it).

    Example:
        >>> path_selected("data", ["data.title"])
        True
        >>> path_selected("data.title.raw", ["data.title"])
        True
        >>> path_selected("data.body", ["data.title"])
        False
    """
    for selector in selectors:
        if path == selector:
            return True
        if path.startswith(selector + ".") or selector.startswith(path + "."):
            return True
    return False


def path_covered(path: str, selectors: Optional[List[str]]) -> bool:
    """
    True when a selector equals path or is one of its ancestors

    No selectors (None) covers every path. Unlike path_selected, ancestors
    of a selector are not covered.
    """
    if selectors is None:
        return True
    return any(path == s or path.startswith(s + ".") for s in selectors)
