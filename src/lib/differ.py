"""
Structural differ

Compares an original record with freshly extracted data and reports what
was added, modified and removed. Dicts are walked key by key; arrays and
scalars are compared as whole values.
"""

from typing import Any, Dict, List, Optional

from ..models.results import DiffResult, FieldChange
from .values import is_map, leaves_iterate, path_covered, path_join, path_selected, value_clone, values_equal
from .log import LOG


def maps_compare(
    original: Dict[str, Any],
    extracted: Dict[str, Any],
    result: DiffResult,
    added: Dict[str, Any],
    selectors: Optional[List[str]] = None,
    prefix: str = "",
) -> None:
    """
    Walk two dicts and record differences into result

    Args:
        original: Original dict at this level
        extracted: Extracted dict at this level
        result: DiffResult collecting modified and removed
        added: Dict receiving added keys at this level
        selectors: Optional dotted paths restricting the comparison
        prefix: Dotted path of this level
    """
    for key, new_value in extracted.items():
        path = path_join(prefix, str(key))
        if selectors is not None and not path_selected(path, selectors):
            continue

        if key not in original:
            if is_map(new_value) and not path_covered(path, selectors):
                nested: Dict[str, Any] = {}
                maps_compare({}, new_value, result, nested, selectors, path)
                if nested:
                    added[key] = nested
            else:
                added[key] = value_clone(new_value)
            continue

        old_value = original[key]
        if is_map(old_value) and is_map(new_value):
            nested = {}
            maps_compare(old_value, new_value, result, nested, selectors, path)
            if nested:
                added[key] = nested
        elif not values_equal(old_value, new_value) and path_covered(path, selectors):
            result.modified[path] = FieldChange(from_=value_clone(old_value), to=value_clone(new_value))

    for key, old_value in original.items():
        if key in extracted:
            continue
        path = path_join(prefix, str(key))
        if is_map(old_value) and old_value:
            for leaf, _ in leaves_iterate(old_value, path):
                if selectors is None or path_covered(leaf, selectors):
                    result.removed.append(leaf)
        elif path_covered(path, selectors):
            result.removed.append(path)


def diff(
    original: Any,
    extracted: Any,
    paths: Optional[List[str]] = None,
) -> DiffResult:
    """
    Compute the diff between original data and extracted data

    Args:
        original: Original value (normally a dict)
        extracted: Extracted value (normally a dict)
        paths: Optional dotted paths restricting every category to those
               paths and their descendants

    Returns:
        DiffResult; diff(x, x) has no changes

    Example:
        >>> diff({"title": "Hello"}, {"title": "Hello", "subtitle": "World"}).added
        {'subtitle': 'World'}
    """
    result = DiffResult()

    if is_map(original) and is_map(extracted):
        maps_compare(original, extracted, result, result.added, paths)
    elif not values_equal(original, extracted):
        # Non-dict roots can only differ as a whole
        result.modified[""] = FieldChange(from_=value_clone(original), to=value_clone(extracted))

    result.has_changes = bool(result.added or result.modified or result.removed)

    LOG(
        f"Diff: {len(result.modified)} modified, {len(result.removed)} removed, "
        f"{'some' if result.added else 'no'} additions",
        level=2,
    )
    return result
