"""
Data merger

Deep-merges extracted data back into an original record without touching
either input.
"""

from typing import Any, Dict, List, Optional

from ..models.results import ApplyOptions, ArrayMerge
from .values import is_map, is_array, value_clone, path_covered, path_join, path_selected, MISSING
from .log import LOG


def arrays_combine(original: List[Any], extracted: List[Any], policy: ArrayMerge) -> List[Any]:
    """
    Combine two arrays under a merge policy

    Example:
        >>> arrays_combine(["a", "b"], ["c"], ArrayMerge.APPEND)
        ['a', 'b', 'c']
    """
    if policy == ArrayMerge.APPEND:
        return [value_clone(v) for v in original] + [value_clone(v) for v in extracted]
    if policy == ArrayMerge.PREPEND:
        return [value_clone(v) for v in extracted] + [value_clone(v) for v in original]
    return [value_clone(v) for v in extracted]


def maps_merge(
    target: Dict[str, Any],
    source: Any,
    policy: ArrayMerge,
    selectors: Optional[List[str]] = None,
    prefix: str = "",
) -> None:
    """
    Merge source into target in place

    target must be a private copy; values taken from source are cloned.

    Args:
        target: Dict receiving the merge
        source: Mapping to merge from
        policy: Array merge policy
        selectors: Optional dotted paths restricting what is applied
        prefix: Dotted path of target within the root value
    """
    for key, value in source.items():
        path = path_join(prefix, str(key))
        if selectors is not None and not path_selected(path, selectors):
            continue

        current = target.get(key, MISSING)

        if is_map(value):
            if is_map(current):
                maps_merge(current, value, policy, selectors, path)
            else:
                child: Dict[str, Any] = {}
                maps_merge(child, value, policy, selectors, path)
                # Partially selected branches only materialize if something landed
                if child or path_covered(path, selectors):
                    target[key] = child
        elif is_array(value) and is_array(current):
            target[key] = arrays_combine(current, value, policy)
        else:
            target[key] = value_clone(value)


def apply_extract(
    original: Dict[str, Any],
    extracted: Dict[str, Any],
    options: Optional[ApplyOptions] = None,
) -> Dict[str, Any]:
    """
    Apply extracted data to an original record

    Deep-clones original, then for each key of extracted: dicts recurse,
    arrays combine per options.array_merge, anything else overwrites.

    Args:
        original: Original record (never mutated)
        extracted: Extracted data (never mutated)
        options: Path filter and array merge policy; the policy defaults to
                 appsettings.array_merge

    Returns:
        New merged dict

    Example:
        >>> apply_extract({"tags": ["a", "b"]}, {"tags": ["c"]}, ApplyOptions(array_merge="append"))
        {'tags': ['a', 'b', 'c']}
    """
    from ..config import appsettings

    options = options or ApplyOptions()
    policy = options.array_merge or appsettings.array_merge

    if not is_map(original) or not is_map(extracted):
        return value_clone(extracted)

    result = value_clone(original)
    maps_merge(result, extracted, policy, options.paths)

    LOG(f"Applied extracted data ({policy.value} arrays)", level=2)
    return result
