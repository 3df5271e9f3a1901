"""
Round-trip components

A component pairs a render function with its inverse so that markup richer
than a single value (tables, lists, cards) can be extracted again. The
extractor half is registered by name with extract():

    PropertyTable = round_trip_component(render=table_render, extract=table_parse)
    extract(template=..., rendered=..., extractors={"PropertyTable": PropertyTable.extractor})

Components are expected to obey the round-trip law

    component.extract(component.render(props)) == props

which is checked by tests (see round_trip_holds), not at runtime.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Pattern, Protocol, Union, runtime_checkable

from .values import values_equal


@runtime_checkable
class ComponentExtractor(Protocol):
    """Protocol for caller-supplied component extractors"""

    def extract(self, content: str) -> Optional[Dict[str, Any]]:
        """
        Turn a component's rendered markup back into its props.

        Args:
            content: Rendered text located between the component's anchors.

        Returns:
            Props dict, or None when the content is not recognized.
        """
        ...


@dataclass(frozen=True)
class FunctionExtractor:
    """
    ComponentExtractor backed by a plain function

    Attributes:
        func: content -> props
        pattern: Optional regex identifying the component's output
    """
    func: Callable[[str], Optional[Dict[str, Any]]]
    pattern: Optional[Pattern[str]] = None

    def extract(self, content: str) -> Optional[Dict[str, Any]]:
        return self.func(content)

    def recognizes(self, content: str) -> bool:
        """True when no pattern is set or the pattern matches content"""
        return self.pattern is None or self.pattern.search(content) is not None


@dataclass(frozen=True)
class Component:
    """
    A render/extract pair

    Attributes:
        render: props -> rendered markup
        extract: rendered markup -> props
        extractor: ComponentExtractor wrapping extract, for extract(extractors=...)
    """
    render: Callable[[Dict[str, Any]], str]
    extract: Callable[[str], Optional[Dict[str, Any]]]
    extractor: ComponentExtractor


def round_trip_component(
    render: Callable[[Dict[str, Any]], str],
    extract: Callable[[str], Optional[Dict[str, Any]]],
    pattern: Optional[Union[Pattern[str], str]] = None,
) -> Component:
    """
    Create a component supporting both render and extract

    Args:
        render: Function rendering props to markup
        extract: Function parsing markup back to props
        pattern: Optional regex (or regex source) identifying the output

    Returns:
        Component whose .extractor can be registered with extract()

    Example:
        >>> List = round_trip_component(
        ...     render=lambda props: "\\n".join(f"- {i}" for i in props["items"]),
        ...     extract=lambda content: {"items": [l[2:] for l in content.split("\\n")]},
        ... )
        >>> List.extract(List.render({"items": ["a", "b"]}))
        {'items': ['a', 'b']}
    """
    if isinstance(pattern, str):
        pattern = re.compile(pattern)
    return Component(
        render=render,
        extract=extract,
        extractor=FunctionExtractor(func=extract, pattern=pattern),
    )


def round_trip_holds(component: Component, props: Dict[str, Any]) -> bool:
    """Check the round-trip law for one set of props"""
    return values_equal(component.extract(component.render(props)), props)
