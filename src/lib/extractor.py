"""
Extractor: rendered text + template -> structured data

Ties the slot parser, the pattern matcher and the confidence scorer
together. This is the inverse of rendering a template.

Example:
    >>> result = extract(
    ...     template="# {data.title}\\n\\n{data.description}",
    ...     rendered="# Hello World\\n\\nThis is my document.",
    ... )
    >>> result.data
    {'data': {'title': 'Hello World', 'description': 'This is my document.'}}
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from ..models.slots import Slot, SlotType
from ..models.results import ComponentPlacement, ExtractDebugInfo, ExtractResult
from .slots import SlotParser, path_is
from .matcher import PatternMatcher, SlotCapture
from .confidence import ConfidenceScorer, confidence_score
from .components import ComponentExtractor
from .merger import apply_extract
from .values import path_set, value_clone
from .log import LOG


@dataclass
class ExtractErrorDetails:
    """
    Diagnostics attached to an ExtractError

    Attributes:
        unmatched: Labels of the slots left unmatched
        debug: Full debug info of the failed extraction
    """
    unmatched: List[str]
    debug: ExtractDebugInfo


class ExtractError(Exception):
    """
    Raised by extract(strict=True) when slots remain unmatched

    Attributes:
        kind: Always "unmatched-slots"
        details: ExtractErrorDetails with unmatched labels and debug info
    """

    kind = "unmatched-slots"

    def __init__(self, message: str, details: ExtractErrorDetails) -> None:
        super().__init__(message)
        self.details = details


def component_extract(
    extractor: ComponentExtractor, content: str
) -> Optional[Dict[str, Any]]:
    """
    Call a registered extractor

    Objects with an ``extract`` method are preferred; bare callables are
    accepted as well. An extractor carrying a recognition pattern that does
    not match the content yields None. Exceptions raised by the extractor
    propagate.
    """
    recognizes = getattr(extractor, "recognizes", None)
    if recognizes is not None and not recognizes(content):
        return None
    if hasattr(extractor, "extract"):
        return extractor.extract(content)
    return extractor(content)  # type: ignore[operator]


def componentData_place(
    data: Dict[str, Any],
    slot: Slot,
    props: Mapping[str, Any],
    placement: ComponentPlacement,
) -> Dict[str, Any]:
    """
    Place a component extractor's props into the extracted data

    Args:
        data: Data extracted so far
        slot: The component slot
        props: Dict returned by the extractor
        placement: Placement mode

    Returns:
        The data dict to continue with (ROOT and COMPONENT merge into a new
        dict, BINDINGS writes in place)

    Example:
        With <Table rows={data.rows} /> and props {"rows": [...]}:
            BINDINGS  -> data["data"]["rows"] = [...]
            ROOT      -> data["rows"] = [...]
            COMPONENT -> data["Table"] = {"rows": [...]}
    """
    if placement == ComponentPlacement.ROOT:
        return apply_extract(data, dict(props))

    if placement == ComponentPlacement.COMPONENT:
        return apply_extract(data, {slot.component_name: dict(props)})

    for prop_name, bound in slot.component_props.items():
        if prop_name not in props:
            continue
        if not path_is(bound):
            LOG(f"Prop {prop_name!r} of {slot.label} is bound to {bound!r}, not a path", level=3)
            continue
        path_set(data, bound, value_clone(props[prop_name]))

    unbound = set(props) - set(slot.component_props)
    if unbound:
        LOG(f"Dropped unbound props {sorted(unbound)} from {slot.label}", level=3)
    return data


def extract(
    template: str,
    rendered: str,
    strict: Optional[bool] = None,
    extractors: Optional[Mapping[str, ComponentExtractor]] = None,
    placement: Optional[Union[ComponentPlacement, str]] = None,
    scorer: Optional[ConfidenceScorer] = None,
) -> ExtractResult:
    """
    Extract structured data from rendered text using a template

    Args:
        template: Template with {expression} and <Component /> slots
        rendered: Text produced by rendering the template
        strict: Raise ExtractError when any slot is unmatched
                (defaults to appsettings.strict_mode)
        extractors: Component name -> ComponentExtractor
        placement: Where component props land (defaults to
                   appsettings.component_placement)
        scorer: Confidence scorer (defaults to SlotRatioScorer)

    Returns:
        ExtractResult with data, confidence, unmatched labels and debug info

    Raises:
        ExtractError: In strict mode when unmatched is non-empty

    Example:
        >>> extract(template="{user.profile.settings.theme}", rendered="dark").data
        {'user': {'profile': {'settings': {'theme': 'dark'}}}}
    """
    from ..config import appsettings

    if strict is None:
        strict = appsettings.strict_mode
    placement = ComponentPlacement(placement or appsettings.component_placement)
    extractors = extractors or {}

    parsed = SlotParser(template).template_split()
    matcher = PatternMatcher(parsed, rendered)
    captures: List[SlotCapture] = matcher.captures_find()

    data: Dict[str, Any] = {}
    unmatched_slots: List[Slot] = []

    for capture in captures:
        slot = capture.slot
        value = capture.value

        if slot.type == SlotType.EXPRESSION:
            if value is None:
                unmatched_slots.append(slot)
            else:
                path_set(data, slot.path, value)

        elif slot.type == SlotType.COMPONENT:
            extractor = extractors.get(slot.component_name)
            if extractor is None or value is None:
                unmatched_slots.append(slot)
                continue
            props = component_extract(extractor, value)
            if props is None:
                LOG(f"Extractor for {slot.label} did not recognize its content", level=2)
                unmatched_slots.append(slot)
                continue
            data = componentData_place(data, slot, props, placement)

        else:
            # Conditionals and loops are located but never evaluated
            unmatched_slots.append(slot)

    unmatched = [slot.label for slot in unmatched_slots]
    confidence = confidence_score(parsed.slots, unmatched_slots, scorer)

    debug = ExtractDebugInfo(
        slots=parsed.slots,
        pattern=matcher.pattern_describe(),
        matched=not unmatched,
        groups={capture.group: capture.raw for capture in captures},
    )

    LOG(
        f"Extracted {len(parsed.slots) - len(unmatched_slots)}/{len(parsed.slots)} slots "
        f"(confidence {confidence:.2f})",
        level=2,
    )
    if appsettings.debug_mode:
        LOG(f"Pattern: {debug.pattern}", level=2)

    if strict and unmatched:
        raise ExtractError(
            f"Failed to extract {len(unmatched)} slots: {', '.join(unmatched)}",
            ExtractErrorDetails(unmatched=unmatched, debug=debug),
        )

    return ExtractResult(data=data, confidence=confidence, unmatched=unmatched, debug=debug)
