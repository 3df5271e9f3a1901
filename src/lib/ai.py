"""
AI fallback boundary

extract_with_ai() runs plain pattern extraction first and only hands the
leftover slots to a caller-supplied AIProvider. No provider ships with this
package; the request/response contract below is all a provider needs.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union, runtime_checkable

from ..models.slots import Slot, SlotType
from ..models.results import AIExtractResult, ComponentPlacement
from .slots import parse_template_slots
from .extractor import extract
from .components import ComponentExtractor
from .confidence import ConfidenceScorer
from .merger import apply_extract
from .log import LOG


def slot_hint(slot: Slot) -> str:
    """Instruction describing what a provider should recover for a slot"""
    if slot.type == SlotType.EXPRESSION:
        return f"Extract the value for {slot.path} from the content"
    if slot.type == SlotType.CONDITIONAL:
        return "Determine the value that produced this conditional output"
    if slot.type == SlotType.LOOP:
        return "Extract the array of items from the repeated content"
    return f"Extract the props of the {slot.component_name} component from its rendered output"


@dataclass
class AIExtractionRequest:
    """
    What a provider receives

    Attributes:
        template: Template source
        rendered: Rendered text
        unmatched: Labels the pattern pass could not resolve
        hints: Label -> instruction for each unmatched slot
    """
    template: str
    rendered: str
    unmatched: List[str]
    hints: Dict[str, str] = field(default_factory=dict)

    @property
    def prompt(self) -> str:
        return (
            f"Given this MDX template:\n{self.template}\n\n"
            f"And this rendered content:\n{self.rendered}\n\n"
            f"Extract the values for the missing fields: {', '.join(self.unmatched)}"
        )


@dataclass
class AIExtractionResponse:
    """
    What a provider returns

    Attributes:
        data: Values recovered for (some of) the unmatched slots
        confidence: Provider's own confidence in [0, 1]
        unmatched: Labels still unresolved; None means "not reported"
    """
    data: Dict[str, Any]
    confidence: float
    unmatched: Optional[List[str]] = None


@runtime_checkable
class AIProvider(Protocol):
    """Protocol for AI-assisted extraction backends"""

    async def extract(self, request: AIExtractionRequest) -> AIExtractionResponse:
        ...


def request_build(template: str, rendered: str, unmatched: List[str]) -> AIExtractionRequest:
    hints = {
        slot.label: slot_hint(slot)
        for slot in parse_template_slots(template)
        if slot.label in unmatched
    }
    return AIExtractionRequest(template=template, rendered=rendered, unmatched=list(unmatched), hints=hints)


async def extract_with_ai(
    template: str,
    rendered: str,
    provider: Optional[AIProvider] = None,
    extractors: Optional[Mapping[str, ComponentExtractor]] = None,
    placement: Optional[Union[ComponentPlacement, str]] = None,
    scorer: Optional[ConfidenceScorer] = None,
) -> AIExtractResult:
    """
    Extract with AI assistance for slots pattern matching cannot resolve

    Args:
        template: Template source
        rendered: Rendered text
        provider: Optional AIProvider; without one the pattern result is
                  returned flagged as assisted
        extractors: Component extractors, passed to extract()
        placement: Component placement, passed to extract()
        scorer: Confidence scorer, passed to extract()

    Returns:
        AIExtractResult

    Raises:
        Whatever the provider raises
    """
    from ..config import appsettings

    pattern = extract(
        template,
        rendered,
        strict=False,
        extractors=extractors,
        placement=placement,
        scorer=scorer,
    )

    if pattern.confidence >= appsettings.ai_confidence_threshold and not pattern.unmatched:
        return AIExtractResult(
            data=pattern.data,
            confidence=pattern.confidence,
            unmatched=pattern.unmatched,
            debug=pattern.debug,
            ai_assisted=False,
        )

    if provider is None:
        LOG(f"No AI provider; {len(pattern.unmatched)} slots stay unmatched", level=2)
        return AIExtractResult(
            data=pattern.data,
            confidence=pattern.confidence,
            unmatched=pattern.unmatched,
            debug=pattern.debug,
            ai_assisted=True,
        )

    request = request_build(template, rendered, pattern.unmatched)
    LOG(f"Asking AI provider for {', '.join(request.unmatched)}", level=2)
    response = await provider.extract(request)

    unmatched = pattern.unmatched if response.unmatched is None else list(response.unmatched)
    return AIExtractResult(
        data=apply_extract(pattern.data, response.data),
        confidence=max(pattern.confidence, min(1.0, max(0.0, response.confidence))),
        unmatched=unmatched,
        debug=pattern.debug,
        ai_assisted=True,
    )
