"""
Confidence scoring

A confidence score is the completeness of an extraction: how much of the
template's slots were resolved. Scorers are interchangeable so a caller
can, for example, count a component slot as worth more than a title.
"""

from typing import Dict, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

from ..models.slots import Slot, SlotType


@runtime_checkable
class ConfidenceScorer(Protocol):
    """Protocol for confidence scoring strategies"""

    def score(self, slots: Sequence[Slot], unmatched: Sequence[Slot]) -> float:
        """
        Score an extraction.

        Args:
            slots: Every slot in the template.
            unmatched: The subset of slots that could not be resolved.

        Returns:
            Confidence in [0, 1]; 1.0 when the template has no slots.
        """
        ...


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class SlotRatioScorer:
    """Fraction of slots matched: (total - unmatched) / total"""

    def score(self, slots: Sequence[Slot], unmatched: Sequence[Slot]) -> float:
        total = len(slots)
        if total == 0:
            return 1.0
        return _clamp((total - len(unmatched)) / total)


class WeightedScorer:
    """
    Weighted fraction of slots matched

    Slot types without an explicit weight count as ``default``. With
    WeightedScorer({SlotType.COMPONENT: 3.0}) a missing component costs
    three times a missing expression.
    """

    def __init__(
        self,
        weights: Optional[Mapping[Union[SlotType, str], float]] = None,
        default: float = 1.0,
    ) -> None:
        self.weights: Dict[SlotType, float] = {
            SlotType(kind): float(weight) for kind, weight in (weights or {}).items()
        }
        self.default = default

    def weight(self, slot: Slot) -> float:
        return self.weights.get(slot.type, self.default)

    def score(self, slots: Sequence[Slot], unmatched: Sequence[Slot]) -> float:
        total = sum(self.weight(slot) for slot in slots)
        if total <= 0:
            return 1.0
        missed = sum(self.weight(slot) for slot in unmatched)
        return _clamp((total - missed) / total)


def confidence_score(
    slots: Sequence[Slot],
    unmatched: Sequence[Slot],
    scorer: Optional[ConfidenceScorer] = None,
) -> float:
    """Score with the given scorer, defaulting to SlotRatioScorer"""
    return (scorer or SlotRatioScorer()).score(slots, unmatched)
