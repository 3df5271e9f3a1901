"""
Confidence scorer tests
"""

import pytest

from unrender.lib.confidence import (
    ConfidenceScorer,
    SlotRatioScorer,
    WeightedScorer,
    confidence_score,
)
from unrender.lib.slots import parse_template_slots
from unrender.models import SlotType


SLOTS = parse_template_slots("{a.x} {a.y} <Table /> {a.z}")


class TestSlotRatio:
    """Default ratio scorer"""

    def test_no_slots(self):
        """Zero slots is full confidence"""
        assert SlotRatioScorer().score([], []) == 1.0

    def test_all_matched(self):
        """Full match is 1"""
        assert SlotRatioScorer().score(SLOTS, []) == 1.0

    def test_none_matched(self):
        """Nothing matched is 0"""
        assert SlotRatioScorer().score(SLOTS, SLOTS) == 0.0

    def test_partial(self):
        """Fraction of matched slots"""
        assert SlotRatioScorer().score(SLOTS, SLOTS[:1]) == 0.75

    def test_default_scorer(self):
        """confidence_score defaults to the ratio scorer"""
        assert confidence_score(SLOTS, SLOTS[:2]) == 0.5


class TestWeighted:
    """Per-type weights"""

    def test_component_weight(self):
        """A heavier component costs more when missing"""
        scorer = WeightedScorer({SlotType.COMPONENT: 3.0})
        component = [s for s in SLOTS if s.type == SlotType.COMPONENT]
        assert scorer.score(SLOTS, component) == pytest.approx(0.5)

    def test_string_keys(self):
        """Weights may be keyed by type name"""
        scorer = WeightedScorer({"component": 2.0}, default=0.5)
        assert scorer.weight(SLOTS[2]) == 2.0
        assert scorer.weight(SLOTS[0]) == 0.5

    def test_zero_total_weight(self):
        """All-zero weights are treated like an empty template"""
        scorer = WeightedScorer(default=0.0)
        assert scorer.score(SLOTS, SLOTS) == 1.0

    def test_clamped(self):
        """Negative weights cannot push the score outside [0, 1]"""
        scorer = WeightedScorer({"expression": -1.0}, default=1.0)
        score = scorer.score(SLOTS, SLOTS[2:3])
        assert 0.0 <= score <= 1.0


class TestProtocol:
    """Scorers satisfy the protocol"""

    @pytest.mark.parametrize("scorer", [SlotRatioScorer(), WeightedScorer()])
    def test_runtime_checkable(self, scorer):
        """Built-in scorers are ConfidenceScorers"""
        assert isinstance(scorer, ConfidenceScorer)

    def test_custom_scorer(self):
        """Any object with score() is accepted"""
        class AllOrNothing:
            def score(self, slots, unmatched):
                return 0.0 if unmatched else 1.0

        assert confidence_score(SLOTS, SLOTS[:1], AllOrNothing()) == 0.0
        assert confidence_score(SLOTS, [], AllOrNothing()) == 1.0
