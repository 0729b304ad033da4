# plandoc/tests/test_validation/test_policy_confidence.py
"""Tests for D_validation/D01_policy_confidence.py - confidence, quality, rejection."""

import pytest

from A_core.A01_domain_models import PolicyCandidate, PolicyCategory, QualityTier, Requirement
from A_core.A04_heuristics_config import HeuristicsConfig
from D_validation.D01_policy_confidence import PolicyConfidenceScorer

REQUIREMENT = Requirement(text="must provide adequate parking and access.", mandatory=True, confidence=0.7)


def _candidate(**overrides):
    fields = dict(
        reference="H1",
        title="Housing Development",
        content="New housing must provide adequate parking and access.",
        category=PolicyCategory.HOUSING,
        requirements=[REQUIREMENT],
        position=0,
    )
    fields.update(overrides)
    return PolicyCandidate(**fields)


@pytest.fixture
def scorer():
    return PolicyConfidenceScorer(HeuristicsConfig())


class TestScore:
    def test_basic_policy(self, scorer):
        assert scorer.score(_candidate()) == pytest.approx(0.8)

    @pytest.mark.parametrize(
        "reference,expected",
        [("H1", 0.8), ("H1.2", 0.7), ("H1.2.3", 0.6), ("1A", 0.6)],
    )
    def test_reference_shape(self, scorer, reference, expected):
        assert scorer.score(_candidate(reference=reference)) == pytest.approx(expected)

    def test_content_length_thresholds(self, scorer):
        base = _candidate(requirements=[])
        medium = _candidate(requirements=[], content="x" * 201)
        long = _candidate(requirements=[], content="x" * 501)
        assert scorer.score(medium) == pytest.approx(scorer.score(base) + 0.1)
        assert scorer.score(long) == pytest.approx(scorer.score(base) + 0.2)

    def test_title_length_window(self, scorer):
        assert scorer.score(_candidate(title="Housing Development Sites")) == pytest.approx(0.9)
        assert scorer.score(_candidate(title="H" * 101)) == pytest.approx(0.8)

    def test_objectives_and_planning_terms(self, scorer):
        candidate = _candidate(
            content="Planning permission must provide adequate parking and access.",
            objectives=["To deliver new homes"],
        )
        assert scorer.score(candidate) == pytest.approx(0.95)

    def test_clipped_to_one(self, scorer):
        candidate = _candidate(
            title="Housing Development Sites",
            content="Development " * 50,
            objectives=["To deliver new homes"],
        )
        assert scorer.score(candidate) == 1.0

    def test_adding_requirements_never_lowers_score(self, scorer):
        without = _candidate(requirements=[])
        with_one = _candidate(requirements=[REQUIREMENT])
        with_two = _candidate(requirements=[REQUIREMENT, REQUIREMENT])
        assert scorer.score(without) <= scorer.score(with_one) <= scorer.score(with_two)

    @pytest.mark.parametrize("length", [0, 50, 199, 201, 499, 501, 4000])
    def test_longer_content_never_lowers_score(self, scorer, length):
        shorter = _candidate(content="x" * length)
        longer = _candidate(content="x" * (length + 1))
        assert scorer.score(longer) >= scorer.score(shorter)


class TestQuality:
    def test_medium(self, scorer):
        # reference, title, requirements, category: 4 of 6
        assert scorer.quality(_candidate()) == QualityTier.MEDIUM

    def test_high(self, scorer):
        assert scorer.quality(_candidate(content="New housing must provide parking. " * 10)) == QualityTier.HIGH

    def test_low(self, scorer):
        candidate = _candidate(title="Misc", requirements=[], category=PolicyCategory.GENERAL)
        assert scorer.quality(candidate) == QualityTier.LOW


class TestFinalize:
    def test_sets_confidence_and_quality(self, scorer):
        candidate = _candidate()
        final = scorer.finalize(candidate)
        assert final.confidence == pytest.approx(0.8)
        assert final.quality == QualityTier.MEDIUM
        assert candidate.confidence == 0.0  # original left untouched

    def test_rejects_below_floor(self):
        strict = PolicyConfidenceScorer(HeuristicsConfig(rejection_floor=0.9))
        assert strict.finalize(_candidate()) is None

    def test_floor_is_inclusive(self):
        scorer = PolicyConfidenceScorer(HeuristicsConfig(rejection_floor=0.8))
        assert scorer.finalize(_candidate()) is not None
