# plandoc/D_validation/D01_policy_confidence.py
"""
Confidence and quality scoring for assembled policy candidates.

The scorer is the last gate before a candidate reaches the output: it assigns
``confidence`` and ``quality`` and returns None for candidates below the
rejection floor. Rejection is an exclusion, not an error.

Confidence (weights from HeuristicsConfig):
    base 0.5
    +0.2  clean reference          H1, EN12
    +0.1  sub-numbered reference   H1.2
    +0.1  content over 200 chars, +0.1 more over 500
    +0.1  at least one requirement
    +0.05 at least one objective
    +0.1  title length in [20, 100]
    +0.1  planning terminology in content

Quality is the fraction of a six-item checklist satisfied:
    reference, title > 10 chars, content > 100 chars, requirements,
    category other than General, content length in [200, 2000]
    ratio >= 0.8 -> High, >= 0.6 -> Medium, else Low.

Example:
    >>> scorer = PolicyConfidenceScorer(HeuristicsConfig())
    >>> final = scorer.finalize(candidate)
    >>> final.confidence, final.quality
    (0.8, <QualityTier.MEDIUM: 'Medium'>)
"""

from __future__ import annotations

from typing import Optional

from A_core.A00_logging import get_logger
from A_core.A01_domain_models import PolicyCandidate, PolicyCategory, QualityTier
from A_core.A04_heuristics_config import HeuristicsConfig
from C_generators.C01_policy_patterns import (
    CLEAN_REFERENCE_RE,
    PLANNING_TERMS_RE,
    SUBNUMBERED_REFERENCE_RE,
)

logger = get_logger(__name__)


class PolicyConfidenceScorer:
    def __init__(self, heuristics: HeuristicsConfig) -> None:
        self.h = heuristics

    def score(self, candidate: PolicyCandidate) -> float:
        """Confidence in [0, 1]; every signal only adds."""
        h = self.h
        score = h.policy_base_confidence

        reference = candidate.reference or ""
        if CLEAN_REFERENCE_RE.match(reference):
            score += h.clean_reference_bonus
        elif SUBNUMBERED_REFERENCE_RE.match(reference):
            score += h.subnumbered_reference_bonus

        length = len(candidate.content)
        if length > h.content_length_medium:
            score += h.content_length_bonus
        if length > h.content_length_long:
            score += h.content_length_bonus

        if candidate.requirements:
            score += h.requirements_bonus
        if candidate.objectives:
            score += h.objectives_bonus

        if h.title_length_min <= len(candidate.title or "") <= h.title_length_max:
            score += h.title_length_bonus
        if PLANNING_TERMS_RE.search(candidate.content):
            score += h.planning_terms_bonus

        return round(min(1.0, max(0.0, score)), 4)

    def quality(self, candidate: PolicyCandidate) -> QualityTier:
        h = self.h
        length = len(candidate.content)
        checks = (
            bool(candidate.reference),
            len(candidate.title or "") > h.quality_title_min,
            length > h.quality_content_min,
            bool(candidate.requirements),
            candidate.category != PolicyCategory.GENERAL,
            h.ideal_length_min <= length <= h.ideal_length_max,
        )
        ratio = sum(checks) / len(checks)
        if ratio >= h.quality_high_ratio:
            return QualityTier.HIGH
        if ratio >= h.quality_medium_ratio:
            return QualityTier.MEDIUM
        return QualityTier.LOW

    def finalize(self, candidate: PolicyCandidate) -> Optional[PolicyCandidate]:
        """Scored copy of ``candidate``, or None when below the rejection floor."""
        confidence = self.score(candidate)
        if confidence < self.h.rejection_floor:
            logger.debug(f"Rejected policy {candidate.reference} (confidence {confidence:.2f})")
            return None
        return candidate.model_copy(
            update={"confidence": confidence, "quality": self.quality(candidate)}
        )


__all__ = ["PolicyConfidenceScorer"]
