# plandoc/C_generators/C03_requirement_extractor.py
"""
Obligation clause extraction from policy content.

Scans content with REQUIREMENT_RULES in order. Overlapping clauses are merged:
the "applications ..." and "development ..." rules widen a modal clause already
found to include its subject. Each clause is scored and kept when it scores
above ``requirement_threshold``.

Scoring (weights from HeuristicsConfig):
    base 0.5
    +0.2  strong modal (must / shall / mandatory)
    +0.1  weak modal (will / should / required), only without a strong one
    +0.05 per planning term, capped at +0.15
    -0.2  clause under 20 characters
    -0.1  meta language (example / note / see / refer)
"""

from __future__ import annotations

from typing import List

from A_core.A00_logging import get_logger
from A_core.A01_domain_models import Requirement
from A_core.A04_heuristics_config import HeuristicsConfig
from C_generators.C01_policy_patterns import (
    META_LANGUAGE_RE,
    REQUIREMENT_RULES,
    REQUIREMENT_TERMS_RE,
    STRONG_MODAL_RE,
    WEAK_MODAL_RE,
    classify_requirement,
)

logger = get_logger(__name__)


def _merge_clause(clauses: List[str], clause: str) -> None:
    """Add ``clause`` unless already covered; a wider clause replaces the one it contains."""
    lowered = clause.lower()
    for i, seen in enumerate(clauses):
        if lowered in seen.lower():
            return
        if seen.lower() in lowered:
            clauses[i] = clause
            return
    clauses.append(clause)


class RequirementExtractor:
    def __init__(self, heuristics: HeuristicsConfig) -> None:
        self.h = heuristics

    def score(self, clause: str) -> float:
        h = self.h
        score = h.requirement_base
        if STRONG_MODAL_RE.search(clause):
            score += h.strong_modal_bonus
        elif WEAK_MODAL_RE.search(clause):
            score += h.weak_modal_bonus

        terms = len(REQUIREMENT_TERMS_RE.findall(clause))
        score += min(terms * h.requirement_term_bonus, h.requirement_term_cap)

        if len(clause) < h.short_requirement_length:
            score -= h.short_requirement_penalty
        if META_LANGUAGE_RE.search(clause):
            score -= h.meta_language_penalty
        return round(min(1.0, max(0.0, score)), 4)

    def extract(self, content: str) -> List[Requirement]:
        """Requirements sorted by confidence, at most ``max_requirements``."""
        clauses: List[str] = []
        for pattern in REQUIREMENT_RULES:
            for m in pattern.finditer(content):
                clause = " ".join(m.group(0).split())
                _merge_clause(clauses, clause)

        requirements = []
        for clause in clauses:
            confidence = self.score(clause)
            if confidence <= self.h.requirement_threshold:
                continue
            requirements.append(
                Requirement(
                    text=clause,
                    type=classify_requirement(clause),
                    mandatory=bool(STRONG_MODAL_RE.search(clause)),
                    confidence=confidence,
                )
            )

        requirements.sort(key=lambda r: r.confidence, reverse=True)
        return requirements[: self.h.max_requirements]


__all__ = ["RequirementExtractor"]
