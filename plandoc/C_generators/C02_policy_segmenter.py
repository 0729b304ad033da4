# plandoc/C_generators/C02_policy_segmenter.py
"""
Policy block detection within document sections.

Two-tier precision strategy, run per section:

    1. explicit  "Policy H1: Housing Development" (also "-", en and em dash)
    2. loose     "H1 Housing Development ..." at line start, only when the
                 explicit pass found nothing in that section; a loose match is
                 accepted only if its eager confidence exceeds
                 ``loose_acceptance_threshold``

Content capture reads forward from the line after the header and stops at:
    (a) the next policy header, unless fewer than ``short_content_guard``
        characters have been captured
    (b) a major all-caps header, once past ``short_content_guard`` characters
    (c) a sentence end followed by a blank line or a capitalised / numbered
        line, once past ``paragraph_break_min_chars`` characters
    (d) ``content_line_budget`` lines

Each accepted match's document offset is recorded; later matches at a consumed
offset are skipped. A final pass drops duplicates sharing
``(reference, position // position_bucket)``.

Key Components:
    - PolicySegmenter: segment() over sections -> List[PolicyCandidate]
    - capture_policy_content: The forward line reader described above

Example:
    >>> segmenter = PolicySegmenter(HeuristicsConfig())
    >>> policies = segmenter.segment(StructureAnalyzer().analyze(text))
    >>> [p.reference for p in policies]
    ['H1', 'H2', 'E1', 'T1', 'T2', 'EN1']

Dependencies:
    - C_generators.C01_policy_patterns: header patterns and category table
    - C_generators.C03_requirement_extractor: requirement clauses
    - C_generators.C04_cross_reference_extractor: references and objectives
    - D_validation.D01_policy_confidence: confidence, quality, rejection
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Set, Tuple

from A_core.A00_logging import get_logger
from A_core.A01_domain_models import PolicyCandidate, Section
from A_core.A04_heuristics_config import HeuristicsConfig
from C_generators.C01_policy_patterns import (
    EXPLICIT_POLICY_RE,
    LOOSE_POLICY_RE,
    MAJOR_HEADER_RE,
    PARAGRAPH_START_RE,
    POLICY_LINE_RE,
    SENTENCE_END_RE,
    categorize,
)
from C_generators.C03_requirement_extractor import RequirementExtractor
from C_generators.C04_cross_reference_extractor import (
    CrossReferenceExtractor,
    extract_objectives,
)
from D_validation.D01_policy_confidence import PolicyConfidenceScorer

logger = get_logger(__name__)

DEFAULT_MAX_POLICIES = 100

_LAST_SENTENCE_END_RE = re.compile(r"[.!?](?=[^.!?]*$)")


# =============================================================================
# CONTENT CAPTURE
# =============================================================================


def _is_policy_header(line: str, loose: bool) -> bool:
    if POLICY_LINE_RE.match(line):
        return True
    return loose and LOOSE_POLICY_RE.match(line) is not None


def capture_policy_content(
    text: str,
    start: int,
    heuristics: HeuristicsConfig,
    loose: bool = False,
) -> str:
    """
    Read policy content from ``text`` beginning at offset ``start``.

    ``start`` is the end of the header line. Blank lines inside the captured
    block are kept as single paragraph separators.
    """
    h = heuristics
    collected: List[str] = []
    size = 0
    blank_pending = False

    for raw in text[start:].split("\n")[1 : h.content_line_budget + 1]:
        line = raw.strip()
        if not line:
            blank_pending = bool(collected)
            continue

        if _is_policy_header(line, loose) and size >= h.short_content_guard:
            break
        if size > h.short_content_guard and MAJOR_HEADER_RE.match(line):
            break
        if (
            size > h.paragraph_break_min_chars
            and SENTENCE_END_RE.search(collected[-1])
            and (blank_pending or PARAGRAPH_START_RE.match(line))
        ):
            break

        if blank_pending:
            collected.append("")
            size += 1
            blank_pending = False
        collected.append(line)
        size += len(line) + (1 if len(collected) > 1 else 0)

    return "\n".join(collected).strip()


def truncate_at_sentence(content: str, limit: int) -> str:
    """Cut ``content`` to ``limit`` chars, backing off to the last sentence end."""
    if len(content) <= limit:
        return content
    head = content[:limit]
    m = _LAST_SENTENCE_END_RE.search(head)
    return head[: m.end()] if m else head


# =============================================================================
# SEGMENTER
# =============================================================================


class PolicySegmenter:
    """
    Find, enrich and score policy candidates across a document's sections.

    Requirement, cross-reference and scoring components can be injected; by
    default they are built from the same HeuristicsConfig.
    """

    def __init__(
        self,
        heuristics: HeuristicsConfig,
        requirement_extractor: Optional[RequirementExtractor] = None,
        cross_reference_extractor: Optional[CrossReferenceExtractor] = None,
        scorer: Optional[PolicyConfidenceScorer] = None,
    ) -> None:
        self.h = heuristics
        self.requirements = requirement_extractor or RequirementExtractor(heuristics)
        self.cross_references = cross_reference_extractor or CrossReferenceExtractor()
        self.scorer = scorer or PolicyConfidenceScorer(heuristics)

    def segment(
        self,
        sections: Sequence[Section],
        max_policies: int = DEFAULT_MAX_POLICIES,
    ) -> List[PolicyCandidate]:
        consumed: Set[int] = set()
        found: List[PolicyCandidate] = []
        for section in sections:
            found.extend(self.segment_section(section, consumed))

        unique: List[PolicyCandidate] = []
        seen: Set[Tuple[str, int]] = set()
        for policy in sorted(found, key=lambda p: p.position):
            key = (policy.reference.upper(), policy.position // self.h.position_bucket)
            if key in seen:
                logger.debug(f"Dropping duplicate policy {policy.reference} at {policy.position}")
                continue
            seen.add(key)
            unique.append(policy)

        if len(unique) > max_policies:
            logger.info(f"Capping policies at {max_policies} (found {len(unique)})")
        return unique[:max_policies]

    def segment_section(self, section: Section, consumed: Set[int]) -> List[PolicyCandidate]:
        """Policies inside one section; offsets are document positions."""
        text = section.content
        if not text:
            return []

        explicit = list(EXPLICIT_POLICY_RE.finditer(text))
        if explicit:
            return self._run_pass(section, explicit, consumed, loose=False)

        loose = list(LOOSE_POLICY_RE.finditer(text))
        if loose:
            logger.debug(f"Section {section.reference}: no explicit policies, trying {len(loose)} loose matches")
        return self._run_pass(section, loose, consumed, loose=True)

    def _run_pass(
        self,
        section: Section,
        matches: Sequence[re.Match],
        consumed: Set[int],
        loose: bool,
    ) -> List[PolicyCandidate]:
        accepted: List[PolicyCandidate] = []
        for m in matches:
            offset = section.content_start + m.start()
            if offset in consumed:
                continue

            candidate = self._build(section, m, offset, loose)
            if candidate is None:
                continue
            if loose and self.scorer.score(candidate) <= self.h.loose_acceptance_threshold:
                continue

            final = self.scorer.finalize(candidate)
            if final is None:
                continue
            consumed.add(offset)
            accepted.append(final)
        return accepted

    def _build(
        self,
        section: Section,
        match: re.Match,
        offset: int,
        loose: bool,
    ) -> Optional[PolicyCandidate]:
        h = self.h
        reference = match.group(1).upper()
        title = match.group(2).strip()

        content = capture_policy_content(section.content, match.end(), h, loose=loose)
        content = truncate_at_sentence(content, h.max_policy_length)
        if len(content) < h.min_policy_length:
            logger.debug(f"Policy {reference}: content too short ({len(content)} chars)")
            return None

        return PolicyCandidate(
            reference=reference,
            title=title,
            content=content,
            category=categorize(title, content),
            requirements=self.requirements.extract(content),
            cross_references=self.cross_references.extract(content, reference),
            objectives=extract_objectives(content, h.max_objectives),
            position=offset,
            section_reference=section.reference,
            section_title=section.title,
        )


__all__ = [
    "PolicySegmenter",
    "capture_policy_content",
    "truncate_at_sentence",
    "DEFAULT_MAX_POLICIES",
]
