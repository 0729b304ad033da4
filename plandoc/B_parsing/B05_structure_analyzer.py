# plandoc/B_parsing/B05_structure_analyzer.py
"""
Section detection for planning documents.

Splits normalized text into an ordered list of sections using three line
patterns, tried top to bottom on every line:

    1. numbered  "2.1 Housing Delivery"   (trailing dot allowed: "2. HOUSING")
    2. lettered  "A. Strategic Policies"
    3. titled    "GREEN BELT AND OPEN SPACE" (2-8 all-caps words, 5-40 chars,
                 never a line containing POLICY)

Text before the first header, or the whole text when no header exists, is
kept as a ``preamble`` section so later stages always have a scope to search.

Key Components:
    - StructureAnalyzer: analyze() -> List[Section], detect_title()
    - HeaderMatch: One detected header line
    - match_header: Classify a single line

Example:
    >>> analyzer = StructureAnalyzer()
    >>> sections = analyzer.analyze(text)
    >>> [(s.reference, s.title) for s in sections]
    [('DEFAULT', 'Main Content'), ('1', 'INTRODUCTION'), ('2', 'HOUSING POLICIES')]
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import List, Optional

from A_core.A00_logging import get_logger, timed
from A_core.A01_domain_models import Section, SectionType
from B_parsing.B01a_text_helpers import word_count

logger = get_logger(__name__)


# =============================================================================
# HEADER PATTERNS
# =============================================================================

NUMBERED_HEADER_RE = re.compile(r"^(\d+(?:\.\d+){0,2})\.?\s+([A-Z][A-Za-z\s]{4,60})$")
LETTERED_HEADER_RE = re.compile(r"^([A-Z])\.\s+([A-Z][A-Za-z\s]{4,60})$")
TITLED_HEADER_RE = re.compile(r"^[A-Z][A-Z\s]{4,39}$")

HEADER_MIN_LENGTH = 5
HEADER_MAX_LENGTH = 100
TITLED_MIN_WORDS = 2
TITLED_MAX_WORDS = 8

PREAMBLE_REFERENCE = "DEFAULT"
PREAMBLE_TITLE = "Main Content"

TITLE_SCAN_LINES = 10


@dataclass
class HeaderMatch:
    reference: str
    title: str
    level: int
    type: SectionType


def match_header(line: str, line_index: int) -> Optional[HeaderMatch]:
    """Classify one stripped line as a section header, or None."""
    if not HEADER_MIN_LENGTH <= len(line) <= HEADER_MAX_LENGTH:
        return None

    m = NUMBERED_HEADER_RE.match(line)
    if m:
        reference = m.group(1)
        return HeaderMatch(reference, m.group(2).strip(), reference.count(".") + 1, SectionType.NUMBERED)

    m = LETTERED_HEADER_RE.match(line)
    if m:
        return HeaderMatch(m.group(1), m.group(2).strip(), 1, SectionType.LETTERED)

    if TITLED_HEADER_RE.match(line) and "POLICY" not in line:
        words = line.split()
        if TITLED_MIN_WORDS <= len(words) <= TITLED_MAX_WORDS:
            return HeaderMatch(f"SECTION_{line_index}", line.strip(), 1, SectionType.TITLED)
    return None


class StructureAnalyzer:
    """Build the section list for one document's text."""

    @timed()
    def analyze(self, text: str) -> List[Section]:
        headers = []  # (line_start, content_start, HeaderMatch)
        offset = 0
        for index, line in enumerate(text.split("\n")):
            line_start = offset
            offset += len(line) + 1
            header = match_header(line.strip(), index)
            if header is not None:
                headers.append((line_start, min(offset, len(text)), header))

        sections: List[Section] = []
        first_start = headers[0][0] if headers else len(text)
        if text[:first_start].strip():
            sections.append(
                self._build(
                    text,
                    HeaderMatch(PREAMBLE_REFERENCE, PREAMBLE_TITLE, 1, SectionType.PREAMBLE),
                    start=0,
                    body_start=0,
                    body_end=first_start,
                )
            )

        for i, (line_start, body_start, header) in enumerate(headers):
            body_end = headers[i + 1][0] if i + 1 < len(headers) else len(text)
            sections.append(self._build(text, header, line_start, body_start, body_end))

        logger.debug(f"Detected {len(sections)} sections ({len(headers)} headers)")
        return sections

    @staticmethod
    def _build(text: str, header: HeaderMatch, start: int, body_start: int, body_end: int) -> Section:
        raw = text[body_start:body_end]
        content = raw.strip()
        lead = len(raw) - len(raw.lstrip())
        return Section(
            reference=header.reference,
            title=header.title,
            level=header.level,
            type=header.type,
            start_position=start,
            content_start=body_start + lead if content else body_start,
            content=content,
            word_count=word_count(content),
        )

    @staticmethod
    def detect_title(
        text: str,
        metadata_title: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Optional[str]:
        """
        Title from the first lines, else PDF metadata, else the filename.

        A candidate line is 11-99 characters and either all capitals or
        ending in "Plan".
        """
        for line in text.split("\n")[:TITLE_SCAN_LINES]:
            candidate = line.strip()
            if 10 < len(candidate) < 100 and (candidate.isupper() or candidate.endswith("Plan")):
                return candidate
        if metadata_title:
            return metadata_title
        if filename:
            return re.sub(r"[-_]+", " ", PurePath(filename).stem).strip() or None
        return None


__all__ = [
    "StructureAnalyzer",
    "HeaderMatch",
    "match_header",
    "NUMBERED_HEADER_RE",
    "LETTERED_HEADER_RE",
    "TITLED_HEADER_RE",
    "PREAMBLE_REFERENCE",
    "PREAMBLE_TITLE",
]
