# plandoc/C_generators/C05_address_extractor.py
"""
Address, planning reference and authority mining over full document text.

Runs independently of section and policy detection. Each non-empty line of
6-160 characters is scored as an address candidate:

    +0.3   house number (line starts with a digit, or first token has one)
    +0.4   road-type suffix token (road, street, lane, close, ...)
    +0.4   UK postcode inside the line
    +0.25  otherwise, a postcode elsewhere within 120 chars of the line start

Lines scoring at least ``address_threshold`` become candidates. Runs of
adjacent candidate lines that are each short (<= 6 tokens) merge into one
address with the averaged confidence. Output is deduplicated on the
lowercased address, sorted by descending confidence and capped at 25.

Key Components:
    - AddressHeuristicExtractor: extract(text) -> List[AddressCandidate]
    - find_postcodes: Normalized postcodes with offsets
    - extract_planning_references: 20/12345/FUL, DC/20/12345, ...
    - extract_local_authorities: "<Name> Council", "London Borough of <Name>"

Example:
    >>> extractor = AddressHeuristicExtractor(HeuristicsConfig())
    >>> [a.postcode for a in extractor.extract("10 Downing Street, London SW1A 2AA")]
    ['SW1A 2AA']
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Pattern, Sequence, Tuple

from A_core.A00_logging import get_logger, timed
from A_core.A01_domain_models import AddressCandidate
from A_core.A04_heuristics_config import HeuristicsConfig

logger = get_logger(__name__)


# =============================================================================
# PATTERNS
# =============================================================================

POSTCODE_RE = re.compile(
    r"\b([A-Z]{1,2}[0-9][A-Z0-9]?)\s?([0-9][ABD-HJLNP-UW-Z]{2})\b",
    re.IGNORECASE,
)

ROAD_SUFFIXES: FrozenSet[str] = frozenset(
    {
        "road", "street", "lane", "avenue", "drive", "close", "way", "place",
        "gardens", "park", "square", "terrace", "crescent", "grove", "rise",
        "view", "court", "mews", "hill", "green", "common", "walk", "row",
        "end", "side", "vale", "heights", "fields", "meadow",
    }
)

_TOKEN_RE = re.compile(r"[a-z]+")

PLANNING_REFERENCE_RULES: Tuple[Pattern[str], ...] = (
    re.compile(r"\b\d{2}/\d{4,5}/[A-Z]{1,4}\b"),
    re.compile(r"\b\d{4}/\d{4,5}/[A-Z]{1,4}\b"),
    re.compile(r"\bDC/\d{2}/\d{4,5}\b"),
    re.compile(r"\bP/\d{2}/\d{4,5}\b"),
    re.compile(r"\b[A-Z]{2,4}\d{2}/\d{4,5}\b"),
)

AUTHORITY_RULES: Tuple[Pattern[str], ...] = (
    re.compile(r"\bLondon Borough of[ \t]+[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*"),
    re.compile(r"\b([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)[ \t]+(?:Council|Borough|District|City|County)\b"),
)

# Capitalised words that open a sentence rather than name a place
_NOT_PLACE_NAMES = frozenset({"The", "This", "That", "Each", "Any", "All", "Local", "Our", "Your"})


def normalize_postcode(outward: str, inward: str) -> str:
    return f"{outward.upper()} {inward.upper()}"


def find_postcodes(text: str) -> List[Tuple[int, str]]:
    """(offset, normalized postcode) for each postcode in ``text``."""
    return [(m.start(), normalize_postcode(m.group(1), m.group(2))) for m in POSTCODE_RE.finditer(text)]


def _dedupe(values: Sequence[str]) -> List[str]:
    seen = set()
    out = []
    for value in values:
        if value not in seen:
            seen.add(value)
            out.append(value)
    return out


def extract_planning_references(text: str) -> List[str]:
    refs: List[str] = []
    for pattern in PLANNING_REFERENCE_RULES:
        refs.extend(m.group(0) for m in pattern.finditer(text))
    return _dedupe(refs)


def extract_local_authorities(text: str) -> List[str]:
    names: List[str] = []
    for pattern in AUTHORITY_RULES:
        for m in pattern.finditer(text):
            if m.groups() and m.group(1).split()[0] in _NOT_PLACE_NAMES:
                continue
            names.append(" ".join(m.group(0).split()))
    # "London Borough of X" also matches the generic rule as "London Borough"
    return [n for n in _dedupe(names) if n != "London Borough"]


# =============================================================================
# EXTRACTOR
# =============================================================================


@dataclass
class _LineScore:
    index: int
    text: str
    score: float
    postcode: Optional[str]

    @property
    def tokens(self) -> int:
        return len(self.text.split())


class AddressHeuristicExtractor:
    def __init__(self, heuristics: HeuristicsConfig) -> None:
        self.h = heuristics

    def score_line(
        self,
        line: str,
        offset: int,
        postcodes: Sequence[Tuple[int, str]],
    ) -> Tuple[float, Optional[str]]:
        """Raw (unclipped) score and in-line postcode for one stripped line."""
        h = self.h
        score = 0.0

        first = line.split()[0]
        if line[0].isdigit() or any(c.isdigit() for c in first):
            score += h.house_number_weight

        if ROAD_SUFFIXES.intersection(_TOKEN_RE.findall(line.lower())):
            score += h.road_suffix_weight

        postcode = None
        m = POSTCODE_RE.search(line)
        if m:
            postcode = normalize_postcode(m.group(1), m.group(2))
            score += h.postcode_weight
        elif any(abs(pos - offset) <= h.postcode_proximity_window for pos, _ in postcodes):
            score += h.postcode_proximity_weight
        return score, postcode

    @timed()
    def extract(self, text: str) -> List[AddressCandidate]:
        h = self.h
        postcodes = find_postcodes(text)
        scored: List[_LineScore] = []

        offset = 0
        for index, raw in enumerate(text.split("\n")):
            line_offset = offset
            offset += len(raw) + 1
            line = raw.strip()
            if not h.address_min_line_length <= len(line) <= h.address_max_line_length:
                continue
            score, postcode = self.score_line(line, line_offset, postcodes)
            if score >= h.address_threshold:
                scored.append(_LineScore(index, " ".join(line.split()), score, postcode))

        candidates = [self._to_candidate(group) for group in self._merge_adjacent(scored)]
        candidates.sort(key=lambda c: c.confidence, reverse=True)

        unique: List[AddressCandidate] = []
        seen = set()
        for candidate in candidates:
            key = candidate.address.lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)

        logger.debug(f"Address scan: {len(scored)} scored lines, {len(unique)} candidates")
        return unique[: h.max_addresses]

    def _merge_adjacent(self, scored: List[_LineScore]) -> List[List[_LineScore]]:
        limit = self.h.address_merge_max_tokens
        groups: List[List[_LineScore]] = []
        for line in scored:
            if groups:
                last = groups[-1][-1]
                if line.index == last.index + 1 and last.tokens <= limit and line.tokens <= limit:
                    groups[-1].append(line)
                    continue
            groups.append([line])
        return groups

    @staticmethod
    def _to_candidate(group: List[_LineScore]) -> AddressCandidate:
        address = ", ".join(part.text.rstrip(",") for part in group)
        postcode = next((part.postcode for part in group if part.postcode), None)
        confidence = sum(min(1.0, part.score) for part in group) / len(group)
        return AddressCandidate(
            address=address,
            postcode=postcode,
            line_index=group[0].index,
            confidence=round(min(1.0, confidence), 4),
        )


__all__ = [
    "AddressHeuristicExtractor",
    "POSTCODE_RE",
    "ROAD_SUFFIXES",
    "find_postcodes",
    "normalize_postcode",
    "extract_planning_references",
    "extract_local_authorities",
]
