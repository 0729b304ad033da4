# plandoc/C_generators/C01_policy_patterns.py
"""
Ordered rule tables for policy, requirement and reference detection.

Every regex used by the policy stages is declared here, in priority order, so
each table can be tested independently of the segmentation control flow.

Tables:
    - CATEGORY_RULES: (category, pattern) pairs, first match wins
    - REQUIREMENT_RULES: modal clause patterns, scanned in order
    - REQUIREMENT_TYPE_RULES: (type, pattern) pairs, first match wins
    - CROSS_REFERENCE_RULES: policy and section/paragraph reference patterns

Header patterns:
    - EXPLICIT_POLICY_RE: "Policy H1: Title" / "Policy H1 - Title" (dash variants)
    - LOOSE_POLICY_RE: bare "H1 Title..." at line start
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Pattern, Tuple

from A_core.A01_domain_models import PolicyCategory, RequirementType


# =============================================================================
# REFERENCES
# =============================================================================

REFERENCE_PATTERN = r"[A-Z]{1,3}\d{1,3}(?:\.\d+)*"

REFERENCE_RE = re.compile(rf"^{REFERENCE_PATTERN}$")
CLEAN_REFERENCE_RE = re.compile(r"^[A-Z]{1,3}\d{1,3}$")
SUBNUMBERED_REFERENCE_RE = re.compile(r"^[A-Z]{1,3}\d{1,3}\.\d+$")


# =============================================================================
# POLICY HEADERS
# =============================================================================

# Colon, hyphen, en dash or em dash between reference and title
EXPLICIT_POLICY_RE = re.compile(
    rf"^[ \t]*Policy[ \t]+({REFERENCE_PATTERN})[ \t]*(?::|-|\u2013|\u2014)[ \t]*([^\n]+?)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)

# Bare reference followed by at least ten characters of title text
LOOSE_POLICY_RE = re.compile(
    rf"^[ \t]*({REFERENCE_PATTERN})[ \t]*(?::|\.|-|\u2013|\u2014)?[ \t]+(\S[^\n]{{9,}}?)[ \t]*$",
    re.MULTILINE,
)

# Any line that starts another policy, used to stop content capture
POLICY_LINE_RE = re.compile(rf"^Policy\s+{REFERENCE_PATTERN}\b", re.IGNORECASE)

# All-caps line that reads as a major section header
MAJOR_HEADER_RE = re.compile(r"^(?:\d+(?:\.\d+)*\.?\s+)?[A-Z][A-Z\s&,'-]{4,}$")

SENTENCE_END_RE = re.compile(r"[.!?][\"')\]]?$")
PARAGRAPH_START_RE = re.compile(r"^[A-Z0-9]")


# =============================================================================
# CATEGORIES
# =============================================================================


@dataclass(frozen=True)
class CategoryRule:
    category: PolicyCategory
    pattern: Pattern[str]


def _words(alternation: str) -> Pattern[str]:
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule(PolicyCategory.HOUSING, _words(r"housing|residential|homes?|dwellings?|affordable|tenure|density")),
    CategoryRule(
        PolicyCategory.TRANSPORT,
        _words(r"transport|traffic|parking|highways?|roads?|cycling|walking|accessibility|mobility"),
    ),
    CategoryRule(
        PolicyCategory.ENVIRONMENT,
        _words(r"environment(?:al)?|green|ecology|biodiversity|trees?|landscape|open space|recreation"),
    ),
    CategoryRule(
        PolicyCategory.ECONOMY,
        _words(r"employment|business|economic|commercial|retail|industrial|office|jobs"),
    ),
    CategoryRule(
        PolicyCategory.HERITAGE,
        _words(r"heritage|historic|conservation|character|listed|archaeology|archaeological|cultural"),
    ),
    CategoryRule(
        PolicyCategory.DESIGN,
        _words(r"design|appearance|visual|aesthetic|height|scale|materials|architectural"),
    ),
    CategoryRule(
        PolicyCategory.INFRASTRUCTURE,
        _words(r"infrastructure|utilities|services|facilities|capacity|provision"),
    ),
    CategoryRule(
        PolicyCategory.COMMUNITY,
        _words(r"community|social|health|education|schools?|hospitals?"),
    ),
    CategoryRule(
        PolicyCategory.FLOOD_RISK,
        _words(r"flood(?:ing)?|drainage|water|sewage|sustainable drainage|suds|surface water"),
    ),
    CategoryRule(
        PolicyCategory.CLIMATE,
        _words(r"renewable|energy|climate|carbon|sustainability|emissions|solar|wind"),
    ),
    CategoryRule(
        PolicyCategory.DEVELOPMENT_MANAGEMENT,
        _words(r"applications?|development|proposals?|permission|consent|approve"),
    ),
    CategoryRule(
        PolicyCategory.SITE_ALLOCATION,
        _words(r"allocated|allocations?|sites?|development area|strategic|location"),
    ),
)


def categorize(title: str, content: str) -> PolicyCategory:
    """First CATEGORY_RULES entry matching title + content; General otherwise."""
    text = f"{title} {content}"
    for rule in CATEGORY_RULES:
        if rule.pattern.search(text):
            return rule.category
    return PolicyCategory.GENERAL


# =============================================================================
# REQUIREMENTS
# =============================================================================

# Modal verb (or "applications/development" + modal) with 10-150 chars up to a sentence end
REQUIREMENT_RULES: Tuple[Pattern[str], ...] = (
    re.compile(r"\b(?:must|shall|will|should|required|mandatory|need to|have to)\b[^.!?]{10,150}[.!?]", re.IGNORECASE),
    re.compile(r"\bapplications?\s+(?:must|shall|will|should)\b[^.!?]{10,150}[.!?]", re.IGNORECASE),
    re.compile(r"\bdevelopment\s+(?:must|shall|will|should)\b[^.!?]{10,150}[.!?]", re.IGNORECASE),
)

STRONG_MODAL_RE = re.compile(r"\b(?:must|shall|mandatory)\b", re.IGNORECASE)
WEAK_MODAL_RE = re.compile(r"\b(?:will|should|required)\b", re.IGNORECASE)
REQUIREMENT_TERMS_RE = re.compile(r"\b(?:development|planning|application|proposal|design|layout)", re.IGNORECASE)
META_LANGUAGE_RE = re.compile(r"\b(?:example|note|see|refer)\b", re.IGNORECASE)


@dataclass(frozen=True)
class RequirementTypeRule:
    type: RequirementType
    pattern: Pattern[str]


REQUIREMENT_TYPE_RULES: Tuple[RequirementTypeRule, ...] = (
    RequirementTypeRule(RequirementType.DESIGN, _words(r"design|layout")),
    RequirementTypeRule(RequirementType.SCALE, _words(r"size|scale|height|density")),
    RequirementTypeRule(RequirementType.ACCESS, _words(r"access|parking")),
    RequirementTypeRule(RequirementType.LANDSCAPE, _words(r"landscape|landscaping|green")),
    RequirementTypeRule(RequirementType.HERITAGE, _words(r"heritage|conservation")),
)


def classify_requirement(text: str) -> RequirementType:
    for rule in REQUIREMENT_TYPE_RULES:
        if rule.pattern.search(text):
            return rule.type
    return RequirementType.GENERAL


# =============================================================================
# CROSS-REFERENCES AND OBJECTIVES
# =============================================================================

POLICY_REFERENCE_RE = re.compile(rf"\bPolicy\s+({REFERENCE_PATTERN})\b")
BARE_REFERENCE_RE = re.compile(rf"\b({REFERENCE_PATTERN})\b")
SECTION_REFERENCE_RE = re.compile(r"\b(Section|paragraph)\s+(\d+(?:\.\d+){0,2})\b", re.IGNORECASE)

CROSS_REFERENCE_RULES: Tuple[Pattern[str], ...] = (POLICY_REFERENCE_RE, BARE_REFERENCE_RE)

OBJECTIVE_RE = re.compile(r"\b(?:Objective|Aim|Purpose)\b[: \t]*([^\n]+)", re.IGNORECASE)

PLANNING_TERMS_RE = re.compile(
    r"\b(?:development|planning|policy|application|proposal|permission)",
    re.IGNORECASE,
)


__all__ = [
    "REFERENCE_PATTERN",
    "REFERENCE_RE",
    "CLEAN_REFERENCE_RE",
    "SUBNUMBERED_REFERENCE_RE",
    "EXPLICIT_POLICY_RE",
    "LOOSE_POLICY_RE",
    "POLICY_LINE_RE",
    "MAJOR_HEADER_RE",
    "SENTENCE_END_RE",
    "PARAGRAPH_START_RE",
    "CategoryRule",
    "CATEGORY_RULES",
    "categorize",
    "REQUIREMENT_RULES",
    "STRONG_MODAL_RE",
    "WEAK_MODAL_RE",
    "REQUIREMENT_TERMS_RE",
    "META_LANGUAGE_RE",
    "RequirementTypeRule",
    "REQUIREMENT_TYPE_RULES",
    "classify_requirement",
    "POLICY_REFERENCE_RE",
    "BARE_REFERENCE_RE",
    "SECTION_REFERENCE_RE",
    "CROSS_REFERENCE_RULES",
    "OBJECTIVE_RE",
    "PLANNING_TERMS_RE",
]
