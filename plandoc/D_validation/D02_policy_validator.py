# plandoc/D_validation/D02_policy_validator.py
"""
Post-extraction review of policy candidates.

Splits an extracted policy list into valid and invalid entries, and attaches
review warnings. Invalid entries are not removed from a ParseResult; the
report is advisory, for callers that present policies for manual review.

Invalid when any of:
    - reference missing, malformed, or already seen earlier in the list
    - title missing or under 5 characters
    - content outside [min_policy_length, max_policy_length]
    - confidence below 0.5

Warnings (independent of validity):
    - content over 2000 characters
    - no requirements detected
    - confidence below 0.7
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from A_core.A01_domain_models import PolicyCandidate
from A_core.A04_heuristics_config import HeuristicsConfig

VALID_REFERENCE_RE = re.compile(r"^[A-Z]{1,3}\d+(?:\.\d+)*$")

MIN_TITLE_LENGTH = 5
LOW_CONFIDENCE = 0.5
REVIEW_CONFIDENCE = 0.7
LONG_CONTENT = 2000


@dataclass
class InvalidPolicy:
    policy: PolicyCandidate
    issues: List[str]


@dataclass
class PolicyWarning:
    policy: PolicyCandidate
    warning: str


@dataclass
class ValidationReport:
    valid: List[PolicyCandidate] = field(default_factory=list)
    invalid: List[InvalidPolicy] = field(default_factory=list)
    warnings: List[PolicyWarning] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.invalid

    def to_dict(self) -> Dict[str, object]:
        return {
            "valid": [p.reference for p in self.valid],
            "invalid": [{"reference": i.policy.reference, "issues": list(i.issues)} for i in self.invalid],
            "warnings": [{"reference": w.policy.reference, "warning": w.warning} for w in self.warnings],
        }


def _issues(policy: PolicyCandidate, seen: set, h: HeuristicsConfig) -> List[str]:
    issues: List[str] = []
    if not policy.reference:
        issues.append("Missing policy reference")
    else:
        if not VALID_REFERENCE_RE.match(policy.reference):
            issues.append("Invalid policy reference format")
        if policy.reference in seen:
            issues.append("Duplicate policy reference")
        seen.add(policy.reference)

    if not policy.title:
        issues.append("Missing policy title")
    elif len(policy.title) < MIN_TITLE_LENGTH:
        issues.append("Policy title too short")

    length = len(policy.content)
    if length < h.min_policy_length:
        issues.append(f"Content too short (minimum {h.min_policy_length} characters)")
    elif length > h.max_policy_length:
        issues.append(f"Content too long (maximum {h.max_policy_length} characters)")

    if 0 < policy.confidence < LOW_CONFIDENCE:
        issues.append("Low confidence score")
    return issues


def validate_policies(
    policies: Sequence[PolicyCandidate],
    heuristics: Optional[HeuristicsConfig] = None,
) -> ValidationReport:
    h = heuristics or HeuristicsConfig()
    report = ValidationReport()
    seen: set = set()

    for policy in policies:
        issues = _issues(policy, seen, h)
        if issues:
            report.invalid.append(InvalidPolicy(policy, issues))
        else:
            report.valid.append(policy)

        if len(policy.content) > LONG_CONTENT:
            report.warnings.append(PolicyWarning(policy, "Policy content is very long"))
        if not policy.requirements:
            report.warnings.append(PolicyWarning(policy, "No requirements detected"))
        if 0 < policy.confidence < REVIEW_CONFIDENCE:
            report.warnings.append(PolicyWarning(policy, "Medium confidence, review recommended"))
    return report


__all__ = [
    "ValidationReport",
    "InvalidPolicy",
    "PolicyWarning",
    "validate_policies",
    "VALID_REFERENCE_RE",
]
