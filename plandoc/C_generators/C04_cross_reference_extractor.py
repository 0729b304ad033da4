# plandoc/C_generators/C04_cross_reference_extractor.py
"""
Cross-reference and objective extraction from policy content.

Policy references come from two patterns (``Policy T2`` and a bare ``T2``
token); section references (``Section 4.2``, ``paragraph 3.1``) are unioned
in and reported as ``Section 4.2`` / ``paragraph 3.1``. The policy's own
reference is never reported. Output keeps first-seen order.
"""

from __future__ import annotations

from typing import List, Optional

from C_generators.C01_policy_patterns import (
    CROSS_REFERENCE_RULES,
    OBJECTIVE_RE,
    SECTION_REFERENCE_RE,
)


class CrossReferenceExtractor:
    def extract(self, content: str, own_reference: Optional[str] = None) -> List[str]:
        own = own_reference.upper() if own_reference else None
        refs: List[str] = []
        seen = set()

        for pattern in CROSS_REFERENCE_RULES:
            for m in pattern.finditer(content):
                ref = m.group(1)
                if ref == own or ref in seen:
                    continue
                seen.add(ref)
                refs.append(ref)

        for m in SECTION_REFERENCE_RE.finditer(content):
            label = "Section" if m.group(1).lower() == "section" else "paragraph"
            ref = f"{label} {m.group(2)}"
            if ref not in seen:
                seen.add(ref)
                refs.append(ref)
        return refs


def extract_objectives(content: str, max_objectives: int = 10) -> List[str]:
    """Lines introduced by Objective / Aim / Purpose, longer than 10 chars."""
    objectives: List[str] = []
    for m in OBJECTIVE_RE.finditer(content):
        objective = m.group(1).strip()
        if len(objective) > 10 and objective not in objectives:
            objectives.append(objective)
    return objectives[:max_objectives]


__all__ = ["CrossReferenceExtractor", "extract_objectives"]
