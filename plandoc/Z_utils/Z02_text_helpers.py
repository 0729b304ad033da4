# plandoc/Z_utils/Z02_text_helpers.py
"""
Text helpers shared by the pipeline and the test suite.

Holds the fixed-window chunker used to prepare ``ParseResult.chunks`` for
downstream embedding, and a small sample local plan used in examples and tests.
"""

from __future__ import annotations

from typing import List

from A_core.A01_domain_models import TextChunk

DEFAULT_CHUNK_SIZE = 1800
DEFAULT_CHUNK_OVERLAP = 250


def chunk_text(
    text: str,
    size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[TextChunk]:
    """Split text into fixed windows of ``size`` chars sharing ``overlap`` chars.

    Args:
        text: Full document text
        size: Window length in characters
        overlap: Characters shared by consecutive windows; must be below ``size``

    Returns:
        Chunks in text order; the last one may be shorter than ``size``
    """
    if size <= 0 or not 0 <= overlap < size:
        raise ValueError(f"invalid chunking: size={size}, overlap={overlap}")

    chunks: List[TextChunk] = []
    start = 0
    while start < len(text):
        end = min(start + size, len(text))
        chunks.append(TextChunk(index=len(chunks), content=text[start:end], start=start, end=end))
        if end == len(text):
            break
        start += size - overlap
    return chunks


SAMPLE_PLANNING_DOCUMENT = """Cambridge Local Plan 2018

1. INTRODUCTION

This Local Plan sets out the planning framework for Cambridge for the period 2011-2031.

2. HOUSING POLICIES

Policy H1: Housing Development
New housing development will be supported where it contributes to meeting identified housing needs. Development must be well-designed and respect the character of the surrounding area. All proposals shall provide appropriate parking and access arrangements.

Policy H2: Affordable Housing
Development of 10 or more dwellings will be required to provide 40% affordable housing on-site. The affordable housing must be pepper-potted throughout the development and shall remain affordable in perpetuity.

3. EMPLOYMENT POLICIES

Policy E1: Employment Development
New employment development will be supported in designated employment areas. Proposals must demonstrate that they will not result in unacceptable impacts on residential amenity or highway safety.

4. TRANSPORT POLICIES

Policy T1: Sustainable Transport
All development proposals should promote sustainable transport choices. Development that generates significant traffic must provide a Transport Assessment and Travel Plan as required by Policy T2.

Policy T2: Transport Assessments
Development proposals that are likely to generate significant traffic movements must be supported by a Transport Assessment. The assessment shall demonstrate that the development will not result in severe impacts on the highway network.

5. ENVIRONMENT POLICIES

Policy EN1: Green Belt
Development in the Green Belt will only be permitted in very special circumstances. Inappropriate development in the Green Belt will be refused unless very special circumstances clearly outweigh the harm to the Green Belt."""


__all__ = ["chunk_text", "SAMPLE_PLANNING_DOCUMENT", "DEFAULT_CHUNK_SIZE", "DEFAULT_CHUNK_OVERLAP"]
