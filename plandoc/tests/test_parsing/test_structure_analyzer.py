# plandoc/tests/test_parsing/test_structure_analyzer.py
"""Tests for B_parsing/B05_structure_analyzer.py - section headers and titles."""

import pytest

from A_core.A01_domain_models import SectionType
from B_parsing.B05_structure_analyzer import (
    PREAMBLE_REFERENCE,
    PREAMBLE_TITLE,
    StructureAnalyzer,
    match_header,
)


class TestMatchHeader:
    @pytest.mark.parametrize(
        "line,reference,title,level",
        [
            ("1 Introduction", "1", "Introduction", 1),
            ("2. HOUSING POLICIES", "2", "HOUSING POLICIES", 1),
            ("2.1 Housing Delivery", "2.1", "Housing Delivery", 2),
            ("3.2.4 Parking Standards", "3.2.4", "Parking Standards", 3),
        ],
    )
    def test_numbered(self, line, reference, title, level):
        header = match_header(line, 0)
        assert header.type == SectionType.NUMBERED
        assert (header.reference, header.title, header.level) == (reference, title, level)

    def test_lettered(self):
        header = match_header("A. Strategic Policies", 4)
        assert header.type == SectionType.LETTERED
        assert (header.reference, header.title) == ("A", "Strategic Policies")

    def test_titled_uses_line_index(self):
        header = match_header("GREEN BELT AND OPEN SPACE", 7)
        assert header.type == SectionType.TITLED
        assert header.reference == "SECTION_7"

    @pytest.mark.parametrize(
        "line",
        [
            "POLICY CONTEXT",  # all-caps lines naming POLICY are never section headers
            "HOUSING",  # single word
            "New housing must provide adequate parking.",
            "Policy H1: Housing Development",
            "1.",
            "",
        ],
    )
    def test_not_headers(self, line):
        assert match_header(line, 0) is None


class TestAnalyze:
    def test_sample_document_sections(self, sample_document):
        sections = StructureAnalyzer().analyze(sample_document)
        numbered = [s for s in sections if s.type == SectionType.NUMBERED]
        assert [s.reference for s in numbered] == ["1", "2", "3", "4", "5"]
        assert numbered[1].title == "HOUSING POLICIES"

    def test_sections_in_document_order(self, sample_document):
        sections = StructureAnalyzer().analyze(sample_document)
        starts = [s.start_position for s in sections]
        assert starts == sorted(starts)

    def test_content_offsets_point_into_text(self, sample_document):
        """content_start is the offset of the first content character."""
        for section in StructureAnalyzer().analyze(sample_document):
            if section.content:
                end = section.content_start + len(section.content)
                assert sample_document[section.content_start : end] == section.content

    def test_preamble_before_first_header(self):
        text = "Adopted October 2018\n\n1. INTRODUCTION\nThis plan sets out the strategy."
        sections = StructureAnalyzer().analyze(text)
        assert sections[0].reference == PREAMBLE_REFERENCE
        assert sections[0].title == PREAMBLE_TITLE
        assert sections[0].type == SectionType.PREAMBLE
        assert sections[0].content == "Adopted October 2018"
        assert sections[1].content == "This plan sets out the strategy."
        assert sections[1].word_count == 6

    def test_headerless_text_is_one_preamble(self):
        text = "Policy H1: Housing Development\nNew housing must provide adequate parking and access."
        sections = StructureAnalyzer().analyze(text)
        assert len(sections) == 1
        assert sections[0].type == SectionType.PREAMBLE
        assert sections[0].content == text
        assert sections[0].content_start == 0

    def test_empty_text(self):
        assert StructureAnalyzer().analyze("") == []

    def test_header_without_body(self):
        sections = StructureAnalyzer().analyze("1. INTRODUCTION\n2. HOUSING POLICIES")
        assert [s.content for s in sections] == ["", ""]


class TestDetectTitle:
    def test_all_caps_line(self):
        text = "CAMBRIDGE LOCAL PLAN 2018\n\n1. INTRODUCTION"
        assert StructureAnalyzer.detect_title(text) == "CAMBRIDGE LOCAL PLAN 2018"

    def test_line_ending_in_plan(self):
        assert StructureAnalyzer.detect_title("Greater Norwich Local Plan\nbody") == "Greater Norwich Local Plan"

    def test_metadata_fallback(self):
        assert StructureAnalyzer.detect_title("short\nlines only", metadata_title="Site Allocations") == "Site Allocations"

    def test_filename_fallback(self):
        assert StructureAnalyzer.detect_title("short", filename="design_and_access-statement.pdf") == (
            "design and access statement"
        )

    def test_nothing(self):
        assert StructureAnalyzer.detect_title("short") is None
