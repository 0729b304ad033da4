# plandoc/tests/test_generators/test_policy_patterns.py
"""Tests for C_generators/C01_policy_patterns.py - rule tables and classifiers."""

import pytest

from A_core.A01_domain_models import PolicyCategory, RequirementType
from C_generators.C01_policy_patterns import (
    CATEGORY_RULES,
    EXPLICIT_POLICY_RE,
    LOOSE_POLICY_RE,
    MAJOR_HEADER_RE,
    REFERENCE_RE,
    categorize,
    classify_requirement,
)


class TestReferences:
    @pytest.mark.parametrize("ref", ["H1", "EN12", "DM1.2", "ABC123", "S1.2.3"])
    def test_valid(self, ref):
        assert REFERENCE_RE.match(ref)

    @pytest.mark.parametrize("ref", ["ABCD1", "H1234", "h1", "1H", "H"])
    def test_invalid(self, ref):
        assert not REFERENCE_RE.match(ref)


class TestPolicyHeaders:
    @pytest.mark.parametrize(
        "line",
        [
            "Policy H1: Housing Development",
            "Policy H1 - Housing Development",
            "Policy H1 \u2013 Housing Development",
            "Policy H1\u2014Housing Development",
            "  POLICY H1: Housing Development",
        ],
    )
    def test_explicit_separators(self, line):
        m = EXPLICIT_POLICY_RE.search(line)
        assert m.group(1).upper() == "H1"
        assert m.group(2) == "Housing Development"

    def test_explicit_needs_line_start(self):
        assert EXPLICIT_POLICY_RE.search("as required by Policy T2: Transport") is None

    def test_explicit_multiline(self):
        text = "Intro text.\nPolicy E1: Employment\nbody\nPolicy E2 - Retail\nbody"
        assert [m.group(1) for m in EXPLICIT_POLICY_RE.finditer(text)] == ["E1", "E2"]

    @pytest.mark.parametrize(
        "line,ref",
        [
            ("H1 Housing Development in villages", "H1"),
            ("EN1: Green Belt protection", "EN1"),
            ("DM2.1 - Residential amenity", "DM2.1"),
        ],
    )
    def test_loose(self, line, ref):
        assert LOOSE_POLICY_RE.match(line).group(1) == ref

    @pytest.mark.parametrize("line", ["H1 Homes", "h1 housing development", "The H1 Housing Development"])
    def test_loose_rejects(self, line):
        assert LOOSE_POLICY_RE.match(line) is None

    @pytest.mark.parametrize("line", ["GREEN BELT POLICIES", "3. EMPLOYMENT POLICIES", "HOUSING & DESIGN"])
    def test_major_header(self, line):
        assert MAJOR_HEADER_RE.match(line)

    def test_major_header_rejects_sentence(self):
        assert MAJOR_HEADER_RE.match("Housing must be delivered.") is None


class TestCategorize:
    @pytest.mark.parametrize(
        "title,content,category",
        [
            ("Housing Development", "New homes will be supported.", PolicyCategory.HOUSING),
            ("Sustainable Transport", "Cycling and walking routes.", PolicyCategory.TRANSPORT),
            ("Green Belt", "Inappropriate building is refused.", PolicyCategory.ENVIRONMENT),
            ("Town Centres", "Retail uses are protected.", PolicyCategory.ECONOMY),
            ("Conservation Areas", "Listed buildings are protected.", PolicyCategory.HERITAGE),
            ("Flood Risk", "Proposals must include sustainable drainage.", PolicyCategory.FLOOD_RISK),
            ("Solar Farms", "Renewable energy schemes are supported.", PolicyCategory.CLIMATE),
            ("Planning Obligations", "Applications are assessed case by case.", PolicyCategory.DEVELOPMENT_MANAGEMENT),
            ("Miscellaneous", "Nothing of note here.", PolicyCategory.GENERAL),
        ],
    )
    def test_first_matching_rule(self, title, content, category):
        assert categorize(title, content) == category

    def test_rule_order_breaks_ties(self):
        """Both Housing and Environment match; the earlier rule wins."""
        assert categorize("Green Belt", "New homes in the Green Belt") == PolicyCategory.HOUSING

    def test_rule_table_order(self):
        categories = [rule.category for rule in CATEGORY_RULES]
        assert categories[0] == PolicyCategory.HOUSING
        assert categories[-1] == PolicyCategory.SITE_ALLOCATION
        assert PolicyCategory.GENERAL not in categories


class TestClassifyRequirement:
    @pytest.mark.parametrize(
        "clause,req_type",
        [
            ("must respect the design of the street.", RequirementType.DESIGN),
            ("must not exceed two storeys in height.", RequirementType.SCALE),
            ("must provide adequate parking.", RequirementType.ACCESS),
            ("must retain existing landscaping.", RequirementType.LANDSCAPE),
            ("should preserve the conservation area.", RequirementType.HERITAGE),
            ("must contribute financially.", RequirementType.GENERAL),
        ],
    )
    def test_types(self, clause, req_type):
        assert classify_requirement(clause) == req_type
