# plandoc/tests/test_pipeline/test_document_pipeline.py
"""End-to-end tests for H_pipeline/H02_document_pipeline.py."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest
from pydantic import ValidationError

from A_core.A01_domain_models import Page, ParseResult, PolicyCategory
from A_core.A12_exceptions import CorruptDocumentError, EmptyOrTooShortError, UnsupportedFormatError
from G_config.parse_config import ParseConfig
from H_pipeline.H02_document_pipeline import DocumentParser
from conftest import FakeOcrEngine, FakeVisionCaptioner, build_pdf, png_bytes

H1_TEXT = "Policy H1: Housing Development\nNew housing must provide adequate parking and access."

PLAN_PAGE_ONE = (
    "WESTFIELD DISTRICT LOCAL PLAN\n"
    "\n"
    "2. HOUSING POLICIES\n"
    "\n"
    "Policy H1: Housing Development\n"
    "New housing must provide adequate parking and access.\n"
    "Development will be supported on allocated sites."
)
PLAN_PAGE_TWO = (
    "Policy T1: Sustainable Transport\n"
    "All development proposals should promote sustainable transport\n"
    "choices and must include a travel plan where required.\n"
    "\n"
    "Contact: 12 Mill Lane, Westfield WF1 2AB"
)


@pytest.fixture
def plan_pdf():
    return build_pdf([PLAN_PAGE_ONE, PLAN_PAGE_TWO], title="Westfield Local Plan")


class TestAnalyzeTextScenarios:
    def test_single_policy(self, parser_fast):
        result = parser_fast.analyze_text(H1_TEXT)
        assert len(result.policies) == 1
        policy = result.policies[0]
        assert policy.reference == "H1"
        assert policy.category == PolicyCategory.HOUSING
        assert any("must provide" in r.text for r in policy.requirements)
        assert policy.confidence > 0.5

    def test_no_location_no_policies(self, parser_fast):
        result = parser_fast.analyze_text("This is a planning document with no location information.")
        assert result.policies == []
        assert result.addresses == []

    def test_address_next_to_coordinates(self, parser_fast):
        text = "Site location: Latitude: 51.5074, Longitude: -0.1276\n10 Downing Street, Westminster, London SW1A 2AA"
        result = parser_fast.analyze_text(text)
        matches = [a for a in result.addresses if a.postcode == "SW1A 2AA"]
        assert matches and matches[0].confidence >= 0.7

    def test_sample_document(self, parser_fast, sample_document):
        result = parser_fast.analyze_text(sample_document, "cambridge_local_plan.txt")
        assert [p.reference for p in result.policies] == ["H1", "H2", "E1", "T1", "T2", "EN1"]
        assert result.metadata.section_count == len(result.sections)
        assert result.metadata.word_count > 200
        assert result.metadata.filename == "cambridge_local_plan.txt"
        assert result.metadata.extraction_method == "text"
        assert result.pages[0].page_number == 1

    def test_policy_keys_unique(self, parser_fast, sample_document):
        result = parser_fast.analyze_text(sample_document + "\n\n" + sample_document)
        keys = [(p.reference, p.position) for p in result.policies]
        assert len(keys) == len(set(keys))

    def test_metadata_mentions(self, parser_fast):
        text = (
            "Cambridge City Council received application 21/01234/FUL for 12 Mill Lane.\n"
            "The London Borough of Camden was consulted."
        )
        meta = parser_fast.analyze_text(text).metadata
        assert meta.planning_application_refs == ["21/01234/FUL"]
        assert meta.local_authorities == ["London Borough of Camden", "Cambridge City Council"]

    def test_empty_text_is_not_an_error(self, parser_fast):
        result = parser_fast.analyze_text("")
        assert result.policies == [] and result.sections == [] and result.chunks == []

    def test_max_policies_from_config(self, make_context, sample_document):
        parser = DocumentParser(make_context(ParseConfig(extract_images=False, ocr_enabled=False, max_policies=3)))
        assert len(parser.analyze_text(sample_document).policies) == 3


class TestParseBytes:
    def test_pdf(self, parser_fast, plan_pdf):
        result = parser_fast.parse(plan_pdf, "westfield_plan.pdf")

        assert [p.reference for p in result.policies] == ["H1", "T1"]
        meta = result.metadata
        assert meta.page_count == 2
        assert meta.title == "WESTFIELD DISTRICT LOCAL PLAN"
        assert meta.author == "Planning Team"
        assert meta.mime_type == "application/pdf"
        assert meta.extraction_method == "standard"
        assert meta.pseudo is False
        assert result.addresses[0].postcode == "WF1 2AB"
        assert result.processing_time_ms > 0

    def test_pdf_with_leading_junk(self, parser_fast, plan_pdf):
        result = parser_fast.parse(b"--boundary\r\nContent-Type: application/pdf\r\n\r\n" + plan_pdf, "plan.pdf")
        assert result.metadata.pseudo is False
        assert [p.reference for p in result.policies] == ["H1", "T1"]

    def test_garbage_pdf(self, parser_fast):
        with pytest.raises(CorruptDocumentError):
            parser_fast.parse(bytes([0x00, 0x01, 0x02]), "upload", "application/pdf")

    def test_plain_text_upload(self, parser_fast, sample_document):
        result = parser_fast.parse(sample_document.encode("utf-8"), "plan.txt")
        assert len(result.policies) == 6
        assert result.metadata.extraction_method == "plain_text"
        assert result.chunks[0].start == 0

    def test_short_upload(self, parser_fast):
        with pytest.raises(EmptyOrTooShortError):
            parser_fast.parse(H1_TEXT.encode(), "h1.txt")

    def test_unsupported_upload(self, parser_fast):
        with pytest.raises(UnsupportedFormatError):
            parser_fast.parse(bytes(range(32)) * 8, "archive.zip", "application/zip")

    def test_images_ocr_and_captions(self, make_context):
        """Full configuration: images extracted, image-only page OCR'd, captions attached."""
        ocr = FakeOcrEngine("Notice of planning application for the erection of two dwellings at 12 Mill Lane.")
        vision = FakeVisionCaptioner()
        parser = DocumentParser(make_context(ParseConfig(vision_enabled=True), ocr=ocr, vision=vision))
        data = build_pdf([PLAN_PAGE_ONE, ""], images=[None, png_bytes(200, 300)])

        result = parser.parse(data, "plan.pdf")
        assert result.metadata.ocr_pages == [2]
        assert len(result.images) == 1
        assert result.images[0].analysis.description == "drawing on page 2"
        assert "Notice of planning application" in result.text

    def test_parse_async(self, parser_fast, plan_pdf):
        result = asyncio.run(parser_fast.parse_async(plan_pdf, "plan.pdf"))
        assert [p.reference for p in result.policies] == ["H1", "T1"]

    def test_concurrent_parses_share_parser(self, parser_fast, plan_pdf, sample_document):
        jobs = [(plan_pdf, "plan.pdf"), (sample_document.encode(), "plan.txt")] * 3
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda job: parser_fast.parse(*job), jobs))
        counts = [len(r.policies) for r in results]
        assert counts == [2, 6] * 3


class TestParseResult:
    def test_record_excludes_image_bytes(self, make_context):
        parser = DocumentParser(make_context(ParseConfig(ocr_enabled=False)))
        result = parser.parse(build_pdf([PLAN_PAGE_ONE], images=[png_bytes()]), "plan.pdf")

        record = result.to_record()
        assert "data" not in record["images"][0]
        with_data = result.to_record(include_image_data=True)
        assert with_data["images"][0]["data"] == result.images[0].to_base64()
        assert with_data["pages"][0]["images"][0]["data"] == result.images[0].to_base64()

    def test_pages_must_be_ordered(self):
        with pytest.raises(ValidationError):
            ParseResult(text="x", pages=[Page(page_number=2), Page(page_number=1)])

    def test_frozen(self, parser_fast):
        result = parser_fast.analyze_text(H1_TEXT)
        with pytest.raises(ValidationError):
            result.text = "changed"
