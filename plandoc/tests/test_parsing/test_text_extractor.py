# plandoc/tests/test_parsing/test_text_extractor.py
"""Tests for B_parsing/B01_text_extractor.py - dispatch and PDF recovery ladder."""

import fitz
import pytest

from A_core.A01_domain_models import ImageKind, TextItem
from A_core.A02_interfaces import ParseContext
from A_core.A04_heuristics_config import HeuristicsConfig
from A_core.A12_exceptions import (
    CorruptDocumentError,
    EmptyOrTooShortError,
    ParsingError,
    UnsupportedFormatError,
)
from B_parsing.B01_text_extractor import RAW_TEXT_TIER, TextExtractor, items_to_text
from B_parsing.B02_pdf_backend import PyMuPdfBackend
from G_config.parse_config import ParseConfig, ParsePreset
from conftest import FakeOcrEngine, FakeVisionCaptioner, build_pdf, png_bytes

PAGE_ONE = (
    "EXAMPLE DISTRICT LOCAL PLAN\n"
    "\n"
    "1. HOUSING\n"
    "\n"
    "Policy H1: Housing Development\n"
    "New housing must provide adequate parking and access.\n"
    "Development will be supported on allocated sites."
)
PAGE_TWO = (
    "2. TRANSPORT\n"
    "\n"
    "Policy T1: Sustainable Transport\n"
    "All development proposals should promote sustainable transport."
)

RAW_PLANNING_TEXT = b"Planning statement for land at Mill Lane. " * 5


class StructuralFailureBackend(PyMuPdfBackend):
    """Fails every non-permissive open with a damaged-file error."""

    def __init__(self):
        self.opened = []

    def open_document(self, data, permissive=False):
        self.opened.append(permissive)
        if not permissive:
            raise fitz.FileDataError("broken xref table")
        return super().open_document(data, permissive=True)


class EnvironmentFailureBackend(PyMuPdfBackend):
    """Fails with an error that says nothing about file structure."""

    def open_document(self, data, permissive=False):
        raise OSError("resource temporarily exhausted")


def _extractor(config=None, backend=None, ocr=None, vision=None, heuristics=None):
    context = ParseContext(
        config=config or ParseConfig.from_preset(ParsePreset.FAST),
        heuristics=heuristics or HeuristicsConfig(),
        pdf_backend=backend or PyMuPdfBackend(),
        ocr_factory=(lambda: ocr) if ocr is not None else None,
        vision=vision,
    )
    return TextExtractor(context)


class TestItemsToText:
    def test_same_baseline_joins(self):
        items = [TextItem(text="Policy", y=100, size=11), TextItem(text="H1", y=101, size=11)]
        assert items_to_text(items) == "Policy H1"

    def test_new_line_on_baseline_jump(self):
        items = [TextItem(text="Policy H1", y=100, size=11), TextItem(text="Content", y=113, size=11)]
        assert items_to_text(items) == "Policy H1\nContent"

    def test_paragraph_gap_leaves_blank_line(self):
        items = [TextItem(text="Heading", y=100, size=11), TextItem(text="Body", y=140, size=11)]
        assert items_to_text(items) == "Heading\n\nBody"

    def test_empty(self):
        assert items_to_text([]) == ""


class TestPdfExtraction:
    def test_standard_parse(self):
        """A well-formed PDF parses on the first tier with pages in order."""
        data = build_pdf([PAGE_ONE, PAGE_TWO], title="Example Local Plan")
        out = _extractor().extract(data, "plan.pdf")

        assert out.method == "standard"
        assert out.pseudo is False
        assert out.mime_type == "application/pdf"
        assert [p.page_number for p in out.pages] == [1, 2]
        assert "Policy H1: Housing Development" in out.text
        assert out.text.index("Policy H1") < out.text.index("Policy T1")
        assert out.metadata["title"] == "Example Local Plan"
        assert out.pages[0].dimensions.width == pytest.approx(595)

    def test_page_text_keeps_line_structure(self):
        data = build_pdf([PAGE_ONE])
        page_text = _extractor().extract(data, "plan.pdf").pages[0].text
        assert "Policy H1: Housing Development\nNew housing must provide" in page_text
        assert "1. HOUSING\n\nPolicy H1" in page_text

    def test_leading_junk_repaired(self):
        """Junk before %PDF within the first 1KB still gives a normal parse."""
        data = b"\xef\xbb\xbfX-Mailer: upload\r\n\r\n" + build_pdf([PAGE_ONE])
        out = _extractor().extract(data, "plan.pdf")
        assert out.method == "standard"
        assert out.pseudo is False
        assert "Policy H1" in out.text

    def test_untyped_upload_with_pdf_signature(self):
        out = _extractor().extract(build_pdf([PAGE_ONE]), "upload.bin")
        assert out.mime_type == "application/pdf"
        assert out.method == "standard"

    def test_structural_errors_escalate(self):
        """Damaged-file errors move down the ladder to the permissive tier."""
        backend = StructuralFailureBackend()
        out = _extractor(backend=backend).extract(build_pdf([PAGE_ONE]), "plan.pdf")
        assert out.method == "permissive"
        assert out.pseudo is False
        assert backend.opened == [False, False, True]

    def test_garbage_bytes_raise_corrupt_document(self):
        """Three garbage bytes declared as PDF never produce an empty success."""
        with pytest.raises(CorruptDocumentError) as exc_info:
            _extractor().extract(bytes([0x00, 0x01, 0x02]), "upload", "application/pdf")
        err = exc_info.value
        assert err.tiers_attempted == ["standard", "inline_images", "permissive", RAW_TEXT_TIER]
        assert err.__cause__ is not None

    def test_unparseable_text_becomes_pseudo(self):
        """Structured parsing fails but the bytes read as enough text."""
        out = _extractor().extract(RAW_PLANNING_TEXT, "statement.pdf")
        assert out.pseudo is True
        assert out.method == RAW_TEXT_TIER
        assert out.text.startswith("Planning statement for land at Mill Lane.")
        assert len(out.pages) == 1

    def test_non_structural_error_uses_raw_text(self):
        data = b"%PDF-1.4\n" + RAW_PLANNING_TEXT
        out = _extractor(backend=EnvironmentFailureBackend()).extract(data, "plan.pdf")
        assert out.pseudo is True

    def test_non_structural_error_reraised_with_cause(self):
        with pytest.raises(ParsingError) as exc_info:
            _extractor(backend=EnvironmentFailureBackend()).extract(b"%PDF-1.4\nshort", "plan.pdf")
        assert not isinstance(exc_info.value, CorruptDocumentError)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_blank_pdf_too_short(self):
        with pytest.raises(EmptyOrTooShortError):
            _extractor().extract(build_pdf(["Short page"]), "plan.pdf")


class TestImagesAndOcr:
    def test_images_extracted_and_classified(self):
        config = ParseConfig(ocr_enabled=False)
        data = build_pdf([PAGE_ONE], images=[png_bytes(60, 40)])
        out = _extractor(config=config).extract(data, "plan.pdf")

        assert len(out.images) == 1
        image = out.images[0]
        assert image.page == 1
        assert (image.width, image.height) == (60, 40)
        assert image.kind == ImageKind.PLAN
        assert image.data.startswith(b"\x89PNG")
        assert out.pages[0].images == out.images

    def test_ocr_fills_image_only_page(self):
        """A page with no text layer takes its text from OCR."""
        ocr = FakeOcrEngine("Notice of planning application for the erection of two dwellings. " * 3)
        data = build_pdf([PAGE_ONE, ""], images=[None, png_bytes(200, 300)])
        out = _extractor(config=ParseConfig(), ocr=ocr).extract(data, "plan.pdf")

        assert out.ocr_pages == [2]
        assert out.pages[1].ocr_applied is True
        assert "Notice of planning application" in out.pages[1].text
        assert "Notice of planning application" in out.text
        assert ocr.calls == 1

    def test_missing_ocr_engine_is_not_fatal(self):
        data = build_pdf([PAGE_ONE, ""], images=[None, png_bytes()])
        out = _extractor(config=ParseConfig()).extract(data, "plan.pdf")
        assert out.ocr_pages == []
        assert "Policy H1" in out.text

    def test_vision_captions_attached(self):
        vision = FakeVisionCaptioner()
        config = ParseConfig(ocr_enabled=False, vision_enabled=True)
        data = build_pdf([PAGE_ONE], images=[png_bytes()])
        out = _extractor(config=config, vision=vision).extract(data, "plan.pdf")
        assert out.images[0].analysis.description == "drawing on page 1"
        assert vision.calls == [1]


class TestOtherFormats:
    def test_plain_text(self):
        data = ("Planning statement.\r\n\r\n\r\n\r\n" + "The site lies within the settlement boundary. " * 3).encode()
        out = _extractor().extract(data, "statement.txt")
        assert out.method == "plain_text"
        assert "\n\n\n" not in out.text
        assert out.pages[0].page_number == 1

    def test_html(self):
        body = "<p>" + "The proposal accords with Policy H1 of the local plan. " * 3 + "</p>"
        data = f"<html><head><script>var a;</script></head><body><h1>Officer Report</h1>{body}</body></html>"
        out = _extractor().extract(data.encode(), "report.html")
        assert out.method == "html"
        assert out.text.startswith("Officer Report")
        assert "var a" not in out.text

    def test_unknown_text_best_effort(self):
        out = _extractor().extract(RAW_PLANNING_TEXT, "statement.dat", "application/x-unknown")
        assert out.method == "best_effort"

    def test_unknown_binary_unsupported(self):
        with pytest.raises(UnsupportedFormatError):
            _extractor().extract(bytes(range(32)) * 8, "blob.dat", "application/octet-stream")

    def test_too_short_text(self):
        with pytest.raises(EmptyOrTooShortError) as exc_info:
            _extractor().extract(b"Too short to analyse.", "note.txt")
        assert exc_info.value.min_length == 100
