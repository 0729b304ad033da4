# plandoc/tests/conftest.py
"""
Pytest configuration and fixtures for plandoc tests.

Provides:
- Configuration fixtures (heuristics, fast / standard parse configs)
- In-memory PDF builder backed by PyMuPDF
- Fake OCR engine and vision captioner for the injected capabilities
- Sample planning text

Usage:
    def test_policies(parser_fast, sample_document):
        result = parser_fast.analyze_text(sample_document)
        assert result.policies
"""

import io
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import fitz
import pytest
from PIL import Image

# Add plandoc to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from A_core.A01_domain_models import ImageAnalysis  # noqa: E402
from A_core.A02_interfaces import OcrEngine, ParseContext, VisionCaptioner  # noqa: E402
from A_core.A04_heuristics_config import HeuristicsConfig  # noqa: E402
from B_parsing.B02_pdf_backend import PyMuPdfBackend  # noqa: E402
from G_config.parse_config import ParseConfig, ParsePreset  # noqa: E402
from H_pipeline.H02_document_pipeline import DocumentParser  # noqa: E402
from Z_utils.Z02_text_helpers import SAMPLE_PLANNING_DOCUMENT  # noqa: E402


# =============================================================================
# FAKE CAPABILITIES
# =============================================================================


class FakeOcrEngine(OcrEngine):
    """Returns a fixed string for every image and counts calls."""

    def __init__(self, text: str = "", available: bool = True, error: Optional[Exception] = None):
        self.text = text
        self.available = available
        self.error = error
        self.calls = 0

    @property
    def name(self) -> str:
        return "fake-ocr"

    def is_available(self) -> bool:
        return self.available

    def recognize(self, base64_png: str) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.text


class FakeVisionCaptioner(VisionCaptioner):
    """Captions every image with its page number."""

    def __init__(self, available: bool = True):
        self.available = available
        self.calls: List[int] = []

    def is_available(self) -> bool:
        return self.available

    def describe(self, base64_png: str, page_number: int) -> ImageAnalysis:
        self.calls.append(page_number)
        return ImageAnalysis(description=f"drawing on page {page_number}", confidence=0.9, model="fake")


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================


@pytest.fixture
def heuristics() -> HeuristicsConfig:
    """Default heuristic weights."""
    return HeuristicsConfig()


@pytest.fixture
def fast_config() -> ParseConfig:
    """Text only: no images, OCR or vision."""
    return ParseConfig.from_preset(ParsePreset.FAST)


@pytest.fixture
def standard_config() -> ParseConfig:
    return ParseConfig.from_preset(ParsePreset.STANDARD)


@pytest.fixture
def make_context(heuristics: HeuristicsConfig) -> Callable[..., ParseContext]:
    """Factory for a ParseContext over the real PyMuPDF backend."""

    def _make(
        config: Optional[ParseConfig] = None,
        ocr: Optional[OcrEngine] = None,
        vision: Optional[VisionCaptioner] = None,
    ) -> ParseContext:
        return ParseContext(
            config=config or ParseConfig.from_preset(ParsePreset.FAST),
            heuristics=heuristics,
            pdf_backend=PyMuPdfBackend(),
            ocr_factory=(lambda: ocr) if ocr is not None else None,
            vision=vision,
        )

    return _make


@pytest.fixture
def fast_context(make_context, fast_config) -> ParseContext:
    return make_context(fast_config)


@pytest.fixture
def parser_fast(fast_context) -> DocumentParser:
    """Text-only parser over the real PyMuPDF backend."""
    return DocumentParser(fast_context)


# =============================================================================
# SAMPLE DATA
# =============================================================================


@pytest.fixture
def sample_document() -> str:
    """Six-policy local plan excerpt."""
    return SAMPLE_PLANNING_DOCUMENT


def png_bytes(width: int = 60, height: int = 40, color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def build_pdf(
    pages: Sequence[str],
    images: Optional[Sequence[Optional[bytes]]] = None,
    title: Optional[str] = None,
) -> bytes:
    """
    Build a PDF in memory, one page per entry in ``pages``.

    ``images[i]``, when given, is placed as a PNG on page i below the text.
    """
    doc = fitz.open()
    for index, text in enumerate(pages):
        page = doc.new_page(width=595, height=842)
        if text:
            page.insert_text((56, 72), text, fontsize=11)
        if images and index < len(images) and images[index] is not None:
            page.insert_image(fitz.Rect(56, 500, 356, 700), stream=images[index])
    if title:
        doc.set_metadata({"title": title, "author": "Planning Team"})
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_builder() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    return png_bytes


@pytest.fixture
def capture_logs(caplog: pytest.LogCaptureFixture):
    """Capture plandoc log messages for assertions."""
    caplog.set_level("DEBUG", logger="plandoc")
    yield caplog


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
