# plandoc/H_pipeline/H01_component_factory.py
"""
Component factory for parser initialization.

Builds the ParseContext (configuration plus injected capabilities) and the
stage components that DocumentParser coordinates. The context is meant to be
built once per process and reused across parses, so the OCR engine starts at
most once.

Key Components:
    - ComponentFactory: Creates backends, OCR factory, captioner and stages
    - build_parse_context: One-call construction with defaults

Example:
    >>> from H_pipeline.H01_component_factory import build_parse_context
    >>> context = build_parse_context(ParseConfig.from_preset(ParsePreset.FAST))
    >>> parser = DocumentParser(context)

Dependencies:
    - B_parsing.B02_pdf_backend: PyMuPDF backend
    - Z_utils.Z04_image_utils: Tesseract OCR engine
    - C_generators.C10_vision_image_analysis: Claude captioner
"""

from __future__ import annotations

from typing import Callable, Optional

from A_core.A00_logging import get_logger
from A_core.A02_interfaces import OcrEngine, ParseContext, PdfBackend, VisionCaptioner
from A_core.A04_heuristics_config import HeuristicsConfig, load_heuristics_config
from B_parsing.B01_text_extractor import TextExtractor
from B_parsing.B02_pdf_backend import PyMuPdfBackend
from B_parsing.B05_structure_analyzer import StructureAnalyzer
from C_generators.C02_policy_segmenter import PolicySegmenter
from C_generators.C05_address_extractor import AddressHeuristicExtractor
from C_generators.C10_vision_image_analysis import ClaudeVisionCaptioner
from G_config.parse_config import ParseConfig, load_config
from Z_utils.Z04_image_utils import TesseractOcrEngine

logger = get_logger(__name__)


class ComponentFactory:
    """
    Factory for the parser's capabilities and stages.

    Capabilities left as None are built from configuration; passing them in
    replaces the default implementation (tests inject fakes this way).
    """

    def __init__(
        self,
        config: Optional[ParseConfig] = None,
        heuristics: Optional[HeuristicsConfig] = None,
    ) -> None:
        self.config = config or load_config()
        self.heuristics = heuristics or load_heuristics_config()

    def create_pdf_backend(self) -> PdfBackend:
        return PyMuPdfBackend()

    def create_ocr_factory(self) -> Optional[Callable[[], OcrEngine]]:
        if not self.config.ocr_enabled:
            return None
        language = self.config.ocr_language
        timeout = self.config.ocr_timeout_seconds

        def factory() -> OcrEngine:
            logger.info(f"Starting OCR engine (tesseract, lang={language})")
            return TesseractOcrEngine(language=language, timeout_seconds=timeout)

        return factory

    def create_vision_captioner(self) -> Optional[VisionCaptioner]:
        if not self.config.vision_enabled:
            return None
        captioner = ClaudeVisionCaptioner(
            model=self.config.vision_model,
            max_tokens=self.config.vision_max_tokens,
        )
        if not captioner.is_available():
            logger.warning("Vision captioning enabled but no API key found; captions disabled")
        return captioner

    def create_context(
        self,
        pdf_backend: Optional[PdfBackend] = None,
        ocr_factory: Optional[Callable[[], OcrEngine]] = None,
        vision: Optional[VisionCaptioner] = None,
    ) -> ParseContext:
        backend = pdf_backend or self.create_pdf_backend()
        if not backend.is_available():
            logger.warning(f"PDF backend '{backend.name}' reports unavailable")
        context = ParseContext(
            config=self.config,
            heuristics=self.heuristics,
            pdf_backend=backend,
            ocr_factory=ocr_factory or self.create_ocr_factory(),
            vision=vision or self.create_vision_captioner(),
        )
        logger.debug(f"Parse context ready: {self.config}")
        return context

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    @staticmethod
    def create_text_extractor(context: ParseContext) -> TextExtractor:
        return TextExtractor(context)

    @staticmethod
    def create_structure_analyzer() -> StructureAnalyzer:
        return StructureAnalyzer()

    def create_policy_segmenter(self) -> PolicySegmenter:
        return PolicySegmenter(self.heuristics)

    def create_address_extractor(self) -> AddressHeuristicExtractor:
        return AddressHeuristicExtractor(self.heuristics)


def build_parse_context(
    config: Optional[ParseConfig] = None,
    heuristics: Optional[HeuristicsConfig] = None,
    pdf_backend: Optional[PdfBackend] = None,
    ocr_factory: Optional[Callable[[], OcrEngine]] = None,
    vision: Optional[VisionCaptioner] = None,
) -> ParseContext:
    """ParseContext with defaults for anything not supplied."""
    factory = ComponentFactory(config, heuristics)
    return factory.create_context(pdf_backend=pdf_backend, ocr_factory=ocr_factory, vision=vision)


__all__ = ["ComponentFactory", "build_parse_context"]
