# plandoc/H_pipeline/H02_document_pipeline.py
"""
Document parsing pipeline.

Coordinates one parse from uploaded bytes to an immutable ParseResult:
text extraction (with recovery ladder and OCR fallback), section detection,
policy segmentation and scoring, and the independent address pass over the
same text. Metadata is enriched with title, counts, planning application
references and local authority mentions, and the text is chunked for
downstream embedding.

The parser holds no per-document state; one instance (and its ParseContext)
can serve concurrent parses. There is no internal cancellation: callers that
need a document-level timeout wrap ``parse`` / ``parse_async`` themselves.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional

from A_core.A00_logging import StepLogger, get_logger
from A_core.A01_domain_models import DocumentMetadata, ParseResult
from A_core.A02_interfaces import ParseContext
from B_parsing.B01_text_extractor import ExtractionOutput
from B_parsing.B01a_text_helpers import clean_text, word_count
from C_generators.C05_address_extractor import extract_local_authorities, extract_planning_references
from H_pipeline.H01_component_factory import ComponentFactory, build_parse_context
from Z_utils.Z02_text_helpers import chunk_text

logger = get_logger(__name__)


class DocumentParser:
    """
    Parse uploaded planning documents into structured results.

    Example:
        >>> parser = DocumentParser()
        >>> result = parser.parse(pdf_bytes, "local_plan.pdf")
        >>> [p.reference for p in result.policies][:3]
        ['H1', 'H2', 'E1']
    """

    def __init__(self, context: Optional[ParseContext] = None) -> None:
        self.context = context or build_parse_context()
        self.config = self.context.config
        factory = ComponentFactory(self.config, self.context.heuristics)
        self.text_extractor = factory.create_text_extractor(self.context)
        self.structure = factory.create_structure_analyzer()
        self.segmenter = factory.create_policy_segmenter()
        self.addresses = factory.create_address_extractor()

    def parse(self, data: bytes, filename: str, mime_type: Optional[str] = None) -> ParseResult:
        """
        Parse one uploaded file.

        Args:
            data: Raw file bytes
            filename: Original filename, used for MIME inference and title fallback
            mime_type: Declared MIME type, if known

        Returns:
            ParseResult with text, pages, images, sections, policies, addresses

        Raises:
            UnsupportedFormatError, CorruptDocumentError, EmptyOrTooShortError,
            ParsingError: see TextExtractor.extract
        """
        start = time.perf_counter()
        steps = StepLogger(logger, total_steps=4, prefix=filename)

        steps.step("Extracting text")
        extraction = self.text_extractor.extract(data, filename, mime_type)
        steps.complete(
            f"{extraction.page_count} pages, {len(extraction.text)} chars via {extraction.method}"
        )

        result = self._analyze(extraction, filename, steps, start)
        logger.info(
            f"Parsed {filename}: {len(result.policies)} policies, {len(result.addresses)} addresses "
            f"in {result.processing_time_ms:.0f}ms"
        )
        return result

    async def parse_async(self, data: bytes, filename: str, mime_type: Optional[str] = None) -> ParseResult:
        """``parse`` on a worker thread, for use from an event loop."""
        return await asyncio.to_thread(self.parse, data, filename, mime_type)

    def analyze_text(self, text: str, filename: Optional[str] = None) -> ParseResult:
        """Structure, policy and address stages over already-extracted text.

        No minimum-length gate applies, so short or policy-free text returns a
        result with empty lists rather than raising.
        """
        start = time.perf_counter()
        cleaned = clean_text(text)
        extraction = ExtractionOutput.from_text(cleaned, "text")
        extraction.mime_type = "text/plain"
        steps = StepLogger(logger, total_steps=4, prefix=filename or "<text>")
        steps.step("Text supplied by caller")
        steps.complete(f"{len(cleaned)} chars")
        return self._analyze(extraction, filename, steps, start)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _analyze(
        self,
        extraction: ExtractionOutput,
        filename: Optional[str],
        steps: StepLogger,
        start: float,
    ) -> ParseResult:
        text = extraction.text

        steps.step("Detecting sections")
        sections = self.structure.analyze(text)
        steps.complete(f"{len(sections)} sections")

        steps.step("Segmenting policies")
        policies = self.segmenter.segment(sections, max_policies=self.config.max_policies)
        steps.complete(f"{len(policies)} policies")

        steps.step("Scanning for addresses")
        addresses = self.addresses.extract(text)
        steps.complete(f"{len(addresses)} addresses")

        metadata = self._build_metadata(extraction, filename, len(sections))
        chunks = chunk_text(text, self.config.chunk_size, self.config.chunk_overlap)

        return ParseResult(
            text=text,
            pages=extraction.pages,
            images=extraction.images,
            sections=sections,
            addresses=addresses,
            policies=policies,
            chunks=chunks,
            metadata=metadata,
            processing_time_ms=round((time.perf_counter() - start) * 1000, 2),
        )

    def _build_metadata(
        self,
        extraction: ExtractionOutput,
        filename: Optional[str],
        section_count: int,
    ) -> DocumentMetadata:
        raw: Dict[str, Any] = extraction.metadata
        text = extraction.text
        return DocumentMetadata(
            page_count=extraction.page_count,
            title=self.structure.detect_title(text, raw.get("title"), filename),
            author=raw.get("author"),
            created_at=raw.get("created_at"),
            modified_at=raw.get("modified_at"),
            pseudo=extraction.pseudo,
            filename=filename,
            mime_type=extraction.mime_type,
            extraction_method=extraction.method,
            word_count=word_count(text),
            section_count=section_count,
            ocr_pages=extraction.ocr_pages,
            planning_application_refs=extract_planning_references(text),
            local_authorities=extract_local_authorities(text),
        )


__all__ = ["DocumentParser"]
