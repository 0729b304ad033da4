# plandoc/B_parsing/B01_text_extractor.py
"""
Format dispatch and PDF recovery ladder.

Turns an uploaded byte buffer into normalized text plus a per-page breakdown.
It either produces text of non-trivial length or raises a typed ParsingError;
it never returns an empty success.

Dispatch:
    - application/pdf  -> PDF page loop behind the recovery ladder
    - text/plain       -> direct decode
    - text/html        -> tag-stripping decode (BeautifulSoup)
    - anything else    -> best-effort UTF-8 decode (sniffing for a PDF first)

PDF recovery ladder (each tier only after the previous one failed with a
structural error):
    1. standard       images resolved on a background worker, pixel cap on
    2. inline_images  background worker disabled
    3. permissive     trailing bytes after %%EOF dropped, unreadable pages
                      tolerated, no pixel cap
    4. raw_text       raw bytes decoded as text, result marked pseudo

Key Components:
    - TextExtractor: Entry point, bound to a ParseContext
    - ExtractionOutput: Text, pages, images and document metadata
    - items_to_text: Line-break inference from positioned text items

Example:
    >>> extractor = TextExtractor(context)
    >>> out = extractor.extract(pdf_bytes, "local_plan.pdf")
    >>> out.method, len(out.pages)
    ('standard', 42)

Dependencies:
    - B_parsing.B01a_text_helpers: cleaning, MIME inference, decoders
    - B_parsing.B09_image_extractor: embedded images
    - B_parsing.B10_ocr_fallback: OCR for low-yield pages
    - C_generators.C10_vision_image_analysis: optional captions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from A_core.A00_logging import LogContext, get_logger
from A_core.A01_domain_models import ExtractedImage, Page, PageDimensions, TextItem
from A_core.A02_interfaces import ParseContext, RawPage
from A_core.A12_exceptions import CorruptDocumentError, EmptyOrTooShortError, ParsingError
from B_parsing.B01a_text_helpers import (
    best_effort_decode,
    classify_format,
    clean_text,
    decode_plain_text,
    decode_raw_bytes,
    html_to_text,
    infer_mime_type,
    locate_pdf_header,
    repair_pdf_header,
    truncate_after_eof,
    PDF_MIME,
)
from B_parsing.B09_image_extractor import ImageExtractor
from B_parsing.B10_ocr_fallback import OcrFallback
from C_generators.C10_vision_image_analysis import caption_images

logger = get_logger(__name__)

RECOVERY_TIERS = ("standard", "inline_images", "permissive")
RAW_TEXT_TIER = "raw_text"

# Exceptions a PDF backend raises for unreadable input
BACKEND_ERRORS = (RuntimeError, ValueError, OSError, IndexError, KeyError)

# Vertical distance (points) beyond which two text items sit on different lines
LINE_TOLERANCE = 5.0
# Gap, in multiples of font size, read as a paragraph break
PARAGRAPH_GAP_FACTOR = 1.8


@dataclass
class ExtractionOutput:
    text: str
    pages: List[Page]
    images: List[ExtractedImage] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    mime_type: Optional[str] = None
    method: str = "standard"
    pseudo: bool = False

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def ocr_pages(self) -> List[int]:
        return [p.page_number for p in self.pages if p.ocr_applied]

    @classmethod
    def from_text(cls, raw_text: str, method: str, pseudo: bool = False) -> "ExtractionOutput":
        """Single-page output for sources with no page structure."""
        text = clean_text(raw_text)
        return cls(
            text=text,
            pages=[Page(page_number=1, text=text)],
            metadata={"page_count": 1},
            method=method,
            pseudo=pseudo,
        )


def items_to_text(items: Sequence[TextItem], line_tolerance: float = LINE_TOLERANCE) -> str:
    """
    Rebuild page text from positioned items.

    A jump in baseline larger than ``line_tolerance`` starts a new line; a jump
    larger than ~2 line heights also leaves a blank line (paragraph break).
    """
    lines: List[str] = []
    current: List[str] = []
    last_y: Optional[float] = None
    for item in items:
        if last_y is not None and abs(item.y - last_y) > line_tolerance:
            lines.append(" ".join(current))
            current = []
            if abs(item.y - last_y) > max(item.size, 1.0) * PARAGRAPH_GAP_FACTOR:
                lines.append("")
        current.append(item.text)
        last_y = item.y
    if current:
        lines.append(" ".join(current))
    return "\n".join(lines)


class TextExtractor:
    """Decode one uploaded file per call; holds no per-document state."""

    def __init__(self, context: ParseContext) -> None:
        self.context = context
        self.config = context.config

    def extract(self, data: bytes, filename: str, mime_type: Optional[str] = None) -> ExtractionOutput:
        """
        Decode ``data`` into text and pages.

        Raises:
            UnsupportedFormatError: Unknown type that does not decode as text.
            CorruptDocumentError: Every PDF tier failed and raw decode was too short.
            EmptyOrTooShortError: Decoded text shorter than ``min_text_length``.
            ParsingError: Non-structural PDF failure with no usable raw text.
        """
        mime = infer_mime_type(filename, mime_type)
        kind = classify_format(mime)
        if kind == "unknown" and locate_pdf_header(data) is not None:
            logger.debug(f"{filename}: PDF signature found in untyped upload")
            kind, mime = "pdf", PDF_MIME

        with LogContext(logger, f"text extraction ({kind}) for {filename}"):
            if kind == "pdf":
                out = self._extract_pdf(data, filename)
            elif kind == "html":
                out = ExtractionOutput.from_text(html_to_text(data), "html")
            elif kind == "text":
                out = ExtractionOutput.from_text(decode_plain_text(data), "plain_text")
            else:
                out = ExtractionOutput.from_text(best_effort_decode(data, filename, mime), "best_effort")
        out.mime_type = mime

        if len(out.text) < self.config.min_text_length:
            raise EmptyOrTooShortError(
                "Extracted text is too short to analyse",
                file_path=filename,
                text_length=len(out.text),
                min_length=self.config.min_text_length,
            )
        return out

    # -------------------------------------------------------------------------
    # PDF
    # -------------------------------------------------------------------------

    def _extract_pdf(self, data: bytes, filename: str) -> ExtractionOutput:
        repaired = repair_pdf_header(data)
        if len(repaired) != len(data):
            logger.info(f"{filename}: skipped {len(data) - len(repaired)} bytes before PDF header")

        backend = self.context.pdf_backend
        attempted: List[str] = []
        first_error: Optional[BaseException] = None

        for tier in RECOVERY_TIERS:
            attempted.append(tier)
            try:
                return self._parse_pdf(repaired, tier)
            except BACKEND_ERRORS as e:
                if first_error is None:
                    first_error = e
                    if not backend.is_structural_error(e):
                        logger.warning(f"{filename}: PDF parse failed ({type(e).__name__}: {e}), trying raw text")
                        return self._raw_text_fallback(repaired, filename, attempted, e, structural=False)
                logger.warning(f"{filename}: tier '{tier}' failed ({type(e).__name__}: {e}), escalating")

        assert first_error is not None
        return self._raw_text_fallback(repaired, filename, attempted, first_error, structural=True)

    def _raw_text_fallback(
        self,
        data: bytes,
        filename: str,
        attempted: List[str],
        cause: BaseException,
        structural: bool,
    ) -> ExtractionOutput:
        text = decode_raw_bytes(data)
        if len(text) >= self.config.min_text_length:
            logger.warning(f"{filename}: structured PDF parsing failed, returning pseudo text ({len(text)} chars)")
            return ExtractionOutput.from_text(text, RAW_TEXT_TIER, pseudo=True)

        if structural:
            raise CorruptDocumentError(
                "All PDF recovery tiers failed",
                file_path=filename,
                tiers_attempted=attempted + [RAW_TEXT_TIER],
                cause=cause,
            ) from cause
        raise ParsingError(
            f"PDF parsing failed: {type(cause).__name__}: {cause}",
            file_path=filename,
        ) from cause

    def _parse_pdf(self, data: bytes, tier: str) -> ExtractionOutput:
        backend = self.context.pdf_backend
        permissive = tier == "permissive"
        payload = truncate_after_eof(data) if permissive else data

        handle = backend.open_document(payload, permissive=permissive)
        extractor: Optional[ImageExtractor] = None
        if self.config.extract_images:
            extractor = ImageExtractor(
                backend,
                self.context.heuristics,
                timeout_seconds=self.config.image_timeout_seconds,
                max_pixels=None if permissive else self.config.max_image_pixels,
                use_worker=tier == "standard",
            )
        ocr = OcrFallback(self.context)

        try:
            metadata: Dict[str, Any] = dict(backend.read_metadata(handle))
            count = backend.page_count(handle)
            pages = [self._read_page(handle, index, extractor, ocr) for index in range(count)]
        finally:
            # Timed-out image workers must finish before the handle is closed
            if extractor is not None:
                extractor.close()
            backend.close(handle)

        # Output order is by page number regardless of extraction order
        pages.sort(key=lambda p: p.page_number)
        metadata["page_count"] = len(pages)
        text = clean_text("\n\n".join(p.text for p in pages if p.text))
        images = [img for p in pages for img in p.images]
        logger.debug(f"tier '{tier}': {len(pages)} pages, {len(images)} images, {len(text)} chars")
        return ExtractionOutput(text=text, pages=pages, images=images, metadata=metadata, method=tier)

    def _read_page(
        self,
        handle: Any,
        index: int,
        extractor: Optional[ImageExtractor],
        ocr: OcrFallback,
    ) -> Page:
        backend = self.context.pdf_backend
        raw: RawPage = backend.read_page(handle, index)
        page_number = index + 1
        text = clean_text(items_to_text(raw.text_items))

        images = extractor.extract(handle, index) if extractor is not None else []
        outcome = ocr.apply(text, images, page_number)

        if images and self.context.vision_enabled:
            images = caption_images(images, self.context.vision)

        return Page(
            page_number=page_number,
            text=outcome.text,
            text_items=raw.text_items,
            images=images,
            annotations=raw.annotations,
            dimensions=PageDimensions(width=raw.width, height=raw.height),
            ocr_applied=outcome.applied,
        )


__all__ = ["TextExtractor", "ExtractionOutput", "items_to_text", "RECOVERY_TIERS", "RAW_TEXT_TIER"]
