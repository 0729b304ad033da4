# plandoc/B_parsing/B10_ocr_fallback.py
"""
OCR fallback for pages whose native text layer is too thin.

Runs only when all three hold:
    - stripped page text is shorter than ``ocr_min_text_yield``
    - the page produced at least one image
    - OCR is enabled in ParseConfig

The engine comes from ParseContext (built lazily, once per process). At most
``ocr_max_images`` images are recognized. OCR text replaces nothing: it is
appended to the page text only when it is longer than what the text layer
already gave, so recognition noise never displaces a good extraction.

Dependencies:
    - A_core.A02_interfaces: ParseContext, OcrEngine
    - Z_utils.Z04_image_utils: base64 encoding for the engine
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from A_core.A00_logging import get_logger
from A_core.A01_domain_models import ExtractedImage
from A_core.A02_interfaces import ParseContext
from A_core.A12_exceptions import OCRUnavailableError
from B_parsing.B01a_text_helpers import clean_text
from Z_utils.Z04_image_utils import png_to_base64

logger = get_logger(__name__)


@dataclass
class OcrOutcome:
    text: str
    applied: bool = False
    images_processed: int = 0


class OcrFallback:
    """Per-document OCR step; warns about a missing engine only once."""

    def __init__(self, context: ParseContext) -> None:
        self.context = context
        self.config = context.config
        self._unavailable_logged = False

    def should_run(self, page_text: str, images: Sequence[ExtractedImage]) -> bool:
        return (
            self.config.ocr_enabled
            and len(images) > 0
            and len(page_text.strip()) < self.config.ocr_min_text_yield
        )

    def apply(self, page_text: str, images: Sequence[ExtractedImage], page_number: int) -> OcrOutcome:
        if not self.should_run(page_text, images):
            return OcrOutcome(text=page_text)

        try:
            engine = self.context.get_ocr_engine()
        except OCRUnavailableError as e:
            if not self._unavailable_logged:
                logger.warning(f"OCR skipped, original text retained: {e}")
                self._unavailable_logged = True
            return OcrOutcome(text=page_text)

        pieces = []
        batch = list(images)[: self.config.ocr_max_images]
        for image in batch:
            try:
                recognized = engine.recognize(png_to_base64(image.data))
            except Exception as e:
                logger.warning(f"Page {page_number}: OCR failed on {image.name} - {type(e).__name__}: {e}")
                continue
            if recognized.strip():
                pieces.append(recognized.strip())

        ocr_text = clean_text("\n\n".join(pieces))
        if len(ocr_text) <= len(page_text.strip()):
            logger.debug(f"Page {page_number}: OCR yield ({len(ocr_text)} chars) not better than text layer")
            return OcrOutcome(text=page_text, images_processed=len(batch))

        merged = clean_text(f"{page_text}\n\n{ocr_text}")
        logger.debug(f"Page {page_number}: OCR added {len(ocr_text)} chars from {len(batch)} image(s)")
        return OcrOutcome(text=merged, applied=True, images_processed=len(batch))


__all__ = ["OcrFallback", "OcrOutcome"]
