# plandoc/A_core/A02_interfaces.py
"""
Capability interfaces and the shared parse context.

The parser never imports a PDF library, OCR engine or vision client directly;
it talks to these abstract capabilities, which H01_component_factory wires up.

Key Components:
    - PdfBackend: Open documents, read pages, resolve embedded images
    - OcrEngine: Recognize text in a base64 PNG
    - VisionCaptioner: Optional image description, never raises
    - ParseContext: Config, heuristics and capabilities for one process
    - RawPage / ImageRef / ResolvedImage: Backend transfer objects
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from A_core.A01_domain_models import ImageAnalysis, PageAnnotation, TextItem
from A_core.A12_exceptions import OCRUnavailableError

if TYPE_CHECKING:
    from A_core.A04_heuristics_config import HeuristicsConfig
    from G_config.parse_config import ParseConfig

# Backend-specific open document handle
DocumentHandle = Any


# -----------------------------------------------------------------------------
# Transfer objects between a PDF backend and the extraction stages
# -----------------------------------------------------------------------------


@dataclass
class RawPage:
    """One page as read by a PdfBackend, before cleaning and OCR."""

    index: int  # 0-based
    text_items: List[TextItem] = field(default_factory=list)
    annotations: List[PageAnnotation] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0


@dataclass
class ImageRef:
    """Unresolved embedded image object on a page."""

    page_index: int
    xref: int
    name: str
    width: int = 0
    height: int = 0


@dataclass
class ResolvedImage:
    name: str
    width: int
    height: int
    png: bytes


# -----------------------------------------------------------------------------
# Injected capabilities
# -----------------------------------------------------------------------------


class PdfBackend(ABC):
    """
    PDF parsing capability.

    INVARIANT: open_document raises on structural damage; callers own the
    recovery ladder and decide whether to escalate.
    """

    name: str = "pdf"

    @abstractmethod
    def is_available(self) -> bool: ...

    @abstractmethod
    def open_document(self, data: bytes, permissive: bool = False) -> DocumentHandle: ...

    @abstractmethod
    def read_metadata(self, doc: DocumentHandle) -> Dict[str, Optional[str]]:
        """Return title, author, created_at and modified_at (any may be None)."""

    @abstractmethod
    def page_count(self, doc: DocumentHandle) -> int: ...

    @abstractmethod
    def read_page(self, doc: DocumentHandle, index: int) -> RawPage: ...

    @abstractmethod
    def list_page_images(self, doc: DocumentHandle, index: int) -> List[ImageRef]: ...

    @abstractmethod
    def resolve_image(
        self,
        doc: DocumentHandle,
        ref: ImageRef,
        max_pixels: Optional[int] = None,
    ) -> Optional[ResolvedImage]:
        """Decode an image object to PNG; None when it cannot be resolved."""

    @abstractmethod
    def close(self, doc: DocumentHandle) -> None: ...

    def is_structural_error(self, exc: BaseException) -> bool:
        """Whether ``exc`` signals document damage worth a recovery retry."""
        return True


class OcrEngine(ABC):
    """Text recognition over a base64-encoded PNG."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def is_available(self) -> bool: ...

    @abstractmethod
    def recognize(self, base64_png: str) -> str: ...


class VisionCaptioner(ABC):
    """
    Optional image description service.

    INVARIANT: describe never raises; failures come back as
    ImageAnalysis(error=...).
    """

    @abstractmethod
    def is_available(self) -> bool: ...

    @abstractmethod
    def describe(self, base64_png: str, page_number: int) -> ImageAnalysis: ...


# -----------------------------------------------------------------------------
# ParseContext: capabilities shared by every parse in a process
# -----------------------------------------------------------------------------


class ParseContext:
    """
    Owns configuration and injected capabilities for DocumentParser.

    The OCR engine is expensive to start, so it is built from ``ocr_factory``
    on first request, at most once, under a lock. The outcome (engine or
    unavailability) is memoized and shared read-only by concurrent parses.
    """

    def __init__(
        self,
        config: "ParseConfig",
        heuristics: "HeuristicsConfig",
        pdf_backend: PdfBackend,
        ocr_factory: Optional[Callable[[], OcrEngine]] = None,
        vision: Optional[VisionCaptioner] = None,
    ) -> None:
        self.config = config
        self.heuristics = heuristics
        self.pdf_backend = pdf_backend
        self.vision = vision
        self._ocr_factory = ocr_factory
        self._ocr_lock = threading.Lock()
        self._ocr_resolved = False
        self._ocr_engine: Optional[OcrEngine] = None
        self._ocr_error: Optional[OCRUnavailableError] = None

    def get_ocr_engine(self) -> OcrEngine:
        """
        Return the shared OCR engine, building it on first use.

        Raises:
            OCRUnavailableError: No factory was configured or the engine
                reports itself unavailable. Memoized like a success.
        """
        if not self._ocr_resolved:
            with self._ocr_lock:
                if not self._ocr_resolved:
                    self._resolve_ocr()
                    self._ocr_resolved = True
        if self._ocr_engine is None:
            assert self._ocr_error is not None
            raise OCRUnavailableError(self._ocr_error.message, engine=self._ocr_error.engine)
        return self._ocr_engine

    def _resolve_ocr(self) -> None:
        if self._ocr_factory is None:
            self._ocr_error = OCRUnavailableError("No OCR engine configured")
            return
        engine = self._ocr_factory()
        if not engine.is_available():
            self._ocr_error = OCRUnavailableError("OCR engine not available", engine=engine.name)
            return
        self._ocr_engine = engine

    @property
    def vision_enabled(self) -> bool:
        return bool(self.config.vision_enabled and self.vision is not None and self.vision.is_available())


__all__ = [
    "DocumentHandle",
    "RawPage",
    "ImageRef",
    "ResolvedImage",
    "PdfBackend",
    "OcrEngine",
    "VisionCaptioner",
    "ParseContext",
]
