# plandoc/B_parsing/B02_pdf_backend.py
"""
PyMuPDF implementation of the PdfBackend capability.

Reads positioned text spans, annotations, page geometry, document metadata and
embedded raster images. Structural damage surfaces as PyMuPDF exceptions; the
text extractor decides how to escalate.

Key Components:
    - PyMuPdfBackend: PdfBackend over fitz.Document
    - is_structural_error: Classify an exception as document-structure damage
    - render_image_by_xref: Decode an image XObject to RGB PNG bytes

Example:
    >>> from B_parsing.B02_pdf_backend import PyMuPdfBackend
    >>> backend = PyMuPdfBackend()
    >>> doc = backend.open_document(pdf_bytes)
    >>> raw = backend.read_page(doc, 0)
    >>> backend.close(doc)

Dependencies:
    - fitz (PyMuPDF): PDF parsing and image decoding
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

import fitz  # PyMuPDF

from A_core.A00_logging import get_logger
from A_core.A01_domain_models import PageAnnotation, TextItem
from A_core.A02_interfaces import ImageRef, PdfBackend, RawPage, ResolvedImage

logger = get_logger(__name__)

_STRUCTURAL_MESSAGE_RE = re.compile(
    r"invalid|broken|format error|xref|trailer|syntax|no objects found|cannot open",
    re.IGNORECASE,
)


def is_structural_error(exc: BaseException) -> bool:
    """True when ``exc`` indicates a damaged PDF rather than an environment fault."""
    if isinstance(exc, (fitz.FileDataError, fitz.EmptyFileError)):
        return True
    return bool(_STRUCTURAL_MESSAGE_RE.search(str(exc)))


def render_image_by_xref(doc: fitz.Document, xref: int) -> fitz.Pixmap:
    """Decode an image XObject, normalizing CMYK and alpha to plain RGB."""
    pix = fitz.Pixmap(doc, xref)
    if pix.colorspace and pix.colorspace.n > 3:
        pix = fitz.Pixmap(fitz.csRGB, pix)
    if pix.alpha:
        pix = fitz.Pixmap(pix, 0)
    return pix


def _pdf_date(value: Optional[str]) -> Optional[str]:
    """Convert ``D:20240131120000+00'00'`` to ``2024-01-31T12:00:00``."""
    if not value:
        return None
    m = re.match(r"D:(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?", value)
    if not m:
        return value
    year, month, day, hour, minute, second = (g or d for g, d in zip(m.groups(), ("", "01", "01", "00", "00", "00")))
    return f"{year}-{month}-{day}T{hour}:{minute}:{second}"


@dataclass
class _OpenDocument:
    doc: fitz.Document
    permissive: bool


class PyMuPdfBackend(PdfBackend):
    """
    PdfBackend over PyMuPDF.

    In permissive mode a page whose text cannot be read yields an empty
    RawPage instead of raising.
    """

    name = "pymupdf"

    def is_available(self) -> bool:
        return True

    def is_structural_error(self, exc: BaseException) -> bool:
        return is_structural_error(exc)

    def open_document(self, data: bytes, permissive: bool = False) -> _OpenDocument:
        if not permissive and not data.startswith(b"%PDF"):
            raise fitz.FileDataError("invalid PDF: missing header")
        doc = fitz.open(stream=data, filetype="pdf")
        if doc.needs_pass and not doc.authenticate(""):
            doc.close()
            raise fitz.FileDataError("cannot open encrypted document")
        if doc.page_count == 0:
            doc.close()
            raise fitz.FileDataError("broken document: no pages")
        if doc.is_repaired:
            logger.debug("PyMuPDF repaired document structure on open")
        return _OpenDocument(doc=doc, permissive=permissive)

    def read_metadata(self, handle: _OpenDocument) -> Dict[str, Optional[str]]:
        meta = handle.doc.metadata or {}
        return {
            "title": (meta.get("title") or "").strip() or None,
            "author": (meta.get("author") or "").strip() or None,
            "created_at": _pdf_date(meta.get("creationDate")),
            "modified_at": _pdf_date(meta.get("modDate")),
        }

    def page_count(self, handle: _OpenDocument) -> int:
        return handle.doc.page_count

    def read_page(self, handle: _OpenDocument, index: int) -> RawPage:
        page = handle.doc[index]
        raw = RawPage(index=index, width=page.rect.width, height=page.rect.height)
        try:
            raw.text_items = self._text_items(page)
            raw.annotations = self._annotations(page)
        except (RuntimeError, ValueError) as e:
            if not handle.permissive:
                raise
            logger.debug(f"Page {index + 1}: text unreadable in permissive mode ({e})")
        return raw

    def list_page_images(self, handle: _OpenDocument, index: int) -> List[ImageRef]:
        refs: List[ImageRef] = []
        for img in handle.doc[index].get_images(full=True):
            xref, _smask, width, height = img[0], img[1], img[2], img[3]
            name = img[7] or f"img{xref}"
            refs.append(ImageRef(page_index=index, xref=xref, name=name, width=width, height=height))
        return refs

    def resolve_image(
        self,
        handle: _OpenDocument,
        ref: ImageRef,
        max_pixels: Optional[int] = None,
    ) -> Optional[ResolvedImage]:
        if max_pixels and ref.width * ref.height > max_pixels:
            logger.debug(f"Skipping {ref.name}: {ref.width}x{ref.height} exceeds pixel cap")
            return None
        pix = render_image_by_xref(handle.doc, ref.xref)
        return ResolvedImage(name=ref.name, width=pix.width, height=pix.height, png=pix.tobytes("png"))

    def close(self, handle: _OpenDocument) -> None:
        handle.doc.close()

    @staticmethod
    def _text_items(page: fitz.Page) -> List[TextItem]:
        items: List[TextItem] = []
        data = page.get_text("dict")
        for block in data.get("blocks", []):
            if block.get("type") != 0:  # image block
                continue
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    text = span.get("text", "")
                    if not text.strip():
                        continue
                    x, y = span.get("origin", span["bbox"][:2])
                    items.append(
                        TextItem(
                            text=text,
                            x=float(x),
                            y=float(y),
                            font=span.get("font", ""),
                            size=float(span.get("size", 0.0)),
                        )
                    )
        return items

    @staticmethod
    def _annotations(page: fitz.Page) -> List[PageAnnotation]:
        out: List[PageAnnotation] = []
        for annot in page.annots() or []:
            out.append(PageAnnotation(type=annot.type[1], content=(annot.info or {}).get("content", "")))
        return out


__all__ = ["PyMuPdfBackend", "is_structural_error", "render_image_by_xref"]
