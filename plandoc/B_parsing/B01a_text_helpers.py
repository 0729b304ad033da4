# plandoc/B_parsing/B01a_text_helpers.py
"""
Text normalization, decoding and format helpers for the text extractor.

Provides:
- Idempotent text cleaning (line endings, unicode spaces, blank-line runs)
- MIME inference from declared type or filename extension
- Plain-text, HTML and best-effort decoders
- PDF byte helpers (header location, trailing-garbage truncation, raw decode)
"""

from __future__ import annotations

import mimetypes
import re
from pathlib import PurePath
from typing import Optional

from bs4 import BeautifulSoup

from A_core.A12_exceptions import UnsupportedFormatError


# =============================================================================
# TEXT CLEANING
# =============================================================================

_LINE_ENDINGS_RE = re.compile(r"\r\n|\r|\f|\v")
# Non-breaking and typographic space variants, plus zero-width space and BOM
_UNICODE_SPACES_RE = re.compile("[\u00a0\u2000-\u200b\u202f\u205f\u3000\ufeff]")
_HSPACE_RUN_RE = re.compile(r"[ \t]+")
_SPACE_AROUND_NEWLINE_RE = re.compile(r" *\n *")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F\uFFFD]")


def clean_text(text: str) -> str:
    """
    Normalize extracted text.

    - line endings -> \\n
    - unicode space variants -> plain space
    - runs of tabs/spaces -> single space
    - 3+ consecutive newlines -> one blank line
    - trim

    clean_text(clean_text(x)) == clean_text(x) for every x.
    """
    if not text:
        return ""
    t = _LINE_ENDINGS_RE.sub("\n", text)
    t = _UNICODE_SPACES_RE.sub(" ", t)
    t = _HSPACE_RUN_RE.sub(" ", t)
    t = _SPACE_AROUND_NEWLINE_RE.sub("\n", t)
    t = _BLANK_RUN_RE.sub("\n\n", t)
    return t.strip()


def word_count(text: str) -> int:
    return len(text.split()) if text else 0


def printable_ratio(text: str) -> float:
    """Share of characters that are printable or ordinary whitespace."""
    if not text:
        return 0.0
    good = sum(1 for ch in text if ch.isprintable() or ch in "\n\t")
    return good / len(text)


# =============================================================================
# FORMAT DISPATCH
# =============================================================================

PDF_MIME = "application/pdf"
PLAIN_MIME = "text/plain"
HTML_MIME = "text/html"

EXTENSION_MIME = {
    ".pdf": PDF_MIME,
    ".txt": PLAIN_MIME,
    ".text": PLAIN_MIME,
    ".md": PLAIN_MIME,
    ".csv": PLAIN_MIME,
    ".htm": HTML_MIME,
    ".html": HTML_MIME,
    ".xhtml": HTML_MIME,
}

_HTML_MIMES = {HTML_MIME, "application/xhtml+xml"}


def infer_mime_type(filename: Optional[str], declared: Optional[str] = None) -> Optional[str]:
    """
    Resolve the MIME type used for dispatch.

    A declared type wins; otherwise the filename extension decides.
    Returns None when neither yields a type.
    """
    if declared:
        return declared.split(";", 1)[0].strip().lower() or None
    if not filename:
        return None
    suffix = PurePath(filename).suffix.lower()
    if suffix in EXTENSION_MIME:
        return EXTENSION_MIME[suffix]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed


def classify_format(mime_type: Optional[str]) -> str:
    """Map a MIME type to one of: pdf, text, html, unknown."""
    if not mime_type:
        return "unknown"
    if mime_type == PDF_MIME or mime_type.endswith("/pdf"):
        return "pdf"
    if mime_type in _HTML_MIMES:
        return "html"
    if mime_type.startswith("text/"):
        return "text"
    return "unknown"


# =============================================================================
# DECODERS
# =============================================================================


def decode_plain_text(data: bytes) -> str:
    """UTF-8 (BOM tolerant) with a cp1252 fallback for legacy exports."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("cp1252", errors="replace")


def html_to_text(data: bytes) -> str:
    """Strip tags, scripts and styles; block elements become line breaks."""
    soup = BeautifulSoup(data, "html.parser")
    for tag in soup(["script", "style", "head", "noscript", "template"]):
        tag.decompose()
    return soup.get_text("\n")


def best_effort_decode(
    data: bytes,
    filename: Optional[str] = None,
    mime_type: Optional[str] = None,
    min_printable: float = 0.85,
) -> str:
    """
    Decode a buffer of unknown type as UTF-8.

    Raises:
        UnsupportedFormatError: Buffer does not look like text.
    """
    text = data.decode("utf-8", errors="replace")
    if not text.strip() or printable_ratio(text) < min_printable:
        raise UnsupportedFormatError(
            "No decode strategy applies to this file",
            file_path=filename,
            mime_type=mime_type,
        )
    return text


# =============================================================================
# PDF BYTE HELPERS
# =============================================================================

PDF_MAGIC = b"%PDF"
PDF_EOF = b"%%EOF"
HEADER_SCAN_BYTES = 1024


def locate_pdf_header(data: bytes) -> Optional[int]:
    """Offset of the PDF magic number within the first 1KB, else None."""
    idx = data.find(PDF_MAGIC, 0, HEADER_SCAN_BYTES + len(PDF_MAGIC))
    return idx if 0 <= idx <= HEADER_SCAN_BYTES else None


def repair_pdf_header(data: bytes) -> bytes:
    """Drop leading junk (BOM, mail headers) before the PDF magic number."""
    if data.startswith(PDF_MAGIC):
        return data
    offset = locate_pdf_header(data)
    return data[offset:] if offset else data


def truncate_after_eof(data: bytes) -> bytes:
    """Cut trailing garbage after the last end-of-file marker."""
    idx = data.rfind(PDF_EOF)
    if idx == -1:
        return data
    return data[: idx + len(PDF_EOF)]


def decode_raw_bytes(data: bytes) -> str:
    """Last-resort decode of arbitrary bytes into cleaned text."""
    text = data.decode("utf-8", errors="ignore")
    text = _CONTROL_CHARS_RE.sub(" ", text)
    return clean_text(text)


__all__ = [
    "clean_text",
    "word_count",
    "printable_ratio",
    "PDF_MIME",
    "PLAIN_MIME",
    "HTML_MIME",
    "EXTENSION_MIME",
    "infer_mime_type",
    "classify_format",
    "decode_plain_text",
    "html_to_text",
    "best_effort_decode",
    "PDF_MAGIC",
    "HEADER_SCAN_BYTES",
    "locate_pdf_header",
    "repair_pdf_header",
    "truncate_after_eof",
    "decode_raw_bytes",
]
