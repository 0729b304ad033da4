# plandoc/A_core/A12_exceptions.py
"""
Exception hierarchy for the plandoc pipeline.

Hierarchy:
    PlanDocError (base)
    ├── ConfigurationError            # Invalid config, unknown keys
    ├── ParsingError                  # Byte/format level failures
    │   ├── UnsupportedFormatError    # No decode strategy applies
    │   ├── CorruptDocumentError      # Every PDF recovery tier exhausted
    │   └── EmptyOrTooShortError      # Decode succeeded, content degenerate
    ├── ImageResolutionTimeoutError   # Non-fatal, one embedded image skipped
    └── OCRUnavailableError           # Non-fatal, OCR step skipped

Only the ParsingError branch ever reaches callers of DocumentParser.parse.
The last two are raised and caught inside the page loop so the reason can be
logged with context.

Usage:
    from A_core.A12_exceptions import CorruptDocumentError

    try:
        result = parser.parse(data, "plan.pdf")
    except CorruptDocumentError as e:
        logger.error(f"{e.message} (tiers: {e.tiers_attempted})")
        cause = e.__cause__  # original low-level error
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


class PlanDocError(Exception):
    """
    Base exception for all plandoc errors.

    Attributes:
        message: Human-readable error description.
        context: Additional context data for debugging.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class ConfigurationError(PlanDocError):
    """
    Raised when configuration is invalid or incomplete.

    Examples:
        - Unknown key in the heuristics section of config.yaml
        - Weight that is not a number
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        actual_value: Optional[Any] = None,
    ):
        context: Dict[str, Any] = {}
        if config_key:
            context["key"] = config_key
        if expected_type:
            context["expected"] = expected_type
        if actual_value is not None:
            context["actual"] = repr(actual_value)

        super().__init__(message, context)
        self.config_key = config_key
        self.expected_type = expected_type
        self.actual_value = actual_value


class ParsingError(PlanDocError):
    """
    Raised when a document cannot be turned into usable text.

    Attributes:
        file_path: Name of the uploaded file.
        page_number: Page where the failure happened, if known.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        page_number: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        merged: Dict[str, Any] = {}
        if file_path:
            merged["file"] = file_path
        if page_number is not None:
            merged["page"] = page_number
        merged.update(context or {})

        super().__init__(message, merged)
        self.file_path = file_path
        self.page_number = page_number


class UnsupportedFormatError(ParsingError):
    """Raised when the MIME type is unknown and best-effort decoding fails."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        mime_type: Optional[str] = None,
    ):
        context = {"mime": mime_type} if mime_type else {}
        super().__init__(message, file_path=file_path, context=context)
        self.mime_type = mime_type


class CorruptDocumentError(ParsingError):
    """
    Raised when every PDF recovery tier failed and the raw-text fallback
    yielded too little text.

    The triggering low-level exception is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        tiers_attempted: Sequence[str] = (),
        cause: Optional[BaseException] = None,
    ):
        context: Dict[str, Any] = {}
        if tiers_attempted:
            context["tiers"] = "/".join(tiers_attempted)
        if cause is not None:
            context["cause"] = f"{type(cause).__name__}: {cause}"
        super().__init__(message, file_path=file_path, context=context)
        self.tiers_attempted: List[str] = list(tiers_attempted)


class EmptyOrTooShortError(ParsingError):
    """Raised when decoded text is shorter than the configured minimum."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        text_length: int = 0,
        min_length: int = 0,
    ):
        super().__init__(
            message,
            file_path=file_path,
            context={"length": text_length, "min": min_length},
        )
        self.text_length = text_length
        self.min_length = min_length


class ImageResolutionTimeoutError(PlanDocError):
    """An embedded image object did not resolve within its time budget."""

    def __init__(
        self,
        message: str,
        page_number: Optional[int] = None,
        image_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        context: Dict[str, Any] = {}
        if page_number is not None:
            context["page"] = page_number
        if image_name:
            context["image"] = image_name
        if timeout_seconds is not None:
            context["timeout"] = f"{timeout_seconds:.1f}s"
        super().__init__(message, context)
        self.page_number = page_number
        self.image_name = image_name
        self.timeout_seconds = timeout_seconds


class OCRUnavailableError(PlanDocError):
    """No usable OCR engine; the OCR fallback is skipped."""

    def __init__(self, message: str, engine: Optional[str] = None):
        super().__init__(message, {"engine": engine} if engine else None)
        self.engine = engine


__all__ = [
    "PlanDocError",
    "ConfigurationError",
    "ParsingError",
    "UnsupportedFormatError",
    "CorruptDocumentError",
    "EmptyOrTooShortError",
    "ImageResolutionTimeoutError",
    "OCRUnavailableError",
]
