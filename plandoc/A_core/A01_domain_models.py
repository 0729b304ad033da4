# plandoc/A_core/A01_domain_models.py
"""
Domain models for the plandoc parsing pipeline.

Provides Pydantic models for:
- Closed vocabularies (policy category, requirement type, quality tier, image kind)
- Page-level extraction output (Page, TextItem, ExtractedImage)
- Document structure (Section) and extracted candidates
  (PolicyCandidate, Requirement, AddressCandidate)
- The composite ParseResult returned by the pipeline

All models are frozen. Stages that enrich a candidate produce a new instance
with ``model_copy(update=...)`` instead of mutating it.
"""
from __future__ import annotations

import base64
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

ADDRESS_RESULT_LIMIT = 25


# -------------------------
# Vocabularies
# -------------------------


class PolicyCategory(str, Enum):
    HOUSING = "Housing"
    TRANSPORT = "Transport"
    ENVIRONMENT = "Environment"
    HERITAGE = "Heritage"
    DESIGN = "Design"
    INFRASTRUCTURE = "Infrastructure"
    COMMUNITY = "Community"
    ECONOMY = "Economy"
    FLOOD_RISK = "Flood Risk"
    CLIMATE = "Climate"
    DEVELOPMENT_MANAGEMENT = "Development Management"
    SITE_ALLOCATION = "Site Allocation"
    GENERAL = "General"


class RequirementType(str, Enum):
    DESIGN = "design"
    SCALE = "scale"
    ACCESS = "access"
    LANDSCAPE = "landscape"
    HERITAGE = "heritage"
    GENERAL = "general"


class QualityTier(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class ImageKind(str, Enum):
    """Aspect-ratio class of an embedded drawing or photograph."""

    PLAN = "plan"
    ELEVATION = "elevation"
    SECTION = "section"
    PHOTO = "photo"


class SectionType(str, Enum):
    NUMBERED = "numbered"
    LETTERED = "lettered"
    TITLED = "titled"
    # Text before the first header, or the whole text when no header exists
    PREAMBLE = "preamble"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# -------------------------
# Page-level output
# -------------------------


class TextItem(_Frozen):
    """A positioned run of text as reported by the PDF backend."""

    text: str
    x: float = 0.0
    y: float = 0.0
    font: str = ""
    size: float = 0.0


class PageDimensions(_Frozen):
    width: float = Field(ge=0.0)
    height: float = Field(ge=0.0)


class PageAnnotation(_Frozen):
    type: str
    content: str = ""


class ImageAnalysis(_Frozen):
    """
    Result of the optional vision captioning collaborator.

    Either ``description`` is set (success) or ``error`` is set (failure
    captured inline).
    """

    description: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    model: Optional[str] = None
    timestamp: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.description is not None


class ExtractedImage(_Frozen):
    page: int = Field(ge=1)
    name: str
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    # PNG-encoded pixels; excluded from records unless explicitly requested
    data: bytes = Field(default=b"", repr=False, exclude=True)
    kind: ImageKind = ImageKind.PHOTO
    analysis: Optional[ImageAnalysis] = None

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class Page(_Frozen):
    page_number: int = Field(ge=1)
    text: str = ""
    text_items: List[TextItem] = Field(default_factory=list)
    images: List[ExtractedImage] = Field(default_factory=list)
    annotations: List[PageAnnotation] = Field(default_factory=list)
    dimensions: Optional[PageDimensions] = None
    ocr_applied: bool = False


# -------------------------
# Structure and candidates
# -------------------------


class Section(_Frozen):
    """
    A structural subdivision of the document.

    ``start_position`` is the character offset of the header line in the
    normalized text; ``content_start`` is the offset of ``content[0]``.
    """

    reference: str
    title: str
    level: int = Field(ge=1)
    type: SectionType
    start_position: int = Field(ge=0)
    content_start: int = Field(ge=0)
    content: str = ""
    word_count: int = Field(default=0, ge=0)


class Requirement(_Frozen):
    text: str
    type: RequirementType = RequirementType.GENERAL
    mandatory: bool = False
    confidence: float = Field(ge=0.0, le=1.0)


class PolicyCandidate(_Frozen):
    reference: str
    title: str
    content: str
    category: PolicyCategory = PolicyCategory.GENERAL
    requirements: List[Requirement] = Field(default_factory=list)
    cross_references: List[str] = Field(default_factory=list)
    objectives: List[str] = Field(default_factory=list)
    position: int = Field(ge=0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    quality: QualityTier = QualityTier.LOW
    section_reference: Optional[str] = None
    section_title: Optional[str] = None


class AddressCandidate(_Frozen):
    address: str
    postcode: Optional[str] = None
    line_index: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)


class TextChunk(_Frozen):
    """Overlapping window of the full text for downstream embedding."""

    index: int = Field(ge=0)
    content: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)


# -------------------------
# Composite result
# -------------------------


class DocumentMetadata(_Frozen):
    page_count: int = Field(default=0, ge=0)
    title: Optional[str] = None
    author: Optional[str] = None
    created_at: Optional[str] = None
    modified_at: Optional[str] = None
    pseudo: bool = False
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    extraction_method: Optional[str] = None
    word_count: int = Field(default=0, ge=0)
    section_count: int = Field(default=0, ge=0)
    ocr_pages: List[int] = Field(default_factory=list)
    planning_application_refs: List[str] = Field(default_factory=list)
    local_authorities: List[str] = Field(default_factory=list)


class ParseResult(_Frozen):
    """
    Everything the engine recovered from one uploaded file.

    Invariants checked on construction:
        - pages ascending by page_number
        - addresses non-increasing in confidence, at most 25
    """

    text: str
    pages: List[Page] = Field(default_factory=list)
    images: List[ExtractedImage] = Field(default_factory=list)
    sections: List[Section] = Field(default_factory=list)
    addresses: List[AddressCandidate] = Field(default_factory=list)
    policies: List[PolicyCandidate] = Field(default_factory=list)
    chunks: List[TextChunk] = Field(default_factory=list)
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    processing_time_ms: float = Field(default=0.0, ge=0.0)

    @model_validator(mode="after")
    def _check_ordering(self) -> "ParseResult":
        numbers = [p.page_number for p in self.pages]
        if numbers != sorted(numbers):
            raise ValueError("pages must be ordered by page_number")

        if len(self.addresses) > ADDRESS_RESULT_LIMIT:
            raise ValueError(f"at most {ADDRESS_RESULT_LIMIT} addresses allowed")
        scores = [a.confidence for a in self.addresses]
        if any(a < b for a, b in zip(scores, scores[1:])):
            raise ValueError("addresses must be sorted by descending confidence")
        return self

    def to_record(self, include_image_data: bool = False) -> Dict[str, Any]:
        """
        Plain JSON-compatible dict for downstream services.

        Args:
            include_image_data: Add base64 PNG data under ``data`` for each image.
        """
        record = self.model_dump(mode="json")
        if include_image_data:
            for img_record, image in zip(record["images"], self.images):
                img_record["data"] = image.to_base64()
            for page_record, page in zip(record["pages"], self.pages):
                for img_record, image in zip(page_record["images"], page.images):
                    img_record["data"] = image.to_base64()
        return record


__all__ = [
    "ADDRESS_RESULT_LIMIT",
    "PolicyCategory",
    "RequirementType",
    "QualityTier",
    "ImageKind",
    "SectionType",
    "TextItem",
    "PageDimensions",
    "PageAnnotation",
    "ImageAnalysis",
    "ExtractedImage",
    "Page",
    "Section",
    "Requirement",
    "PolicyCandidate",
    "AddressCandidate",
    "TextChunk",
    "DocumentMetadata",
    "ParseResult",
]
