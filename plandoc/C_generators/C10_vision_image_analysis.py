# plandoc/C_generators/C10_vision_image_analysis.py
"""
Optional captioning of extracted images with Claude Vision.

Each embedded image (site plan, elevation, street photo...) can be described
by a vision model. The captioner never raises: API, network and parsing
failures come back as ``ImageAnalysis(error=...)`` attached to the image, so
one failed call never costs the page its text.

Key Components:
    - ClaudeVisionCaptioner: VisionCaptioner over the Anthropic messages API
    - caption_images: Attach an ImageAnalysis to each image of a page
    - extract_json_object: Pull the first JSON object out of a model reply

Example:
    >>> captioner = ClaudeVisionCaptioner(model="claude-sonnet-4-20250514")
    >>> if captioner.is_available():
    ...     images = caption_images(images, captioner)

Dependencies:
    - anthropic: Claude messages API
    - Z_utils.Z04_image_utils: size check, compression, format detection
"""

from __future__ import annotations

import json
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import anthropic

from A_core.A00_logging import get_logger
from A_core.A01_domain_models import ExtractedImage, ImageAnalysis
from A_core.A02_interfaces import VisionCaptioner
from Z_utils.Z04_image_utils import (
    MAX_VISION_IMAGE_SIZE_BYTES,
    compress_image_for_vision,
    detect_image_format,
    get_image_size_bytes,
    png_to_base64,
)

logger = get_logger(__name__)

DEFAULT_VISION_MODEL = "claude-sonnet-4-20250514"

CAPTION_PROMPT = """You are reviewing an image taken from a UK planning document.
Describe what it shows in one or two sentences (site plan, elevation, section drawing,
street photograph, map, diagram...). Mention any legible street names or postcodes.

Respond with JSON only:
{"description": "<text>", "confidence": <number between 0 and 1>}"""


def _find_balanced(text: str, open_ch: str = "{", close_ch: str = "}") -> Optional[str]:
    start = text.find(open_ch)
    if start == -1:
        return None
    depth = 0
    for i, ch in enumerate(text[start:], start):
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """First JSON object in ``text``, from a fenced block or bare braces."""
    text = (text or "").strip()
    candidates = []
    fenced = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", text)
    if fenced:
        candidates.append(fenced.group(1))
    balanced = _find_balanced(text)
    if balanced:
        candidates.append(balanced)
    candidates.append(text)

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


class ClaudeVisionCaptioner(VisionCaptioner):
    """
    Claude Vision implementation of VisionCaptioner.

    Reads the API key from the constructor or ANTHROPIC_API_KEY. The client is
    created on first use, so a captioner without a key is cheap to build and
    simply reports itself unavailable.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_VISION_MODEL,
        max_tokens: int = 512,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    def is_available(self) -> bool:
        return self._client is not None or bool(self.api_key)

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def describe(self, base64_png: str, page_number: int) -> ImageAnalysis:
        try:
            return self._describe(base64_png)
        except Exception as e:
            logger.warning(f"Page {page_number}: vision captioning failed - {type(e).__name__}: {e}")
            return ImageAnalysis(model=self.model, timestamp=datetime.now(timezone.utc), error=str(e) or type(e).__name__)

    def _describe(self, image_base64: str) -> ImageAnalysis:
        if get_image_size_bytes(image_base64) > MAX_VISION_IMAGE_SIZE_BYTES:
            compressed, info = compress_image_for_vision(image_base64)
            if compressed is None:
                return ImageAnalysis(model=self.model, error=info.get("error") or "image too large")
            image_base64 = compressed

        message = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=0.0,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": detect_image_format(image_base64),
                                "data": image_base64,
                            },
                        },
                        {"type": "text", "text": CAPTION_PROMPT},
                    ],
                }
            ],
        )
        raw_text = "".join(block.text for block in message.content if hasattr(block, "text"))
        parsed = extract_json_object(raw_text)
        timestamp = datetime.now(timezone.utc)
        if not parsed or not parsed.get("description"):
            preview = raw_text[:200]
            return ImageAnalysis(model=self.model, timestamp=timestamp, error=f"Unparseable response: {preview!r}")

        confidence = parsed.get("confidence")
        if isinstance(confidence, (int, float)):
            confidence = min(1.0, max(0.0, float(confidence)))
        else:
            confidence = None
        return ImageAnalysis(
            description=str(parsed["description"]).strip(),
            confidence=confidence,
            model=self.model,
            timestamp=timestamp,
        )


def caption_images(
    images: Sequence[ExtractedImage],
    captioner: VisionCaptioner,
) -> List[ExtractedImage]:
    """Return copies of ``images`` with ``analysis`` filled in."""
    return [
        image.model_copy(update={"analysis": captioner.describe(png_to_base64(image.data), image.page)})
        for image in images
    ]


__all__ = [
    "DEFAULT_VISION_MODEL",
    "CAPTION_PROMPT",
    "ClaudeVisionCaptioner",
    "caption_images",
    "extract_json_object",
]
