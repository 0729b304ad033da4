# plandoc/Z_utils/Z04_image_utils.py
"""
Image utilities for OCR and vision captioning.

Handles:
- Base64 encode/decode of PNG buffers and decoded-size calculation
- Image format detection from the base64 header
- Compression to meet the vision API size limit
- Tesseract OCR engine (OcrEngine capability)
"""

from __future__ import annotations

import base64
import io
from typing import Any, Dict, Optional, Tuple

import pytesseract
from PIL import Image

from A_core.A00_logging import get_logger
from A_core.A02_interfaces import OcrEngine

logger = get_logger(__name__)

# Vision API limits
MAX_VISION_IMAGE_SIZE_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_COMPRESSION_QUALITY = 85
DEFAULT_MAX_DIMENSION = 2048
MIN_COMPRESSION_QUALITY = 30


def png_to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _strip_data_uri(base64_str: str) -> str:
    if "," in base64_str:
        return base64_str.split(",", 1)[1]
    return base64_str


def get_image_size_bytes(base64_str: str) -> int:
    """Decoded size of a base64-encoded image (4 chars -> 3 bytes, minus padding)."""
    if not base64_str:
        return 0
    base64_str = _strip_data_uri(base64_str)
    padding = base64_str.count("=")
    return (len(base64_str) * 3 // 4) - padding


def detect_image_format(base64_str: str) -> str:
    """MIME type from the base64 magic prefix; PNG when unknown."""
    base64_str = _strip_data_uri(base64_str or "")
    if base64_str.startswith("/9j/"):
        return "image/jpeg"
    if base64_str.startswith("R0lGOD"):
        return "image/gif"
    if base64_str.startswith("UklGR"):
        return "image/webp"
    return "image/png"


def decode_to_rgb(base64_str: str) -> Image.Image:
    """Open a base64 image and flatten transparency onto white."""
    img = Image.open(io.BytesIO(base64.b64decode(_strip_data_uri(base64_str))))
    if img.mode in ("RGBA", "P", "LA"):
        if img.mode == "P":
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def compress_image_for_vision(
    base64_str: str,
    max_size_bytes: int = MAX_VISION_IMAGE_SIZE_BYTES,
    quality: int = DEFAULT_COMPRESSION_QUALITY,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
) -> Tuple[Optional[str], Dict[str, Any]]:
    """
    Shrink an image below the vision API size limit.

    Strategy:
    1. Return unchanged when already under the limit
    2. Resize to ``max_dimension`` keeping aspect ratio
    3. Re-encode as JPEG, lowering quality in steps of 10 down to 30

    Returns:
        (compressed_base64 or None, info) where info carries
        original_size, final_size, was_compressed and error.
    """
    info: Dict[str, Any] = {
        "original_size": get_image_size_bytes(base64_str),
        "final_size": 0,
        "was_compressed": False,
        "error": None,
    }
    if not base64_str:
        info["error"] = "Empty input"
        return None, info

    base64_str = _strip_data_uri(base64_str)
    if info["original_size"] <= max_size_bytes:
        info["final_size"] = info["original_size"]
        return base64_str, info

    img = decode_to_rgb(base64_str)
    width, height = img.size
    if width > max_dimension or height > max_dimension:
        ratio = min(max_dimension / width, max_dimension / height)
        img = img.resize((int(width * ratio), int(height * ratio)), Image.Resampling.LANCZOS)

    current_quality = quality
    while current_quality >= MIN_COMPRESSION_QUALITY:
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=current_quality, optimize=True)
        compressed = buffer.getvalue()
        if len(compressed) <= max_size_bytes:
            info["final_size"] = len(compressed)
            info["was_compressed"] = True
            return base64.b64encode(compressed).decode("ascii"), info
        current_quality -= 10

    info["error"] = f"Could not compress below {max_size_bytes} bytes"
    return None, info


class TesseractOcrEngine(OcrEngine):
    """
    OcrEngine backed by the tesseract binary through pytesseract.

    Availability is probed once per instance; ParseContext builds a single
    instance per process.
    """

    def __init__(
        self,
        language: str = "eng",
        timeout_seconds: float = 30.0,
        tesseract_config: str = "--psm 6",  # Assume uniform block of text
    ) -> None:
        self.language = language
        self.timeout_seconds = timeout_seconds
        self.tesseract_config = tesseract_config
        self._available: Optional[bool] = None

    @property
    def name(self) -> str:
        return "tesseract"

    def is_available(self) -> bool:
        if self._available is None:
            try:
                version = pytesseract.get_tesseract_version()
                logger.debug(f"Tesseract {version} available")
                self._available = True
            except (pytesseract.TesseractNotFoundError, OSError) as e:
                logger.debug(f"Tesseract not available: {e}")
                self._available = False
        return self._available

    def recognize(self, base64_png: str) -> str:
        if not base64_png:
            return ""
        img = decode_to_rgb(base64_png)
        text = pytesseract.image_to_string(
            img,
            lang=self.language,
            config=self.tesseract_config,
            timeout=self.timeout_seconds,
        )
        return text.strip()


__all__ = [
    "MAX_VISION_IMAGE_SIZE_BYTES",
    "DEFAULT_COMPRESSION_QUALITY",
    "DEFAULT_MAX_DIMENSION",
    "png_to_base64",
    "get_image_size_bytes",
    "detect_image_format",
    "decode_to_rgb",
    "compress_image_for_vision",
    "TesseractOcrEngine",
]
