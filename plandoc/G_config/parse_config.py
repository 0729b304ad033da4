# plandoc/G_config/parse_config.py
"""
Runtime configuration for document parsing.

Controls which optional stages run and how hard they work:
- Embedded image extraction (and its per-image time budget)
- OCR fallback for low-yield pages
- Vision captioning of extracted images
- Text chunking for downstream embedding

Usage:
    from G_config.parse_config import ParseConfig, ParsePreset

    # Use a preset
    config = ParseConfig.from_preset(ParsePreset.FAST)

    # Custom configuration
    config = ParseConfig(ocr_enabled=False, chunk_size=1200)

    # From config.yaml
    config = ParseConfig.from_yaml()
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from A_core.A00_logging import get_logger
from A_core.A12_exceptions import ConfigurationError

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"


class ParsePreset(str, Enum):
    """Predefined parse configurations."""

    FAST = "fast"  # Text only: no images, no OCR, no vision
    STANDARD = "standard"  # Images + OCR fallback
    FULL = "full"  # Images + OCR + vision captioning


@dataclass
class ParseConfig:
    """
    Switches and budgets for one DocumentParser.

    Heuristic weights live in HeuristicsConfig; this holds everything else.
    """

    # Text
    min_text_length: int = 100
    chunk_size: int = 1800
    chunk_overlap: int = 250

    # Embedded images
    extract_images: bool = True
    image_timeout_seconds: float = 1.5
    max_image_pixels: int = 25_000_000

    # OCR fallback
    ocr_enabled: bool = True
    ocr_max_images: int = 5
    ocr_min_text_yield: int = 50
    ocr_language: str = "eng"
    ocr_timeout_seconds: float = 30.0

    # Vision captioning
    vision_enabled: bool = False
    vision_model: str = "claude-sonnet-4-20250514"
    vision_max_tokens: int = 512

    # Policies
    max_policies: int = 100

    def __post_init__(self):
        if self.chunk_overlap >= self.chunk_size:
            raise ConfigurationError(
                "chunk_overlap must be smaller than chunk_size",
                config_key="parser.text.chunk_overlap",
                actual_value=self.chunk_overlap,
            )
        if self.image_timeout_seconds <= 0:
            raise ConfigurationError(
                "image resolution timeout must be positive",
                config_key="parser.images.resolution_timeout_seconds",
                actual_value=self.image_timeout_seconds,
            )

    @classmethod
    def from_preset(cls, preset: ParsePreset) -> "ParseConfig":
        """Create configuration from a preset."""
        presets = {
            ParsePreset.FAST: cls(
                extract_images=False,
                ocr_enabled=False,
                vision_enabled=False,
            ),
            ParsePreset.STANDARD: cls(
                extract_images=True,
                ocr_enabled=True,
                vision_enabled=False,
            ),
            ParsePreset.FULL: cls(
                extract_images=True,
                ocr_enabled=True,
                vision_enabled=True,
            ),
        }
        return presets.get(preset, cls())

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ParseConfig":
        """Create configuration from a flat dictionary; unknown keys are ignored."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in names})

    @classmethod
    def from_yaml(cls, config_path: Optional[Union[str, Path]] = None) -> "ParseConfig":
        """
        Load configuration from the ``parser`` section of config.yaml.

        Args:
            config_path: Path to config.yaml. If None, uses G_config/config.yaml.

        Returns:
            ParseConfig; the standard preset when the file is missing.
        """
        path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE
        if not path.exists():
            logger.warning(f"Config file not found: {path}, using defaults")
            return cls.from_preset(ParsePreset.STANDARD)

        try:
            with open(path, "r", encoding="utf-8") as f:
                full_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        return cls._from_parser_section(full_config.get("parser") or {})

    @classmethod
    def _from_parser_section(cls, section: Dict[str, Any]) -> "ParseConfig":
        """Apply a ``parser`` mapping on top of its preset (or the defaults)."""
        preset_name = section.get("preset")
        if preset_name:
            try:
                config = cls.from_preset(ParsePreset(preset_name))
                logger.info(f"Using parse preset: {preset_name}")
            except ValueError:
                logger.warning(f"Unknown preset '{preset_name}', using defaults")
                config = cls()
        else:
            config = cls()

        overrides: Dict[str, Any] = {}

        text = section.get("text") or {}
        if "min_length" in text:
            overrides["min_text_length"] = int(text["min_length"])
        if "chunk_size" in text:
            overrides["chunk_size"] = int(text["chunk_size"])
        if "chunk_overlap" in text:
            overrides["chunk_overlap"] = int(text["chunk_overlap"])

        images = section.get("images") or {}
        if "enabled" in images:
            overrides["extract_images"] = bool(images["enabled"])
        if "resolution_timeout_seconds" in images:
            overrides["image_timeout_seconds"] = float(images["resolution_timeout_seconds"])
        if "max_pixels" in images:
            overrides["max_image_pixels"] = int(images["max_pixels"])

        ocr = section.get("ocr") or {}
        if "enabled" in ocr:
            overrides["ocr_enabled"] = bool(ocr["enabled"])
        if "max_images" in ocr:
            overrides["ocr_max_images"] = int(ocr["max_images"])
        if "min_text_yield" in ocr:
            overrides["ocr_min_text_yield"] = int(ocr["min_text_yield"])
        if "language" in ocr:
            overrides["ocr_language"] = str(ocr["language"])
        if "timeout_seconds" in ocr:
            overrides["ocr_timeout_seconds"] = float(ocr["timeout_seconds"])

        vision = section.get("vision") or {}
        if "enabled" in vision:
            overrides["vision_enabled"] = bool(vision["enabled"])
        if vision.get("model"):
            overrides["vision_model"] = str(vision["model"])
        if "max_tokens" in vision:
            overrides["vision_max_tokens"] = int(vision["max_tokens"])

        policies = section.get("policies") or {}
        if "max_policies" in policies:
            overrides["max_policies"] = int(policies["max_policies"])

        # Preset flags win over the per-stage defaults written in the file
        if preset_name:
            for key in ("extract_images", "ocr_enabled", "vision_enabled"):
                overrides.pop(key, None)

        return replace(config, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def enabled_stages(self):
        stages = ["text"]
        if self.extract_images:
            stages.append("images")
        if self.ocr_enabled:
            stages.append("ocr")
        if self.vision_enabled:
            stages.append("vision")
        return stages

    def __str__(self) -> str:
        return f"ParseConfig({', '.join(self.enabled_stages)})"


def load_config(config_path: Optional[Union[str, Path]] = None) -> ParseConfig:
    """
    Load parse configuration from config.yaml.

    Example:
        from G_config import load_config
        config = load_config()
        print(config.enabled_stages)
    """
    return ParseConfig.from_yaml(config_path)


__all__ = ["ParseConfig", "ParsePreset", "DEFAULT_CONFIG_FILE", "load_config"]
