# plandoc/A_core/A04_heuristics_config.py
"""
Centralized heuristics configuration for planning-document extraction.

Every weight, threshold and budget used by the scoring and segmentation stages
lives here as a named field. Values are loaded from the ``heuristics`` section
of config.yaml with hardcoded defaults as fallback, so extraction behaviour can
be tuned without touching pipeline logic.

Key Components:
    - HeuristicsConfig: Dataclass with all configurable weights:
        - Policy confidence bonuses and the rejection floor
        - Quality checklist thresholds (High / Medium / Low)
        - Policy content capture budgets and length bounds
        - Requirement scoring weights
        - Address line scoring weights and proximity window
        - Image aspect-ratio thresholds
    - load_heuristics_config: Merge YAML values over defaults
    - DEFAULT_CONFIG_PATH: config.yaml location (override with PLANDOC_CONFIG_PATH)

Example:
    >>> from A_core.A04_heuristics_config import load_heuristics_config
    >>> heuristics = load_heuristics_config()
    >>> heuristics.rejection_floor
    0.3

Dependencies:
    - A_core.A12_exceptions: ConfigurationError for unknown or mistyped keys
    - G_config/config.yaml: Runtime configuration values
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from A_core.A00_logging import get_logger
from A_core.A12_exceptions import ConfigurationError

logger = get_logger(__name__)


@dataclass
class HeuristicsConfig:
    """
    Named weights for every heuristic in the pipeline.

    Field groups follow pipeline order: policy confidence, quality tier,
    policy segmentation, requirements, addresses, images.
    """

    # ========================================
    # POLICY CONFIDENCE
    # ========================================
    policy_base_confidence: float = 0.5
    clean_reference_bonus: float = 0.2  # ^[A-Z]{1,3}\d{1,3}$
    subnumbered_reference_bonus: float = 0.1  # ^[A-Z]{1,3}\d{1,3}\.\d+$
    content_length_medium: int = 200
    content_length_long: int = 500
    content_length_bonus: float = 0.1  # applied once per threshold exceeded
    requirements_bonus: float = 0.1
    objectives_bonus: float = 0.05
    title_length_min: int = 20
    title_length_max: int = 100
    title_length_bonus: float = 0.1
    planning_terms_bonus: float = 0.1
    rejection_floor: float = 0.3
    loose_acceptance_threshold: float = 0.6

    # ========================================
    # QUALITY TIER
    # ========================================
    quality_high_ratio: float = 0.8
    quality_medium_ratio: float = 0.6
    quality_title_min: int = 10
    quality_content_min: int = 100
    ideal_length_min: int = 200
    ideal_length_max: int = 2000

    # ========================================
    # POLICY SEGMENTATION
    # ========================================
    min_policy_length: int = 50
    max_policy_length: int = 5000
    content_line_budget: int = 50
    short_content_guard: int = 100
    paragraph_break_min_chars: int = 200
    position_bucket: int = 50
    max_objectives: int = 10

    # ========================================
    # REQUIREMENTS
    # ========================================
    requirement_base: float = 0.5
    strong_modal_bonus: float = 0.2
    weak_modal_bonus: float = 0.1
    requirement_term_bonus: float = 0.05
    requirement_term_cap: float = 0.15
    short_requirement_length: int = 20
    short_requirement_penalty: float = 0.2
    meta_language_penalty: float = 0.1
    requirement_threshold: float = 0.5
    max_requirements: int = 10

    # ========================================
    # ADDRESSES
    # ========================================
    house_number_weight: float = 0.3
    road_suffix_weight: float = 0.4
    postcode_weight: float = 0.4
    postcode_proximity_weight: float = 0.25
    postcode_proximity_window: int = 120
    address_threshold: float = 0.45
    address_min_line_length: int = 6
    address_max_line_length: int = 160
    address_merge_max_tokens: int = 6
    max_addresses: int = 25

    # ========================================
    # IMAGES
    # ========================================
    elevation_aspect_ratio: float = 2.0
    plan_aspect_ratio_min: float = 1.2
    section_aspect_ratio: float = 0.75

    def __post_init__(self):
        """Reject configurations that break the scoring contract."""
        for name in ("rejection_floor", "loose_acceptance_threshold", "requirement_threshold", "address_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(
                    "Threshold must lie in [0, 1]",
                    config_key=f"heuristics.{name}",
                    expected_type="float in [0, 1]",
                    actual_value=value,
                )
        if self.min_policy_length > self.max_policy_length:
            raise ConfigurationError(
                "min_policy_length exceeds max_policy_length",
                config_key="heuristics.min_policy_length",
                actual_value=self.min_policy_length,
            )
        if self.position_bucket < 1:
            raise ConfigurationError(
                "position_bucket must be positive",
                config_key="heuristics.position_bucket",
                expected_type="int >= 1",
                actual_value=self.position_bucket,
            )

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "HeuristicsConfig":
        """
        Build a config from a mapping, coercing each value to its field type.

        Raises:
            ConfigurationError: On unknown keys or values that cannot be coerced.
        """
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, raw in values.items():
            if key not in known:
                raise ConfigurationError(
                    f"Unknown heuristics key '{key}'",
                    config_key=f"heuristics.{key}",
                )
            expected = int if isinstance(getattr(cls, key), int) else float
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ConfigurationError(
                    f"Heuristic '{key}' must be numeric",
                    config_key=f"heuristics.{key}",
                    expected_type=expected.__name__,
                    actual_value=raw,
                )
            if expected is int and not float(raw).is_integer():
                raise ConfigurationError(
                    f"Heuristic '{key}' must be a whole number",
                    config_key=f"heuristics.{key}",
                    expected_type="int",
                    actual_value=raw,
                )
            kwargs[key] = expected(raw)
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "HeuristicsConfig":
        """
        Load HeuristicsConfig from the ``heuristics`` section of a YAML file.

        A missing file or an empty section yields the defaults.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}, using default heuristics")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        heur = data.get("heuristics") or {}
        if not isinstance(heur, dict):
            raise ConfigurationError(
                "heuristics section must be a mapping",
                config_key="heuristics",
                expected_type="dict",
                actual_value=heur,
            )
        return cls.from_dict(heur)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Set PLANDOC_CONFIG_PATH for a custom config location
DEFAULT_CONFIG_PATH = os.getenv(
    "PLANDOC_CONFIG_PATH",
    str(Path(__file__).resolve().parents[1] / "G_config" / "config.yaml"),
)


def load_heuristics_config(config_path: Optional[Union[str, Path]] = None) -> HeuristicsConfig:
    """Load heuristics from config.yaml, falling back to hardcoded defaults."""
    return HeuristicsConfig.from_yaml(config_path or DEFAULT_CONFIG_PATH)


__all__ = [
    "HeuristicsConfig",
    "DEFAULT_CONFIG_PATH",
    "load_heuristics_config",
]
