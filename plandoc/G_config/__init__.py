# plandoc/G_config/__init__.py
"""
Configuration module for the plandoc parsing pipeline.

Load configuration from config.yaml:

    from G_config import load_config

    config = load_config()
    print(config.enabled_stages)

Or use presets programmatically:

    from G_config import ParseConfig, ParsePreset

    config = ParseConfig.from_preset(ParsePreset.FAST)

Available presets:
    - fast: text only
    - standard: images + OCR fallback (DEFAULT)
    - full: images + OCR + vision captioning
"""

from .parse_config import DEFAULT_CONFIG_FILE, ParseConfig, ParsePreset, load_config

__all__ = ["DEFAULT_CONFIG_FILE", "ParseConfig", "ParsePreset", "load_config"]
