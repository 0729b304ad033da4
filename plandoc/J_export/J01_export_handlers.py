# plandoc/J_export/J01_export_handlers.py
"""
Export handlers for parse results.

Writes a ParseResult to disk as JSON (full record and summary) and, optionally,
each extracted image as a PNG file. Also builds the parse summary consumed by
review tooling.

Key Components:
    - ExportManager: Per-document output folder and JSON writers
    - export_json: Write one ParseResult record to a path
    - build_parse_summary: Document / policy / quality statistics
"""

from __future__ import annotations

import json
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from A_core.A00_logging import get_logger
from A_core.A01_domain_models import ParseResult

logger = get_logger(__name__)

HIGH_CONFIDENCE = 0.7


def build_parse_summary(result: ParseResult) -> Dict[str, Any]:
    """Aggregate statistics for one parse.

    Coverage figures are fractions of policies; averages are 0 when no
    policy was found.
    """
    policies = result.policies
    total = len(policies)
    by_category = Counter(p.category.value for p in policies)
    with_requirements = sum(1 for p in policies if p.requirements)
    with_cross_refs = sum(1 for p in policies if p.cross_references)

    return {
        "document": {
            "title": result.metadata.title,
            "sections": len(result.sections),
            "word_count": result.metadata.word_count,
            "page_count": result.metadata.page_count,
            "pseudo": result.metadata.pseudo,
        },
        "policies": {
            "total": total,
            "categories": sorted(by_category),
            "by_category": dict(by_category),
            "with_requirements": with_requirements,
            "with_cross_references": with_cross_refs,
            "average_confidence": round(sum(p.confidence for p in policies) / total, 2) if total else 0.0,
        },
        "quality": {
            "average_content_length": round(sum(len(p.content) for p in policies) / (total or 1)),
            "reference_coverage": with_cross_refs / total if total else 0.0,
            "requirement_coverage": with_requirements / total if total else 0.0,
            "high_confidence": sum(1 for p in policies if p.confidence > HIGH_CONFIDENCE),
        },
        "addresses": len(result.addresses),
    }


def export_json(
    result: ParseResult,
    path: Union[str, Path],
    include_image_data: bool = False,
) -> Path:
    """Write ``result.to_record()`` as indented UTF-8 JSON; returns the path."""
    out_file = Path(path)
    out_file.parent.mkdir(parents=True, exist_ok=True)
    with open(out_file, "w", encoding="utf-8") as f:
        json.dump(result.to_record(include_image_data=include_image_data), f, indent=2, ensure_ascii=False)
    logger.info(f"Exported parse result to {out_file}")
    return out_file


class ExportManager:
    """
    Writes parse outputs for documents into per-document folders.

    Without an ``output_dir`` override, a document's folder sits next to the
    source file and is named after its stem.
    """

    def __init__(self, output_dir: Optional[Path] = None) -> None:
        self.output_dir_override = Path(output_dir) if output_dir else None

    def get_output_dir(self, source_path: Path) -> Path:
        if self.output_dir_override:
            out_dir = self.output_dir_override / source_path.stem
        else:
            out_dir = source_path.parent / source_path.stem
        out_dir.mkdir(parents=True, exist_ok=True)
        return out_dir

    def export_results(
        self,
        source_path: Union[str, Path],
        result: ParseResult,
        export_images: bool = False,
    ) -> Dict[str, Path]:
        """
        Write result, summary and (optionally) images for one document.

        Returns:
            Mapping of output kind ("result", "summary", "images") to path
        """
        source_path = Path(source_path)
        out_dir = self.get_output_dir(source_path)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        written: Dict[str, Path] = {
            "result": export_json(result, out_dir / f"parse_{source_path.stem}_{stamp}.json"),
        }

        summary_file = out_dir / f"summary_{source_path.stem}_{stamp}.json"
        with open(summary_file, "w", encoding="utf-8") as f:
            json.dump(build_parse_summary(result), f, indent=2, ensure_ascii=False)
        written["summary"] = summary_file

        if export_images and result.images:
            written["images"] = self.export_images(out_dir, result)
        return written

    def export_images(self, out_dir: Path, result: ParseResult) -> Path:
        """Save each extracted image as ``page<N>_<name>.png`` under ``images/``."""
        img_dir = out_dir / "images"
        img_dir.mkdir(parents=True, exist_ok=True)
        saved: List[str] = []
        for image in result.images:
            if not image.data:
                continue
            img_path = img_dir / f"page{image.page}_{image.name}.png"
            with open(img_path, "wb") as img_file:
                img_file.write(image.data)
            saved.append(img_path.name)
        logger.info(f"Saved {len(saved)} images to {img_dir}")
        return img_dir


__all__ = ["ExportManager", "export_json", "build_parse_summary"]
