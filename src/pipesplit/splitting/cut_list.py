"""Cutting list output for a split run."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import numpy as np

from pipesplit.core.logging_setup import get_logger
from pipesplit.core.split_settings import SplitSettings
from pipesplit.core.units import convert_from_internal
from .segmentation_engine import SplitResult

logger = get_logger(__name__)


def _fmt_point(point) -> str:
    return "(" + ", ".join(f"{v:.1f}" for v in point) + ")"


def format_cut_list(result: SplitResult, project_name: str = "",
                    settings: Optional[SplitSettings] = None) -> str:
    """Tab separated cutting list, one row per segment in run order."""
    settings = settings or SplitSettings()
    unit = settings.length_unit

    def display(value):
        return convert_from_internal(value, unit)

    lines: List[str] = [f"Cut List for: {project_name}", ""]

    points = np.array([display(p) for s in result.segments for p in (s.start, s.end)])
    lines.append(f"Run Bounds ({unit})")
    for axis, label in enumerate("XYZ"):
        lines.append(f"\t{label}-min: {points[:, axis].min():.2f}\t"
                     f"{label}_max: {points[:, axis].max():.2f}")
    lines.append("")

    lines.append("Cutting order:")
    lines.append(f"Run '{result.original_id}' cuts")
    lines.append("")
    lines.append(f"Segment\tElement\tLength({unit})\tDiameter({unit})\tStart\tEnd")

    total = 0.0
    for i, segment in enumerate(result.segments, start=1):
        length = display(segment.length)
        total += length
        lines.append(f"{i}\t{segment.id}\t{length:.2f}\t{display(segment.diameter):.2f}\t"
                     f"{_fmt_point(display(segment.start))}\t{_fmt_point(display(segment.end))}")

    lines.append("")
    if result.fittings:
        gaps = [display(fitting.gap) for fitting in result.fittings]
        lines.append(f"\tUnions: {len(result.fittings)} (gap {gaps[0]:.2f} {unit} each)")
    else:
        lines.append("\tUnions: 0")
    lines.append(f"\tTotal Pipe Length: {total:.2f}")
    return "\n".join(lines) + "\n"


def write_cut_list(path, result: SplitResult, project_name: str = "",
                   settings: Optional[SplitSettings] = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_cut_list(result, project_name, settings), encoding="utf-8")
    logger.info(f"Cut list written to {path}")
    return path
