"""Split geometry for one over-length straight run.

Lengths (run length, maximum, diameter, fitting length) share one unit,
millimetres by default. Points can be in any unit since only the split
fractions are applied to them.

Only half the union length is left open between the two new segments.
The other half is assumed to overlap the pipe ends; keep it that way until
the fitting dimensions are confirmed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from pipesplit.core.split_settings import SplitSettings
from pipesplit.errors import SegmentPlanningError
from pipesplit.model.geometry import PointLike, interpolate


@dataclass(frozen=True)
class SplitPlan:
    split_point: np.ndarray
    post_fitting_point: np.ndarray
    split_fraction: float
    post_fitting_fraction: float
    fitting_length: float

    @property
    def gap(self) -> float:
        return self.fitting_length / 2.0


def fitting_length(diameter: float, settings: Optional[SplitSettings] = None) -> float:
    settings = settings or SplitSettings()
    return settings.fitting_length(diameter)


def plan_split(start: PointLike, end: PointLike, length: float, max_length: float,
               diameter: float, settings: Optional[SplitSettings] = None
               ) -> Optional[SplitPlan]:
    """Where to cut a run of ``length`` so the first piece is ``max_length``.

    Returns None when the run is already short enough.

    A run only just over the maximum (max_length < length <= max_length
    + fitting/2) cannot be split: after a full segment and the fitting gap
    nothing is left for the second piece. That is a hard limit of the
    method, so the caller's transaction rolls back and the run is left for
    manual cutting.

    Raises:
        ValueError: non-positive max_length or negative diameter
        SegmentPlanningError: the fitting gap would reach past the run's end
    """
    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")
    if diameter < 0:
        raise ValueError(f"diameter must not be negative, got {diameter}")

    if length <= max_length:
        return None

    fitting = fitting_length(diameter, settings)
    split_fraction = max_length / length
    post_fitting_fraction = (max_length + fitting / 2.0) / length

    if post_fitting_fraction >= 1.0:
        raise SegmentPlanningError(
            f"Run of {length:.1f} leaves no pipe after a {max_length:.1f} segment "
            f"and a {fitting / 2.0:.1f} fitting gap"
        )

    return SplitPlan(
        split_point=interpolate(start, end, split_fraction),
        post_fitting_point=interpolate(start, end, post_fitting_fraction),
        split_fraction=split_fraction,
        post_fitting_fraction=post_fitting_fraction,
        fitting_length=fitting,
    )


def expected_segment_lengths(length: float, max_length: float, diameter: float,
                             settings: Optional[SplitSettings] = None) -> List[float]:
    """Segment lengths a split of ``length`` will produce, in order."""
    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")
    gap = fitting_length(diameter, settings) / 2.0
    lengths = []
    remaining = length
    while remaining > max_length:
        if max_length + gap >= remaining:
            raise SegmentPlanningError(
                f"Run of {remaining:.1f} leaves no pipe after a {max_length:.1f} segment "
                f"and a {gap:.1f} fitting gap"
            )
        lengths.append(max_length)
        remaining -= max_length + gap
    lengths.append(remaining)
    return lengths
