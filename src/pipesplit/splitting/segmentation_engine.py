"""Split an over-length pipe into standard lengths joined by unions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from pipesplit.core.logging_setup import get_logger
from pipesplit.core.split_settings import SplitSettings
from pipesplit.core.units import convert_from_internal
from pipesplit.errors import DeletionInconsistency
from pipesplit.model.elements import DistributionSystem, Fitting, LinearElement, ParameterName
from pipesplit.model.geometry import format_point
from .connector_graph import find_connected_to, find_connector
from .segment_planner import plan_split

logger = get_logger(__name__)

# Measured lengths are rounded before comparing with the maximum so that a
# run drawn at exactly the standard length survives the unit round trip.
LENGTH_DECIMALS = 6


@dataclass
class SplitResult:
    """Ordered outcome of splitting one run."""
    original_id: int
    segments: List[LinearElement] = field(default_factory=list)
    fittings: List[Fitting] = field(default_factory=list)
    deleted_ids: List[int] = field(default_factory=list)

    @property
    def depth(self) -> int:
        """Number of split steps performed."""
        return len(self.fittings)

    @property
    def was_split(self) -> bool:
        return bool(self.fittings)

    def __repr__(self):
        return (f"SplitResult(original={self.original_id}, "
                f"{len(self.segments)} segments, {len(self.fittings)} fittings)")


class SegmentationEngine:
    """Cut a pipe into a chain of segments no longer than the standard length.

    Every step cuts the first standard length off the remaining run, leaves
    half a union length open, joins both pieces with a union and deletes the
    pipe it cut. The run's outside connections end up on the first and last
    segments. All of it must run inside one document transaction.
    """

    def __init__(self, document, settings: Optional[SplitSettings] = None):
        self.document = document
        self.settings = settings or SplitSettings()

    def display_length(self, value: float) -> float:
        return round(convert_from_internal(value, self.settings.length_unit), LENGTH_DECIMALS)

    def split(self, segment: LinearElement, system: Optional[DistributionSystem],
              system_type_id: Optional[int], conduit_type_id: int) -> SplitResult:
        result = SplitResult(original_id=segment.id)
        logger.info(f"Splitting {segment!r} into segments of at most "
                    f"{self.settings.max_segment_length} {self.settings.length_unit}"
                    + (f" in {system!r}" if system is not None else ""))

        current = segment
        while True:
            remainder = self._split_once(current, system_type_id, conduit_type_id, result)
            if remainder is None:
                break
            current = remainder

        result.segments.append(current)
        logger.info(f"Split complete: {len(result.segments)} segment(s), "
                    f"{len(result.fittings)} union(s)")
        return result

    def _split_once(self, segment: LinearElement, system_type_id: Optional[int],
                    conduit_type_id: int, result: SplitResult) -> Optional[LinearElement]:
        """One step: returns the remainder pipe, or None when ``segment`` is short enough."""
        doc = self.document
        tolerance = doc.tolerance
        length = self.display_length(segment.get_parameter(ParameterName.LENGTH))
        if length <= self.settings.max_segment_length:
            return None

        start, end = segment.start, segment.end
        start_peer = find_connected_to(segment, start, tolerance)
        end_peer = find_connected_to(segment, end, tolerance)

        diameter_internal = segment.get_parameter(ParameterName.DIAMETER)
        diameter = self.display_length(diameter_internal)
        plan = plan_split(start, end, length, self.settings.max_segment_length,
                          diameter, self.settings)

        logger.coord(f"Pipe {segment.id}: length {length:.3f}, diameter {diameter:.1f}, "
                     f"split at {format_point(plan.split_point)}, next segment from "
                     f"{format_point(plan.post_fitting_point)} (gap {plan.gap:.3f})")

        level_id = segment.get_parameter(ParameterName.START_LEVEL)

        if start_peer is not None:
            first = doc.create_linear_element(conduit_type_id, level_id, plan.split_point,
                                              start_connector=start_peer,
                                              system_type_id=system_type_id)
        else:
            first = doc.create_linear_element(conduit_type_id, level_id, plan.split_point,
                                              start=start, system_type_id=system_type_id)

        second = doc.create_linear_element(conduit_type_id, level_id, end,
                                           start=plan.post_fitting_point,
                                           system_type_id=system_type_id)

        for target in (first, second):
            copy_diameter(segment, target)

        first_end = find_connector(first, plan.split_point, tolerance)
        second_start = find_connector(second, plan.post_fitting_point, tolerance)
        fitting = doc.new_union_fitting(first_end, second_start)

        if end_peer is not None:
            doc.connect(find_connector(second, end, tolerance), end_peer)

        deleted = doc.delete(segment.id)
        if segment.id not in deleted:
            raise DeletionInconsistency(segment.id, deleted)

        result.segments.append(first)
        result.fittings.append(fitting)
        result.deleted_ids.append(segment.id)
        logger.debug(f"Replaced pipe {segment.id} with {first.id} + union {fitting.id} + {second.id}")
        return second


def copy_diameter(source: LinearElement, target: LinearElement) -> None:
    """Diameter is the only parameter carried over to the new segments."""
    target.set_parameter(ParameterName.DIAMETER, source.get_parameter(ParameterName.DIAMETER))
