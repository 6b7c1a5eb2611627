"""Validation tools for comparing a finished split with the run it replaced."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from pipesplit.core.logging_setup import get_logger
from pipesplit.core.split_settings import SplitSettings
from pipesplit.core.units import convert_from_internal
from pipesplit.model.elements import LinearElement
from .connector_graph import find_connected_to
from .segmentation_engine import SplitResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class RunSnapshot:
    """What a run looked like before it was split, in display units."""
    element_id: int
    length: float
    diameter: float
    start: np.ndarray
    end: np.ndarray
    start_peer: Optional[Tuple[int, int]]
    end_peer: Optional[Tuple[int, int]]


@dataclass
class ValidationReport:
    """Report from split validation."""
    original_length: float
    reconstructed_length: float
    length_error: float
    longest_segment: float
    per_segment: List[Dict[str, Any]]
    passed: bool
    issues: List[str]

    def __repr__(self):
        status = "PASSED" if self.passed else "FAILED"
        return (f"ValidationReport({status}: "
                f"length_error={self.length_error:.4f}, "
                f"longest={self.longest_segment:.3f}, "
                f"{len(self.issues)} issues)")


class SplitValidator:
    """Check a SplitResult against the original run."""

    def __init__(self, document, settings: Optional[SplitSettings] = None,
                 length_tolerance: float = 0.01):
        """Initialize validator.

        Args:
            document: Host document the split ran in
            settings: Split settings (maximum length and unit)
            length_tolerance: Acceptable length deviation in display units
        """
        self.document = document
        self.settings = settings or SplitSettings()
        self.length_tolerance = length_tolerance

    def _display(self, value):
        return convert_from_internal(value, self.settings.length_unit)

    def capture(self, segment: LinearElement) -> RunSnapshot:
        """Record the run before splitting it."""
        tolerance = self.document.tolerance
        start_peer = find_connected_to(segment, segment.start, tolerance)
        end_peer = find_connected_to(segment, segment.end, tolerance)
        return RunSnapshot(
            element_id=segment.id,
            length=self._display(segment.length),
            diameter=self._display(segment.diameter),
            start=self._display(segment.start),
            end=self._display(segment.end),
            start_peer=start_peer.key if start_peer is not None else None,
            end_peer=end_peer.key if end_peer is not None else None,
        )

    def validate(self, snapshot: RunSnapshot, result: SplitResult) -> ValidationReport:
        logger.info(f"Validating split of element {snapshot.element_id}...")
        issues = []
        per_segment = []
        max_length = self.settings.max_segment_length

        for i, segment in enumerate(result.segments):
            length = self._display(segment.length)
            diameter = self._display(segment.diameter)
            per_segment.append({
                'index': i + 1,
                'element_id': segment.id,
                'length': length,
                'diameter': diameter,
                'start': self._display(segment.start).tolist(),
                'end': self._display(segment.end).tolist(),
            })
            if length > max_length + self.length_tolerance:
                issues.append(f"Segment {segment.id} is {length:.3f} long, over {max_length}")
            if abs(diameter - snapshot.diameter) > self.length_tolerance:
                issues.append(f"Segment {segment.id} diameter {diameter:.3f} "
                              f"differs from original {snapshot.diameter:.3f}")

        gaps = sum(self._display(fitting.gap) for fitting in result.fittings)
        reconstructed = sum(entry['length'] for entry in per_segment) + gaps
        length_error = abs(reconstructed - snapshot.length)
        if length_error > self.length_tolerance:
            issues.append(f"Segments plus gaps total {reconstructed:.3f}, "
                          f"original was {snapshot.length:.3f}")

        if len(result.fittings) != len(result.segments) - 1:
            issues.append(f"{len(result.segments)} segments need {len(result.segments) - 1} "
                          f"unions, found {len(result.fittings)}")

        issues.extend(self._check_chain(result))
        issues.extend(self._check_extremities(snapshot, result))

        if result.was_split and snapshot.element_id in self.document:
            issues.append(f"Original element {snapshot.element_id} still in document")

        passed = not issues
        longest = max((entry['length'] for entry in per_segment), default=0.0)

        logger.info(f"  Segments: {len(per_segment)}, unions: {len(result.fittings)}")
        logger.info(f"  Length error: {length_error:.4f} {self.settings.length_unit}")
        logger.info(f"  Status: {'PASSED' if passed else 'FAILED'}")
        for issue in issues:
            logger.warning(f"  {issue}")

        return ValidationReport(
            original_length=snapshot.length,
            reconstructed_length=reconstructed,
            length_error=length_error,
            longest_segment=longest,
            per_segment=per_segment,
            passed=passed,
            issues=issues
        )

    def _check_chain(self, result: SplitResult) -> List[str]:
        issues = []
        for i, fitting in enumerate(result.fittings):
            before = result.segments[i].connectors[1]
            after = result.segments[i + 1].connectors[0]
            near, far = fitting.connectors
            if not (near.is_connected_to(before) and far.is_connected_to(after)):
                issues.append(f"Union {fitting.id} does not join segments "
                              f"{result.segments[i].id} and {result.segments[i + 1].id}")
        return issues

    def _check_extremities(self, snapshot: RunSnapshot, result: SplitResult) -> List[str]:
        issues = []
        tolerance = self.document.tolerance
        first, last = result.segments[0], result.segments[-1]
        checks = (
            ("start", snapshot.start_peer, find_connected_to(first, first.start, tolerance)),
            ("end", snapshot.end_peer, find_connected_to(last, last.end, tolerance)),
        )
        for side, expected, actual in checks:
            actual_key = actual.key if actual is not None else None
            if expected != actual_key:
                issues.append(f"Run {side} was connected to {expected}, now {actual_key}")
        return issues
