"""Pipe splitting core.

System resolution, split geometry, the segmentation engine and the tools
that check and report a finished split.
"""

from .connector_graph import ConnectorIndex, auto_connect, find_connected_to, find_connector
from .segment_planner import SplitPlan, expected_segment_lengths, fitting_length, plan_split
from .segmentation_engine import SegmentationEngine, SplitResult
from .split_validator import RunSnapshot, SplitValidator, ValidationReport
from .system_resolver import ElementCategory, SystemResolver, classify, connectors_of

__all__ = [
    'ConnectorIndex',
    'auto_connect',
    'find_connected_to',
    'find_connector',
    'SplitPlan',
    'expected_segment_lengths',
    'fitting_length',
    'plan_split',
    'SegmentationEngine',
    'SplitResult',
    'RunSnapshot',
    'SplitValidator',
    'ValidationReport',
    'ElementCategory',
    'SystemResolver',
    'classify',
    'connectors_of',
]
