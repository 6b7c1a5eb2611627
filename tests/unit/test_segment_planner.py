# tests/unit/test_segment_planner.py
"""Split geometry: fractions, points and predicted segment lengths"""
import numpy as np
import pytest

from pipesplit.core.split_settings import SplitSettings
from pipesplit.errors import SegmentPlanningError
from pipesplit.splitting.segment_planner import (
    expected_segment_lengths,
    fitting_length,
    plan_split,
)


class TestFittingLength:

    def test_diameter_150(self):
        assert fitting_length(150.0) == pytest.approx(179.4)

    def test_zero_diameter_is_offset_only(self):
        assert fitting_length(0.0) == pytest.approx(14.4)

    def test_custom_coefficients(self):
        settings = SplitSettings(fitting_length_factor=1.0, fitting_length_offset=10.0)
        assert fitting_length(100.0, settings) == pytest.approx(110.0)


class TestPlanSplit:

    def test_short_run_needs_no_split(self):
        assert plan_split([0, 0, 0], [5000, 0, 0], 5000.0, 6000.0, 150.0) is None

    def test_run_at_exactly_max_length_needs_no_split(self):
        assert plan_split([0, 0, 0], [6000, 0, 0], 6000.0, 6000.0, 150.0) is None

    def test_scenario_6500(self):
        plan = plan_split([0, 0, 0], [6500, 0, 0], 6500.0, 6000.0, 150.0)

        assert plan.split_fraction == pytest.approx(6000.0 / 6500.0)
        assert plan.post_fitting_fraction == pytest.approx(6089.7 / 6500.0)
        np.testing.assert_allclose(plan.split_point, [6000.0, 0.0, 0.0])
        np.testing.assert_allclose(plan.post_fitting_point, [6089.7, 0.0, 0.0])
        assert plan.fitting_length == pytest.approx(179.4)
        assert plan.gap == pytest.approx(89.7)

    def test_points_follow_the_run_direction(self):
        start = np.array([100.0, 200.0, 300.0])
        direction = np.array([1.0, 2.0, 2.0]) / 3.0
        end = start + direction * 9000.0

        plan = plan_split(start, end, 9000.0, 6000.0, 100.0)

        np.testing.assert_allclose(plan.split_point, start + direction * 6000.0)
        gap = np.linalg.norm(plan.post_fitting_point - plan.split_point)
        assert gap == pytest.approx(fitting_length(100.0) / 2.0)

    def test_points_are_unit_independent(self):
        # Fractions come from the lengths; the points may be in any unit
        start, end = np.zeros(3), np.array([6500.0 / 304.8, 0.0, 0.0])
        plan = plan_split(start, end, 6500.0, 6000.0, 150.0)
        assert plan.split_point[0] * 304.8 == pytest.approx(6000.0)

    @pytest.mark.parametrize("length", [6000.5, 6050.0, 6089.6])
    def test_gap_reaching_past_end_is_rejected(self, length):
        # Just over the maximum but within half a union of it: nothing left to cut
        with pytest.raises(SegmentPlanningError, match="fitting gap"):
            plan_split([0, 0, 0], [length, 0, 0], length, 6000.0, 150.0)

    def test_just_past_the_gap_splits(self):
        plan = plan_split([0, 0, 0], [6090.0, 0, 0], 6090.0, 6000.0, 150.0)
        assert plan.post_fitting_point[0] < 6090.0

    @pytest.mark.parametrize("max_length", [0.0, -1.0])
    def test_non_positive_max_length(self, max_length):
        with pytest.raises(ValueError, match="max_length"):
            plan_split([0, 0, 0], [1, 0, 0], 1.0, max_length, 150.0)

    def test_negative_diameter(self):
        with pytest.raises(ValueError, match="diameter"):
            plan_split([0, 0, 0], [7000, 0, 0], 7000.0, 6000.0, -1.0)


class TestExpectedSegmentLengths:

    def test_single_segment(self):
        assert expected_segment_lengths(4000.0, 6000.0, 150.0) == [4000.0]

    def test_scenario_20000(self):
        lengths = expected_segment_lengths(20000.0, 6000.0, 150.0)

        assert lengths[:3] == [6000.0, 6000.0, 6000.0]
        assert lengths[3] == pytest.approx(20000.0 - 3 * 6089.7)
        assert sum(lengths) + 3 * 89.7 == pytest.approx(20000.0)

    def test_every_segment_within_max(self):
        for length in (6001.0 + 89.7, 12345.0, 60000.0):
            lengths = expected_segment_lengths(length, 6000.0, 150.0)
            assert all(segment <= 6000.0 for segment in lengths)
            gaps = (len(lengths) - 1) * fitting_length(150.0) / 2.0
            assert sum(lengths) + gaps == pytest.approx(length)
