"""
Tests for circular azimuth utilities.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from marspano.utils.angles import (
    angular_difference,
    cluster_azimuths,
    nearest_positions,
    normalize_azimuth,
    sweep_coverage,
)


class TestNormalizeAzimuth:
    """Tests for wrapping azimuths into [0, 360)."""

    def test_negative_wraps(self):
        """Negative headings should wrap to the equivalent positive heading."""
        assert_allclose(normalize_azimuth([-10.0]), [350.0])

    def test_above_full_circle_wraps(self):
        """Headings past 360 should wrap around."""
        assert_allclose(normalize_azimuth([370.0, 720.0]), [10.0, 0.0])

    def test_in_range_unchanged(self):
        assert_allclose(normalize_azimuth([0.0, 45.5, 359.9]), [0.0, 45.5, 359.9])


class TestAngularDifference:
    """Tests for shortest angular distance."""

    def test_across_north(self):
        """Difference across 0/360 should be the short way round."""
        assert angular_difference(355.0, 5.0) == pytest.approx(10.0)

    def test_opposite(self):
        assert angular_difference(0.0, 180.0) == pytest.approx(180.0)


class TestClusterAzimuths:
    """Tests for collapsing bracketed exposures into pointing positions."""

    def test_bracketed_exposures_collapse(self):
        """Repeated readings at one position should count once."""
        positions = cluster_azimuths([45.0, 45.0, 45.2, 90.0, 90.1, 90.0], 1.0)

        assert positions.size == 2
        assert_allclose(positions, [45.0667, 90.0333], atol=1e-3)

    def test_distinct_positions_kept(self):
        """Readings further apart than the tolerance stay separate."""
        positions = cluster_azimuths([45.0, 55.0, 65.0, 75.0, 85.0], 1.0)

        assert positions.size == 5

    def test_slow_sweep_does_not_chain(self):
        """Steps below the tolerance must not merge a whole sweep into one position."""
        positions = cluster_azimuths([0.0, 0.6, 1.2, 1.8, 2.4], 1.0)

        assert positions.size == 3

    def test_cluster_across_north_merged(self):
        """Readings either side of 0/360 belong to one position."""
        positions = cluster_azimuths([359.6, 0.2, 90.0], 1.0)

        assert positions.size == 2
        assert_allclose(sorted(positions), [90.0, 359.9], atol=1e-6)

    def test_tolerance_is_configurable(self):
        """A wider tolerance should merge more readings."""
        azimuths = [10.0, 12.0, 14.0, 40.0]

        assert cluster_azimuths(azimuths, 1.0).size == 4
        assert cluster_azimuths(azimuths, 5.0).size == 2

    def test_empty_input(self):
        assert cluster_azimuths([], 1.0).size == 0


class TestNearestPositions:
    """Tests for mapping readings onto position centres."""

    def test_order_preserved(self):
        centres = np.array([10.0, 50.0, 90.0])

        assert_allclose(nearest_positions([90.2, 9.8, 50.1, 10.3], centres), [90.0, 10.0, 50.0, 10.0])

    def test_reading_across_north(self):
        """0.2 belongs to the position at 359.9, not to a distant one."""
        assert_allclose(nearest_positions([0.2], [90.0, 359.9]), [359.9])

    def test_empty(self):
        assert nearest_positions([], [10.0]).size == 0


class TestSweepCoverage:
    """Tests for angular coverage of a sweep in acquisition order."""

    def test_simple_sweep(self):
        """A sweep that does not cross north spans max - min."""
        assert sweep_coverage([45.0, 55.0, 65.0, 75.0, 85.0]) == pytest.approx(40.0)

    def test_sweep_across_north(self):
        """A sweep rotating through north should not report a near-full circle."""
        assert sweep_coverage([340.0, 350.0, 0.0, 10.0, 20.0]) == pytest.approx(40.0)

    def test_counter_clockwise_across_north(self):
        assert sweep_coverage([20.0, 10.0, 0.0, 350.0, 340.0]) == pytest.approx(40.0)

    def test_large_interior_gap_not_crossing_north(self):
        """A long slew inside the sweep is not taken the short way across north."""
        assert sweep_coverage([10.0, 20.0, 30.0, 40.0, 250.0]) == pytest.approx(240.0)

    def test_slew_limit_is_configurable(self):
        """With a generous step limit the same slew is read as crossing north."""
        assert sweep_coverage([10.0, 20.0, 30.0, 40.0, 250.0], max_step_deg=170.0) == pytest.approx(150.0)

    def test_near_full_circle(self):
        """Twelve positions 30 degrees apart cover 330 degrees."""
        assert sweep_coverage(np.arange(0.0, 360.0, 30.0)) == pytest.approx(330.0)

    def test_full_circle_started_off_north(self):
        """A full sweep starting just west of north still covers 330 degrees."""
        path = [359.9] + [float(a) for a in np.arange(30.0, 360.0, 30.0)]

        assert sweep_coverage(path) == pytest.approx(330.1)

    def test_second_tier_returning_across_north(self):
        """Two tiers over the same arc cover that arc once."""
        tier = [340.0, 350.0, 0.0, 10.0]

        assert sweep_coverage(tier + tier) == pytest.approx(30.0)

    def test_repeated_position(self):
        """Bracketed exposures at one position add nothing."""
        assert sweep_coverage([45.0, 45.0, 45.0, 85.0, 85.0]) == pytest.approx(40.0)

    def test_more_than_full_rotation_capped(self):
        path = np.arange(0.0, 450.0, 30.0) % 360.0

        assert sweep_coverage(path) == pytest.approx(360.0)

    def test_single_position(self):
        assert sweep_coverage([123.0]) == 0.0
