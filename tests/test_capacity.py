"""Tests for the congestion capacity model."""

import math

import numpy as np
import pytest

from tiersim.model.capacity import capacity_multiplier, queue_entry_rate


class TestCapacityMultiplier:
    """Tests for capacity_multiplier."""

    def test_zero_congestion_is_full_capacity(self):
        """No congestion means every desired admission is absorbed."""
        assert capacity_multiplier(0.0, 1.0) == 1.0
        assert capacity_multiplier(0.0, 2.0) == 1.0

    def test_closed_form(self):
        """Multiplier is exp(-2 * congestion * sensitivity)."""
        assert capacity_multiplier(0.5, 1.0) == pytest.approx(math.exp(-1.0))
        assert capacity_multiplier(0.8, 1.3) == pytest.approx(math.exp(-2.08))

    def test_strictly_decreasing_in_congestion(self):
        """Capacity falls as congestion rises for positive sensitivity."""
        values = [capacity_multiplier(c, 1.0) for c in np.linspace(0.0, 1.0, 21)]
        assert all(a > b for a, b in zip(values, values[1:]))

    def test_zero_sensitivity_ignores_congestion(self):
        """A disease insensitive to competition keeps full capacity."""
        assert capacity_multiplier(1.0, 0.0) == 1.0

    def test_stays_in_unit_interval(self):
        """Multiplier lies in (0, 1]."""
        for c in np.linspace(0.0, 1.0, 11):
            assert 0.0 < capacity_multiplier(c, 2.0) <= 1.0

    @pytest.mark.parametrize("congestion", [-0.1, 1.01, 5.0])
    def test_congestion_out_of_range_raises(self, congestion):
        """Congestion outside [0, 1] is rejected."""
        with pytest.raises(ValueError):
            capacity_multiplier(congestion, 1.0)

    def test_negative_sensitivity_raises(self):
        with pytest.raises(ValueError):
            capacity_multiplier(0.5, -1.0)


class TestQueueEntryRate:
    """Tests for queue_entry_rate."""

    def test_midpoint_is_one_half(self):
        """Effective congestion of 0.5 gives a 50% chance of queueing."""
        assert queue_entry_rate(0.5, 1.0) == pytest.approx(0.5)
        assert queue_entry_rate(0.25, 2.0) == pytest.approx(0.5)

    def test_floor_at_zero_congestion(self):
        """Sigmoid floor at zero congestion is 1 / (1 + e)."""
        assert queue_entry_rate(0.0, 1.0) == pytest.approx(1.0 / (1.0 + math.e))

    def test_increasing_in_congestion(self):
        """Queue entry rises with congestion."""
        values = [queue_entry_rate(c, 1.0) for c in np.linspace(0.0, 1.0, 21)]
        assert all(a < b for a, b in zip(values, values[1:]))

    def test_open_unit_interval(self):
        for c in np.linspace(0.0, 1.0, 11):
            assert 0.0 < queue_entry_rate(c, 1.5) < 1.0

    def test_invalid_congestion_raises(self):
        with pytest.raises(ValueError):
            queue_entry_rate(1.5, 1.0)
