"""
Tests for battery and charger sizing.

This module tests:
- Minimum battery count from consecutive shift pairs
- Charger sizing over 24-hour windows
- Auto-remediation and its logging
- Idempotence and monotonicity of both checks
"""

import logging

import pytest

from lifttruck import (
    CapacityValidator,
    ScheduleGrid,
    validate_batteries,
    validate_chargers,
)


class TestBatterySizing:
    """Tests for the battery sizing check."""

    def setup_method(self):
        self.grid = ScheduleGrid.from_tokens(None)
        self.validator = CapacityValidator(self.grid, truck_kw=4.0)

    def test_default_schedule_requirement(self):
        # 8-truck day shift followed by the 6-truck evening shift
        assert self.validator.minimum_batteries(50.0) == 14

    def test_default_configuration_not_remediated(self):
        result = self.validator.validate_batteries(50.0, 15)
        assert result.required == 14
        assert result.adjusted == 15
        assert not result.remediated

    def test_remediation_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = self.validator.validate_batteries(50.0, 10)
        assert result.adjusted == 14
        assert result.added == 4
        levels = {r.levelno for r in caplog.records}
        assert logging.ERROR in levels
        assert logging.WARNING in levels

    def test_idempotent(self):
        adjusted = validate_batteries(self.grid, 4.0, 50.0, 10)
        assert validate_batteries(self.grid, 4.0, 50.0, adjusted) == adjusted

    def test_energy_bound_dominates(self):
        """Long heavy shifts need more packs than trucks."""
        grid = ScheduleGrid.from_tokens([
            "block", "2", "shift", "0", "12", "10", "shift", "12", "12", "10",
        ])
        validator = CapacityValidator(grid, truck_kw=6.0)
        # (10*12 + 10*12) * 6 / 50 = 28.8
        assert validator.minimum_batteries(50.0) == 29

    def test_single_shift_has_no_pair(self):
        grid = ScheduleGrid.from_tokens(["block", "2", "shift", "8", "8", "5"])
        assert CapacityValidator(grid, 4.0).minimum_batteries(50.0) == 0


class TestChargerSizing:
    """Tests for the charger sizing check."""

    def setup_method(self):
        self.grid = ScheduleGrid.from_tokens(None)
        self.validator = CapacityValidator(self.grid, truck_kw=4.0)

    def test_window_count(self):
        assert len(self.validator.window_energy()) == 168 - 24

    def test_default_daily_energy(self):
        # (8 + 6 + 3) trucks * 8h * 4kW
        assert self.validator.maximum_daily_energy() == pytest.approx(544.0)

    def test_default_configuration_not_remediated(self):
        result = self.validator.validate_chargers(8, 6.0)
        assert result.required == 4
        assert result.adjusted == 8
        assert result.max_needed_kwh == pytest.approx(544.0)
        assert not result.remediated

    def test_remediation(self, caplog):
        with caplog.at_level(logging.ERROR):
            result = self.validator.validate_chargers(2, 6.0)
        # supply 288kWh, need 544kWh: ceil(256 / 144) = 2 more
        assert result.adjusted == 4
        assert any("Insufficient charging capacity" in r.message for r in caplog.records)

    def test_idempotent(self):
        adjusted = validate_chargers(self.grid, 4.0, 1, 6.0)
        assert validate_chargers(self.grid, 4.0, adjusted, 6.0) == adjusted

    def test_monotonic_in_truck_count(self):
        heavier = ScheduleGrid.from_tokens([
            "block", "2", "3", "4", "5", "6",
            "shift", "8", "8", "8",
            "shift", "16", "8", "10",
            "shift", "0", "8", "3",
        ])
        heavy_validator = CapacityValidator(heavier, truck_kw=4.0)
        assert heavy_validator.maximum_daily_energy() == pytest.approx(672.0)
        assert (heavy_validator.validate_chargers(1, 6.0).adjusted
                >= self.validator.validate_chargers(1, 6.0).adjusted)

    def test_last_hour_of_week_not_checked(self):
        """Windows start in the first 144 hours and never wrap."""
        grid = ScheduleGrid.from_tokens(["block", "7", "shift", "23", "1", "5"])
        validator = CapacityValidator(grid, truck_kw=4.0)
        assert validator.maximum_daily_energy() == 0.0
        assert validator.validate_chargers(0, 6.0).adjusted == 0
