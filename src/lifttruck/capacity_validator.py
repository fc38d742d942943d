"""
Battery and charger sizing checks for the lift-truck fleet.

Both checks run once when a fleet is initialized. They compare the
configured battery and charger counts against what the weekly schedule
provably needs and, when the configuration falls short, expand the pool
and log the remediation. Neither check ever fails.

Battery sizing:
    For each pair of consecutive distinct shifts (s1, s2) in grid order,
    the fleet needs at least s1.trucks + s2.trucks batteries, and enough
    stored energy to run both shifts back to back without recharging:

        ceil((s1.trucks * s1.duration + s2.trucks * s2.duration)
             * truck_kw / battery_capacity)

Charger sizing:
    The chargers must replace, within 24 hours, the worst-case truck energy
    used in any 24-hour window. Windows start at each of the first
    168 - 24 grid indices; the tail start points are not checked and
    windows never wrap past the end of the week.
"""

import logging
import math
from typing import Optional

import numpy as np

from .data_structures import Shift, SizingResult
from .schedule import ScheduleGrid
from .utils import HOURS_DAY, HOURS_WEEK

logger = logging.getLogger(__name__)


class CapacityValidator:
    """
    Sizing checks for a fleet's battery and charger complement.

    Attributes:
        grid: Weekly shift schedule
        truck_kw: Mean power drawn by one working truck (kW)
        name: Owner name used in log messages

    Examples:
        >>> grid = ScheduleGrid.from_tokens(None)
        >>> validator = CapacityValidator(grid, truck_kw=4.0)
        >>> validator.validate_batteries(50.0, 15).adjusted
        15
    """

    def __init__(self, grid: ScheduleGrid, truck_kw: float, name: Optional[str] = None):
        self.grid = grid
        self.truck_kw = truck_kw
        self.name = name or grid.name

    def minimum_batteries(self, battery_capacity: float) -> int:
        """
        Minimum battery count needed by the schedule.

        Args:
            battery_capacity: Size of one battery pack (kWh)

        Returns:
            Largest lower bound over all consecutive distinct shift pairs
        """
        min_batteries = 0
        s1: Optional[Shift] = None
        s2: Optional[Shift] = None

        for shift in self.grid:
            if shift is None or shift == s2:
                continue
            s1, s2 = s2, shift
            if s1 is None:
                continue

            min_batteries = max(min_batteries, s1.trucks + s2.trucks)
            energy = (s1.trucks * s1.duration + s2.trucks * s2.duration) * self.truck_kw
            min_batteries = max(min_batteries, math.ceil(energy / battery_capacity))

        return min_batteries

    def validate_batteries(self, battery_capacity: float, n_batteries: int) -> SizingResult:
        """
        Check the battery count and add batteries if it is too small.

        Args:
            battery_capacity: Size of one battery pack (kWh)
            n_batteries: Configured battery count

        Returns:
            SizingResult with the adjusted battery count
        """
        required = self.minimum_batteries(battery_capacity)
        result = SizingResult(
            required=required,
            configured=n_batteries,
            adjusted=max(n_batteries, required)
        )

        if result.remediated:
            logger.error(f"Not enough batteries ({n_batteries}) for {self.name}")
            logger.warning(f"Adding {result.added} batteries for {self.name}")
        else:
            logger.debug(
                f"{self.name}: {n_batteries} batteries cover the schedule "
                f"(need {required})"
            )

        return result

    def window_energy(self) -> np.ndarray:
        """
        Truck energy used in each 24-hour window of the week.

        Returns:
            Array of length 168 - 24; element i is the energy (kWh) used in
            grid hours [i, i + 24)
        """
        hourly = np.asarray(self.grid.truck_counts(), dtype=float) * self.truck_kw
        cumulative = np.concatenate(([0.0], np.cumsum(hourly)))
        starts = np.arange(HOURS_WEEK - HOURS_DAY)
        return cumulative[starts + HOURS_DAY] - cumulative[starts]

    def maximum_daily_energy(self) -> float:
        """Worst-case truck energy over any checked 24-hour window (kWh)."""
        windows = self.window_energy()
        return float(windows.max()) if windows.size else 0.0

    def validate_chargers(self, n_chargers: int, max_charge_kw: float) -> SizingResult:
        """
        Check the charger count and add chargers if it is too small.

        Args:
            n_chargers: Configured charger count
            max_charge_kw: Maximum charge rate of one charger (kW)

        Returns:
            SizingResult with the adjusted charger count
        """
        max_needed = self.maximum_daily_energy()
        daily_per_charger = max_charge_kw * HOURS_DAY
        charge_energy = n_chargers * daily_per_charger

        required = math.ceil(max_needed / daily_per_charger)
        add = 0
        if max_needed > charge_energy:
            add = math.ceil((max_needed - charge_energy) / daily_per_charger)
            logger.error(
                f"Insufficient charging capacity for {self.name}: have "
                f"{charge_energy:.1f}kWh, need {max_needed:.1f}kWh. "
                f"Adding {add} chargers."
            )

        return SizingResult(
            required=required,
            configured=n_chargers,
            adjusted=n_chargers + add,
            max_needed_kwh=max_needed
        )


def validate_batteries(
    grid: ScheduleGrid,
    truck_kw: float,
    battery_capacity: float,
    n_batteries: int
) -> int:
    """Convenience wrapper returning the adjusted battery count."""
    return CapacityValidator(grid, truck_kw).validate_batteries(
        battery_capacity, n_batteries
    ).adjusted


def validate_chargers(
    grid: ScheduleGrid,
    truck_kw: float,
    n_chargers: int,
    max_charge_kw: float
) -> int:
    """Convenience wrapper returning the adjusted charger count."""
    return CapacityValidator(grid, truck_kw).validate_chargers(
        n_chargers, max_charge_kw
    ).adjusted
