"""
Data structures for the lift-truck fleet energy model.

This module defines the value types shared by the schedule, the sizing
validators, the energy-needs projection and the per-step model: shifts,
projected energy segments, the pooled battery state, configuration and
per-step records.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .tariff import TariffSubscription


@dataclass(frozen=True)
class Shift:
    """
    One recurring daily block of truck activity.

    A single Shift instance is referenced from every grid cell it covers,
    across all days of the block that declared it.

    Attributes:
        start: Start hour of day (0-23)
        duration: Length in hours (1-24)
        trucks: Number of trucks working during the shift
    """
    start: int
    duration: int
    trucks: int

    def __repr__(self) -> str:
        return f"Shift({self.start},{self.duration},{self.trucks})"


@dataclass
class ShiftEnergy:
    """
    One segment of a forward-looking energy plan.

    A segment covers a run of hours belonging to one shift (or to an idle
    period) and ends where the next shift or idle period begins.

    Attributes:
        end_index: Grid index where the next shift or idle period begins
        duration: Hours remaining in this segment
        next_shift: Shift that begins at end_index (None when idle)
        active_shift: Shift working during this segment (None when idle)
        energy_needed: Energy the next shift will consume (kWh)
        energy_required: Energy the charging pool must hold when this
            segment ends: energy_needed plus any shortage carried back
            from later segments (kWh)
        max_surplus: Charging headroom in this segment after meeting needs (kWh)
    """
    end_index: int
    duration: int
    next_shift: Optional[Shift] = None
    active_shift: Optional[Shift] = None
    energy_needed: float = 0.0
    energy_required: float = 0.0
    max_surplus: float = 0.0

    def tick(self) -> None:
        """One hour of this segment has passed."""
        self.duration -= 1

    def add_surplus(self, surplus: float) -> None:
        self.max_surplus += surplus

    def to_dict(self) -> Dict:
        return {
            'end_index': self.end_index,
            'duration': self.duration,
            'next_shift': repr(self.next_shift) if self.next_shift else None,
            'energy_needed': self.energy_needed,
            'energy_required': self.energy_required,
            'max_surplus': self.max_surplus,
        }


@dataclass
class FleetState:
    """
    Pooled battery state of the fleet.

    Attributes:
        capacity_in_use: Nameplate capacity of batteries in trucks (kWh)
        energy_in_use: Energy remaining in the in-truck batteries (kWh)
        energy_charging: Energy remaining in all other batteries (kWh).
            May go negative when trucks borrow more than is available.
    """
    capacity_in_use: float = 0.0
    energy_in_use: float = 0.0
    energy_charging: float = 0.0

    @property
    def total_energy(self) -> float:
        """Energy held by all batteries (kWh)."""
        return self.energy_in_use + self.energy_charging

    def to_dict(self) -> Dict[str, float]:
        """Bootstrap form of the state."""
        return {
            'capacity_in_use': self.capacity_in_use,
            'energy_in_use': self.energy_in_use,
            'energy_charging': self.energy_charging,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> 'FleetState':
        return cls(
            capacity_in_use=float(data.get('capacity_in_use', 0.0)),
            energy_in_use=float(data.get('energy_in_use', 0.0)),
            energy_charging=float(data.get('energy_charging', 0.0)),
        )

    def __repr__(self) -> str:
        return (f"FleetState(capacity={self.capacity_in_use:.1f}kWh, "
                f"in_use={self.energy_in_use:.1f}kWh, "
                f"charging={self.energy_charging:.1f}kWh)")


@dataclass
class LiftTruckConfig:
    """
    Configuration for one lift-truck fleet.

    Attributes:
        name: Instance name, used in log messages
        truck_kw: Mean power drawn by one working truck (kW)
        truck_std: Standard deviation of fleet power usage (kW)
        battery_capacity: Size of one battery pack (kWh)
        n_batteries: Total number of battery packs
        n_chargers: Number of battery chargers
        max_charge_kw: Maximum charge rate of one battery pack (kW)
        charge_efficiency: Ratio of battery energy to charge energy
        planning_horizon: Projection horizon in hours, should be at least 48
        shift_data: Shift declaration tokens, None for the default schedule
        enable_logging: Whether to configure INFO logging on construction
    """
    name: str = "lift-trucks"
    truck_kw: float = 4.0
    truck_std: float = 0.8
    battery_capacity: float = 50.0
    n_batteries: int = 15
    n_chargers: int = 8
    max_charge_kw: float = 6.0
    charge_efficiency: float = 0.9
    planning_horizon: int = 60
    shift_data: Optional[List[str]] = None
    enable_logging: bool = False

    def validate(self) -> None:
        """Validate configuration parameters."""
        if self.truck_kw < 0:
            raise ValueError("truck_kw must be non-negative")
        if self.truck_std < 0:
            raise ValueError("truck_std must be non-negative")
        if self.battery_capacity <= 0:
            raise ValueError("battery_capacity must be positive")
        if self.n_batteries < 0:
            raise ValueError("n_batteries must be non-negative")
        if self.n_chargers < 0:
            raise ValueError("n_chargers must be non-negative")
        if self.max_charge_kw <= 0:
            raise ValueError("max_charge_kw must be positive")
        if not 0 < self.charge_efficiency <= 1:
            raise ValueError("charge_efficiency must be between 0 and 1")
        if self.planning_horizon < 1:
            raise ValueError("planning_horizon must be at least 1")


@dataclass
class SizingResult:
    """
    Outcome of a battery or charger sizing check.

    Attributes:
        required: Minimum count the schedule needs
        configured: Count before the check
        adjusted: Count after remediation
        max_needed_kwh: Worst-case 24-hour truck energy (charger check only)
    """
    required: int
    configured: int
    adjusted: int
    max_needed_kwh: float = 0.0

    @property
    def added(self) -> int:
        return self.adjusted - self.configured

    @property
    def remediated(self) -> bool:
        return self.adjusted > self.configured


@dataclass
class StepInfo:
    """
    Per-step context supplied by the host simulation.

    Attributes:
        time: Start instant of the current time slot
        subscription: Tariff subscription of the fleet's customer
        kwh: Energy reported by models during this step (kWh)
    """
    time: datetime
    subscription: TariffSubscription
    kwh: float = 0.0

    def add_kwh(self, kwh: float) -> None:
        self.kwh += kwh


@dataclass
class StepRecord:
    """
    Record of one simulation step for analysis.

    Attributes:
        time: Start instant of the time slot
        index: Grid index of the time slot
        shift: Shift active during the slot (None when idle)
        shift_changed: Whether a shift transition happened this step
        usage_kwh: Energy used by the trucks
        deficit_kwh: Energy borrowed from the charging pool
        energy_drawn_kwh: Energy drawn from the grid by the chargers
        policy: Name of the charging policy used
        capacity_in_use: Pool state after the step
        energy_in_use: Pool state after the step
        energy_charging: Pool state after the step
    """
    time: datetime
    index: int
    shift: Optional[Shift]
    shift_changed: bool
    usage_kwh: float
    deficit_kwh: float
    energy_drawn_kwh: float
    policy: str
    capacity_in_use: float = 0.0
    energy_in_use: float = 0.0
    energy_charging: float = 0.0
    warnings: List[str] = field(default_factory=list)

    @property
    def active_trucks(self) -> int:
        return self.shift.trucks if self.shift else 0

    def to_dict(self) -> Dict:
        """Convert to dictionary for DataFrame/JSON export."""
        return {
            'time': self.time.isoformat(),
            'index': self.index,
            'active_trucks': self.active_trucks,
            'shift_changed': self.shift_changed,
            'usage_kwh': self.usage_kwh,
            'deficit_kwh': self.deficit_kwh,
            'energy_drawn_kwh': self.energy_drawn_kwh,
            'policy': self.policy,
            'capacity_in_use': self.capacity_in_use,
            'energy_in_use': self.energy_in_use,
            'energy_charging': self.energy_charging,
            'warnings': len(self.warnings),
        }
