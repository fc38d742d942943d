"""
Lift-truck fleet energy model - main implementation.

Models the complement of lift trucks in a warehouse: some number of
trucks, battery packs and chargers, and a weekly work schedule. Batteries
and chargers are not modelled individually; the model tracks the pooled
battery capacity and energy and how they change when shifts start and end,
when trucks work and when chargers run.

Each simulation step (one hour):

1. Detect a shift transition and move batteries between the "in trucks"
   and "charging" pools
2. Discharge the in-truck batteries by a random amount of truck usage,
   borrowing from the charging pool when they run short
3. Draw charging energy from the grid according to the policy chosen by
   the subscribed tariff
4. Report the energy drawn to the caller

Lead-acid truck batteries have a limited number of cycles, so the fleet
never discharges into the grid; balancing capacity comes only from
adjusting the charge rate.
"""

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Dict, List, Optional

import numpy as np

from .capacity_validator import CapacityValidator
from .charging_policy import ChargingPolicy, select_policy
from .data_structures import (
    FleetState,
    LiftTruckConfig,
    Shift,
    ShiftEnergy,
    SizingResult,
    StepInfo,
    StepRecord,
)
from .energy_needs import EnergyNeedsCache, EnergyNeedsProjector
from .schedule import ScheduleGrid
from .utils import calculate_summary_statistics, index_of_time, records_to_dataframe_data


logger = logging.getLogger(__name__)


class LiftTruck:
    """
    Energy model of one lift-truck fleet.

    Construction builds the weekly schedule (default schedule if none is
    configured), runs the battery and charger sizing checks and sets up the
    energy-needs projection. Trucks are idle until the first step that
    falls inside a shift.

    Attributes:
        config: Fleet configuration
        grid: Weekly shift schedule
        n_batteries: Battery count after sizing
        n_chargers: Charger count after sizing
        battery_sizing: Result of the battery sizing check
        charger_sizing: Result of the charger sizing check
        state: Pooled battery state
        current_shift: Shift active in the last step (None when idle)
        history: One StepRecord per step

    Examples:
        >>> truck = LiftTruck(LiftTruckConfig(name="warehouse-1"), seed=42)
        >>> info = StepInfo(time=datetime(2024, 1, 8, 8), subscription=subscription)
        >>> kwh = truck.step(info)
    """

    def __init__(
        self,
        config: Optional[LiftTruckConfig] = None,
        seed: Optional[int] = None,
        state: Optional[FleetState] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize the fleet model.

        Args:
            config: Configuration parameters (uses defaults if None)
            seed: Seed for the truck-usage random draws
            state: Initial pool state (all energy charging if None)
            rng: Random generator, overrides ``seed`` when given
        """
        self.config = config or LiftTruckConfig()
        self.config.validate()

        if self.config.enable_logging:
            logging.basicConfig(level=logging.INFO)

        self.grid = ScheduleGrid.from_tokens(self.config.shift_data, self.name)

        # make sure we have enough batteries and chargers
        validator = CapacityValidator(self.grid, self.config.truck_kw, self.name)
        self.battery_sizing: SizingResult = validator.validate_batteries(
            self.config.battery_capacity, self.config.n_batteries
        )
        self.charger_sizing: SizingResult = validator.validate_chargers(
            self.config.n_chargers, self.config.max_charge_kw
        )
        self.n_batteries = self.battery_sizing.adjusted
        self.n_chargers = self.charger_sizing.adjusted

        self._energy_needs = EnergyNeedsCache(
            EnergyNeedsProjector(
                self.grid,
                self.config.truck_kw,
                self.n_batteries,
                self.n_chargers,
                self.config.max_charge_kw
            ),
            self.config.planning_horizon
        )

        self.rng = rng if rng is not None else np.random.default_rng(seed)

        # No active trucks until the first shift change
        self.state = state or FleetState()
        self.state.energy_charging += self.state.energy_in_use
        self.state.energy_in_use = 0.0
        self.state.capacity_in_use = 0.0
        self.current_shift: Optional[Shift] = None

        self.history: List[StepRecord] = []
        self.total_regulation_kwh = 0.0

        logger.info(
            f"LiftTruck {self.name} initialized: {self.n_batteries} batteries, "
            f"{self.n_chargers} chargers, {self.grid}"
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def charger_capacity(self) -> float:
        """Energy all chargers can store in one hour (kWh)."""
        return self.n_chargers * self.config.max_charge_kw

    @property
    def total_capacity(self) -> float:
        """Nameplate capacity of all battery packs (kWh)."""
        return self.n_batteries * self.config.battery_capacity

    @property
    def available_room(self) -> float:
        """Energy the idle batteries can still absorb (kWh)."""
        return max(
            0.0,
            self.total_capacity - self.state.capacity_in_use - self.state.energy_charging
        )

    # ======== per-timeslot activities ========

    def regulate(self, kwh: float) -> None:
        """
        Apply curtailment or regulation from the previous time slot.

        Must be called before step() in the slot it applies to.

        Args:
            kwh: Grid energy the chargers did not receive (positive,
                up-regulation) or received in addition (negative,
                down-regulation)
        """
        stored = kwh * self.config.charge_efficiency
        self.state.energy_charging -= stored
        self.total_regulation_kwh += kwh
        logger.debug(f"{self.name}: regulated {kwh:.2f}kWh")

    def step(self, info: StepInfo) -> float:
        """
        Run one simulation step.

        Args:
            info: Per-step context (time slot start and subscription)

        Returns:
            Energy drawn from the grid by the chargers this step (kWh)
        """
        index = index_of_time(info.time)
        warnings: List[str] = []

        # check for end-of-shift
        new_shift = self.grid.shift_at(index)
        shift_changed = new_shift != self.current_shift
        if shift_changed:
            self.start_shift(new_shift)

        # discharge batteries on active trucks
        usage = self.sample_usage()
        deficit = self.discharge(usage)
        if deficit > 0.0:
            warnings.append(
                f"trucks use more energy than available by {deficit:.2f}kWh"
            )
        if self.state.energy_charging < 0.0:
            warnings.append(
                f"charging pool overdrawn: {self.state.energy_charging:.2f}kWh"
            )

        # use energy on chargers
        policy = self.select_policy(info)
        energy_used = policy.use_energy(self, info)
        self.state.energy_charging += energy_used * self.config.charge_efficiency
        info.add_kwh(energy_used)

        record = StepRecord(
            time=info.time,
            index=index,
            shift=self.current_shift,
            shift_changed=shift_changed,
            usage_kwh=usage,
            deficit_kwh=max(0.0, deficit),
            energy_drawn_kwh=energy_used,
            policy=policy.name,
            capacity_in_use=self.state.capacity_in_use,
            energy_in_use=self.state.energy_in_use,
            energy_charging=self.state.energy_charging,
            warnings=warnings
        )
        self.history.append(record)

        for warning in warnings:
            logger.warning(f"{self.name} t={info.time.isoformat()}: {warning}")

        logger.debug(
            f"{self.name} t={info.time.isoformat()}: used {usage:.2f}kWh, "
            f"drew {energy_used:.2f}kWh ({policy.name}), {self.state}"
        )

        return energy_used

    def start_shift(self, new_shift: Optional[Shift]) -> None:
        """
        Swap batteries at a shift transition.

        All batteries come out of the trucks; for a working shift the
        strongest ones go back in, up to one pack per truck. Total energy
        is unchanged.

        Args:
            new_shift: Shift starting now (None when going idle)
        """
        total_energy = self.state.total_energy
        self.state.energy_charging = total_energy
        self.state.capacity_in_use = 0.0
        self.state.energy_in_use = 0.0

        if new_shift is not None:
            self.state.capacity_in_use = new_shift.trucks * self.config.battery_capacity
            self.state.energy_in_use = min(self.state.capacity_in_use, total_energy)
            self.state.energy_charging = total_energy - self.state.energy_in_use

        logger.info(f"{self.name}: shift change {self.current_shift} -> {new_shift}")
        self.current_shift = new_shift

    def sample_usage(self) -> float:
        """
        Random truck energy use for one hour (kWh).

        A Gaussian draw around truck_kw * active trucks, clamped at zero.
        Idle hours use nothing.
        """
        # idle hours skip the draw instead of taking max(0, N(0, std))
        if self.current_shift is None:
            return 0.0
        mean = self.config.truck_kw * self.current_shift.trucks
        return max(0.0, self.rng.normal(0.0, self.config.truck_std) + mean)

    def discharge(self, usage: float) -> float:
        """
        Remove truck usage from the in-truck batteries.

        Whatever the in-truck batteries cannot cover is borrowed from the
        charging pool, which may go negative.

        Args:
            usage: Truck energy use (kWh)

        Returns:
            Deficit (kWh); positive when energy was borrowed
        """
        deficit = usage - self.state.energy_in_use
        if deficit > 0.0:
            self.state.energy_in_use += deficit
            self.state.energy_charging -= deficit
        self.state.energy_in_use -= usage
        return deficit

    def select_policy(self, info: StepInfo) -> ChargingPolicy:
        """Charging policy for the tariff of the current subscription."""
        return select_policy(info.subscription.tariff)

    def ensure_future_energy_needs(self, index: int) -> List[ShiftEnergy]:
        """
        Energy plan valid for the hour at ``index``.

        Recomputed once the first segment's shift boundary has been
        crossed, otherwise ticked forward.
        """
        return self._energy_needs.ensure(
            index, self.current_shift, self.state.energy_charging
        )

    # ======== bootstrap ========

    def get_bootstrap_state(self) -> Dict:
        """
        State needed to resume this fleet in a later run.

        Returns:
            Dictionary with the three pool scalars, the live shift (None
            when idle) and the shift tokens
        """
        data = self.state.to_dict()
        data['current_shift'] = asdict(self.current_shift) if self.current_shift else None
        data['shift_data'] = list(self.grid.shift_data)
        return data

    @classmethod
    def from_bootstrap(
        cls,
        config: LiftTruckConfig,
        data: Dict,
        seed: Optional[int] = None,
        when: Optional[datetime] = None
    ) -> 'LiftTruck':
        """
        Recreate a fleet from bootstrap state.

        The pool scalars are restored as saved, batteries in trucks
        included. The live shift comes from the saved data; older data
        without it falls back to the schedule at ``when``, or idle.

        Args:
            config: Scalar configuration (its shift_data is replaced)
            data: Output of get_bootstrap_state()
            seed: Seed for the truck-usage random draws
            when: Time the fleet resumes at

        Returns:
            LiftTruck resuming from the stored pool state
        """
        if 'shift_data' in data:
            config.shift_data = list(data['shift_data'])
        truck = cls(config, seed=seed)
        truck.state = FleetState.from_dict(data)

        if data.get('current_shift') is not None:
            truck.current_shift = Shift(**data['current_shift'])
        elif when is not None:
            truck.current_shift = truck.grid.shift_at(index_of_time(when))

        logger.info(f"{truck.name}: resumed in {truck.current_shift}, {truck.state}")
        return truck

    # ======== statistics ========

    def get_current_record(self) -> Optional[StepRecord]:
        """Get the record of the most recent step."""
        return self.history[-1] if self.history else None

    def get_statistics(self) -> Dict:
        """
        Summary statistics over all recorded steps.

        Returns:
            Dictionary with energy totals, borrowing events and pool extremes
        """
        if not self.history:
            return {'error': 'No data recorded'}

        drawn = [r.energy_drawn_kwh for r in self.history]
        usage = [r.usage_kwh for r in self.history]
        charging = [r.energy_charging for r in self.history]
        deficits = [r.deficit_kwh for r in self.history if r.deficit_kwh > 0]

        return {
            'total_steps': len(self.history),
            'shift_changes': sum(1 for r in self.history if r.shift_changed),
            'energy_drawn': calculate_summary_statistics(drawn),
            'truck_usage': calculate_summary_statistics(usage),
            'borrowing_events': len(deficits),
            'total_borrowed_kwh': sum(deficits),
            'min_energy_charging': min(charging),
            'total_regulation_kwh': self.total_regulation_kwh,
            'n_batteries': self.n_batteries,
            'n_chargers': self.n_chargers,
        }

    def export_history(self) -> List[Dict]:
        """Step history as a list of dictionaries for DataFrame creation."""
        return records_to_dataframe_data(self.history)

    def reset_history(self) -> None:
        self.history.clear()
        logger.info(f"{self.name}: history cleared")

    def __repr__(self) -> str:
        return (f"LiftTruck({self.name}: {self.n_batteries} batteries, "
                f"{self.n_chargers} chargers, {self.state})")
