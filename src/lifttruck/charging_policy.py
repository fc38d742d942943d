"""
Charging policies for the lift-truck fleet.

Each step the fleet decides how much energy to draw from the grid for its
battery chargers. The policy is chosen from the rate structure of the
tariff the fleet's customer is subscribed to:

- Time-of-use tariffs: TimeOfUseChargingPolicy
- Tariffs paying for regulation capacity: RegulationChargingPolicy
- Everything else: EarlyChargingPolicy (charge as soon as possible)

Every policy honours the same bounds: it never stores more than the
chargers can deliver in one hour (n_chargers * max_charge_kw) or more than
the idle batteries can hold, and the two look-ahead policies never store
less than the nearest shift change needs.

Policies return the energy drawn from the grid, i.e. the stored energy
divided by the charge efficiency.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .data_structures import FleetState, ShiftEnergy, StepInfo
from .tariff import Tariff
from .utils import index_of_time

if TYPE_CHECKING:
    from .lift_truck import LiftTruck

logger = logging.getLogger(__name__)


class ChargingPolicy(ABC):
    """
    Decides the charging energy for one step.

    Subclasses implement stored_energy(); use_energy() converts the stored
    energy to grid energy.
    """

    name = "base"

    def use_energy(self, truck: 'LiftTruck', info: StepInfo) -> float:
        """
        Energy drawn from the grid this step (kWh).

        Args:
            truck: Fleet model, read for its configuration and state
            info: Per-step context

        Returns:
            Grid energy in kWh, including charging losses
        """
        limit = self.charge_limit(truck)
        if limit <= 0.0:
            return 0.0
        stored = min(limit, max(0.0, self.stored_energy(truck, info, limit)))
        return stored / truck.config.charge_efficiency

    @staticmethod
    def charge_limit(truck: 'LiftTruck') -> float:
        """Most energy the chargers can store this hour (kWh)."""
        return min(truck.charger_capacity, truck.available_room)

    @staticmethod
    def required_energy(constraint: ShiftEnergy, state: FleetState) -> float:
        """
        Energy that must be stored this hour to stay on plan.

        The pool must hold the segment's energy_required when it ends: the
        next shift's need plus whatever later segments cannot charge in
        time. The shortfall against what is already in the charging pool
        is spread evenly over the hours left in the segment. A negative
        front surplus means the plan is already short, in which case
        everything possible must be stored.

        Args:
            constraint: First segment of the current energy plan
            state: Current pool state

        Returns:
            Energy to store this hour (kWh), may be infinite
        """
        if constraint.max_surplus < 0.0:
            return math.inf
        shortfall = constraint.energy_required - state.energy_charging
        if shortfall <= 0.0:
            return 0.0
        return shortfall / max(1, constraint.duration)

    @abstractmethod
    def stored_energy(self, truck: 'LiftTruck', info: StepInfo, limit: float) -> float:
        """Energy to store this hour before charging losses (kWh)."""


class EarlyChargingPolicy(ChargingPolicy):
    """Charge as fast as possible, regardless of price."""

    name = "early"

    def stored_energy(self, truck: 'LiftTruck', info: StepInfo, limit: float) -> float:
        logger.debug(f"{truck.name} use early {limit / truck.config.charge_efficiency:.2f}kWh")
        return limit


class TimeOfUseChargingPolicy(ChargingPolicy):
    """
    Shift charging into the cheapest hours before the next shift change.

    Charge flat out when the current price is the lowest left in the
    current segment, otherwise store only what the next shift change
    requires.
    """

    name = "time_of_use"

    def stored_energy(self, truck: 'LiftTruck', info: StepInfo, limit: float) -> float:
        index = index_of_time(info.time)
        plan = truck.ensure_future_energy_needs(index)
        constraint = plan[0]
        required = self.required_energy(constraint, truck.state)

        tariff: Tariff = info.subscription.tariff
        price = tariff.price_at_index(index)
        if price <= tariff.cheapest_price(index, max(1, constraint.duration)):
            logger.debug(f"{truck.name}: cheapest hour at ${price:.3f}/kWh, charging at limit")
            return limit

        logger.debug(
            f"{truck.name}: ${price:.3f}/kWh not cheapest, storing "
            f"{min(limit, required):.2f}kWh"
        )
        return required


class RegulationChargingPolicy(ChargingPolicy):
    """
    Keep charging headroom available for regulation.

    Store only what the next shift change requires; the remaining charger
    capacity is left free to be offered as regulation.
    """

    name = "regulation"

    def stored_energy(self, truck: 'LiftTruck', info: StepInfo, limit: float) -> float:
        index = index_of_time(info.time)
        plan = truck.ensure_future_energy_needs(index)
        required = self.required_energy(plan[0], truck.state)
        logger.debug(
            f"{truck.name}: regulation headroom "
            f"{max(0.0, limit - required):.2f}kWh"
        )
        return required


def select_policy(tariff: Tariff) -> ChargingPolicy:
    """
    Choose the charging policy for a tariff.

    Time-of-use takes precedence over regulation; anything else charges
    as early as possible.
    """
    if tariff.is_time_of_use():
        return TimeOfUseChargingPolicy()
    if tariff.has_regulation_rate():
        return RegulationChargingPolicy()
    return EarlyChargingPolicy()
