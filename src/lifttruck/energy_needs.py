"""
Forward energy-needs projection for the lift-truck fleet.

Charging policies that do not simply charge as fast as possible need to
know how much energy the fleet must have on hand at each upcoming shift
change, and how much charging headroom is left over. The projection runs
in two passes over the weekly schedule:

1. Forward: starting at the current hour, walk the grid and close a
   segment at each shift (or idle) transition, recording where it ends
   and how long it lasts.
2. Backward: walk the segments from last to first. Each segment must
   charge the energy the following shift will use; what it cannot supply
   is carried back as a shortage to the segment before it.
   The pool must hold the following shift's need plus that carried
   shortage when the segment ends.

        needed    = next.trucks * next.duration * truck_kw
        chargers  = min(n_chargers, n_batteries - active.trucks)
        available = max_charge_kw * duration * chargers
        required  = needed + shortage
        surplus   = max(0, available - needed - shortage)
        shortage  = max(0, -(available - needed - shortage))

Finally the energy already in the charging pool is folded into the first
segment's surplus.

The backward pass is a single linear scan over the segments, so its cost
depends on the number of shift changes in the horizon, not its length.
"""

import logging
from typing import List, Optional

from .data_structures import Shift, ShiftEnergy
from .schedule import ScheduleGrid
from .utils import advance_index, hours_between, next_index

logger = logging.getLogger(__name__)


class EnergyNeedsProjector:
    """
    Computes minimum energy needs and surplus for upcoming shift segments.

    Attributes:
        grid: Weekly shift schedule
        truck_kw: Mean power drawn by one working truck (kW)
        n_batteries: Battery count (after sizing)
        n_chargers: Charger count (after sizing)
        max_charge_kw: Maximum charge rate of one charger (kW)

    Examples:
        >>> projector = EnergyNeedsProjector(grid, 4.0, 15, 8, 6.0)
        >>> plan = projector.project(index=32, horizon=60, energy_charging=300.0)
        >>> plan[0].energy_needed   # next shift's energy
        192.0
    """

    def __init__(
        self,
        grid: ScheduleGrid,
        truck_kw: float,
        n_batteries: int,
        n_chargers: int,
        max_charge_kw: float
    ):
        self.grid = grid
        self.truck_kw = truck_kw
        self.n_batteries = n_batteries
        self.n_chargers = n_chargers
        self.max_charge_kw = max_charge_kw

    def shift_energy(self, shift: Optional[Shift]) -> float:
        """Energy a whole shift uses (kWh), 0 for idle."""
        if shift is None:
            return 0.0
        return shift.trucks * shift.duration * self.truck_kw

    def find_segments(self, index: int, horizon: int) -> List[ShiftEnergy]:
        """
        Forward pass: split the upcoming schedule at each transition.

        The first segment runs from ``index`` to the end of the shift or
        idle run containing it. The walk then continues for ``horizon``
        hours; a trailing run that has not reached a transition when the
        horizon is exhausted is not emitted.

        Args:
            index: Grid index of the current hour
            horizon: Number of hours to scan past the first transition

        Returns:
            Ordered list of segments with end_index, duration, next_shift
            and active_shift set
        """
        end = self.grid.find_transition(index)
        if end is None:
            # The same value all week: one open-ended segment
            end_index = advance_index(index, horizon)
            shift = self.grid.shift_at(index)
            return [ShiftEnergy(end_index, horizon, shift, shift)]

        segments = [ShiftEnergy(
            end_index=end,
            duration=hours_between(index, end),
            next_shift=self.grid.shift_at(end),
            active_shift=self.grid.shift_at(index)
        )]

        current = self.grid.shift_at(end)
        cursor = end
        duration = 0
        for _ in range(horizon):
            duration += 1
            cursor = next_index(cursor)
            if self.grid.shift_at(cursor) != current:
                segments.append(ShiftEnergy(
                    end_index=cursor,
                    duration=duration,
                    next_shift=self.grid.shift_at(cursor),
                    active_shift=current
                ))
                current = self.grid.shift_at(cursor)
                duration = 0

        return segments

    def effective_chargers(self, active_shift: Optional[Shift]) -> int:
        """Chargers usable while ``active_shift`` has batteries in trucks."""
        available_batteries = self.n_batteries
        if active_shift is not None:
            available_batteries -= active_shift.trucks
        return max(0, min(self.n_chargers, available_batteries))

    def propagate_needs(self, segments: List[ShiftEnergy]) -> float:
        """
        Backward pass: fill in energy_needed, energy_required and max_surplus.

        Args:
            segments: Segments from find_segments (modified in place)

        Returns:
            Shortage left over at the front of the plan (kWh)
        """
        shortage = 0.0
        for segment in reversed(segments):
            needed = self.shift_energy(segment.next_shift)
            chargers = self.effective_chargers(segment.active_shift)
            available = self.max_charge_kw * segment.duration * chargers

            segment.energy_needed = needed
            segment.energy_required = needed + shortage

            balance = available - needed - shortage
            segment.max_surplus = max(0.0, balance)
            shortage = max(0.0, -balance)

        return shortage

    def project(self, index: int, horizon: int, energy_charging: float) -> List[ShiftEnergy]:
        """
        Compute the energy plan from the current hour over the horizon.

        Args:
            index: Grid index of the current hour
            horizon: Planning horizon (hours)
            energy_charging: Energy currently in the charging pool (kWh)

        Returns:
            Ordered list of ShiftEnergy segments
        """
        segments = self.find_segments(index, horizon)
        shortage = self.propagate_needs(segments)

        # Anchor the plan to the energy already stored
        first = segments[0]
        if first.max_surplus > 0.0:
            first.add_surplus(energy_charging)
        elif shortage > 0.0:
            first.max_surplus = energy_charging - shortage
            logger.debug(
                f"Projected shortage of {shortage:.1f}kWh from index {index}, "
                f"front surplus {first.max_surplus:.1f}kWh"
            )

        logger.debug(
            f"Projected {len(segments)} segments from index {index} "
            f"over {horizon}h"
        )
        return segments


class EnergyNeedsCache:
    """
    Cached energy plan with an explicit validity check.

    A plan stays valid while the live shift still differs from the shift
    its first segment leads into, i.e. until that boundary is crossed.
    While valid, the first segment's remaining duration is ticked down
    once per elapsed hour instead of recomputing the plan.

    Attributes:
        projector: Projector used to (re)compute plans
        horizon: Planning horizon (hours)
        plan: Current plan, None before the first request
        last_index: Grid index the plan was last advanced to
        recomputations: Number of times the plan was computed
    """

    def __init__(self, projector: EnergyNeedsProjector, horizon: int):
        self.projector = projector
        self.horizon = horizon
        self.plan: Optional[List[ShiftEnergy]] = None
        self.last_index: Optional[int] = None
        self.recomputations = 0

    def is_valid(self, index: int, current_shift: Optional[Shift]) -> bool:
        if self.plan is None or self.last_index is None:
            return False
        first = self.plan[0]
        if first.next_shift == current_shift:
            return False
        return hours_between(self.last_index, index) < first.duration

    def ensure(
        self,
        index: int,
        current_shift: Optional[Shift],
        energy_charging: float
    ) -> List[ShiftEnergy]:
        """
        Return a plan valid for the hour at ``index``.

        Args:
            index: Grid index of the current hour
            current_shift: Shift working now (None when idle)
            energy_charging: Energy in the charging pool, used on recompute

        Returns:
            Current plan
        """
        if self.is_valid(index, current_shift):
            first = self.plan[0]
            for _ in range(hours_between(self.last_index, index)):
                first.tick()
            self.last_index = index
            return self.plan

        self.plan = self.projector.project(index, self.horizon, energy_charging)
        self.last_index = index
        self.recomputations += 1
        return self.plan

    def invalidate(self) -> None:
        self.plan = None
        self.last_index = None
