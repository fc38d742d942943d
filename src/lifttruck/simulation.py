"""
Driver for running a lift-truck fleet over consecutive hourly time slots.

The host simulation normally calls LiftTruck.step() once per slot. This
module does the same for studies and tests: it advances an hourly clock,
builds the per-step context, collects the records and prices the energy
drawn under the subscribed tariff.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from .data_structures import StepInfo, StepRecord
from .lift_truck import LiftTruck
from .tariff import Tariff, TariffSubscription
from .utils import calculate_summary_statistics

logger = logging.getLogger(__name__)

STEP = timedelta(hours=1)


def simulate(
    truck: LiftTruck,
    start: datetime,
    hours: int,
    subscription: TariffSubscription,
    regulation: Optional[Sequence[float]] = None
) -> List[StepRecord]:
    """
    Step a fleet once per hour.

    Args:
        truck: Fleet model
        start: Start of the first time slot (truncated to the hour)
        hours: Number of slots to run
        subscription: Tariff subscription used for every slot
        regulation: Optional regulation energy per slot (kWh), applied
            before each step

    Returns:
        The StepRecords produced by this run
    """
    time = start.replace(minute=0, second=0, microsecond=0)
    first = len(truck.history)

    for slot in range(hours):
        if regulation is not None and slot < len(regulation):
            truck.regulate(regulation[slot])
        truck.step(StepInfo(time=time, subscription=subscription))
        time += STEP

    records = truck.history[first:]
    logger.info(
        f"Simulated {truck.name} for {hours}h from {start.isoformat()}: "
        f"{sum(r.energy_drawn_kwh for r in records):.1f}kWh drawn"
    )
    return records


def energy_cost(records: Sequence[StepRecord], tariff: Tariff) -> float:
    """Cost of the energy drawn in ``records`` under ``tariff`` ($)."""
    return sum(r.energy_drawn_kwh * tariff.get_usage_charge(r.time) for r in records)


def summarize(records: Sequence[StepRecord], tariff: Optional[Tariff] = None) -> Dict:
    """
    Aggregate a run.

    Args:
        records: Step records
        tariff: Tariff used to price the energy drawn, optional

    Returns:
        Dictionary of totals and extremes
    """
    if not records:
        return {'error': 'No data recorded'}

    drawn = [r.energy_drawn_kwh for r in records]
    summary = {
        'steps': len(records),
        'energy_drawn_kwh': sum(drawn),
        'truck_usage_kwh': sum(r.usage_kwh for r in records),
        'borrowed_kwh': sum(r.deficit_kwh for r in records),
        'borrowing_events': sum(1 for r in records if r.deficit_kwh > 0),
        'min_energy_charging': min(r.energy_charging for r in records),
        'draw_stats': calculate_summary_statistics(drawn),
        'policies': sorted({r.policy for r in records}),
    }
    if tariff is not None:
        cost = energy_cost(records, tariff)
        summary['energy_cost'] = cost
        summary['avg_price'] = cost / summary['energy_drawn_kwh'] if summary['energy_drawn_kwh'] > 0 else 0.0
    return summary
