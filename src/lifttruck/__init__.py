"""
Lift-Truck Fleet Energy Model

Models the energy behaviour of a fleet of battery-powered lift trucks on a
recurring weekly shift schedule, as a component of a larger discrete-time
simulation. Each hourly step detects shift changes, swaps batteries
between the trucks and the chargers, discharges the in-truck batteries
stochastically and decides how much energy the chargers draw from the
grid.

Main Components:
- LiftTruck: Per-step fleet model (battery pools, discharge, charging)
- ScheduleGrid: 168-hour circular weekly shift schedule
- CapacityValidator: Battery and charger sizing with auto-remediation
- EnergyNeedsProjector: Forward energy-needs plan for upcoming shifts
- ChargingPolicy: Early, time-of-use and regulation charging
- Tariff / TariffSubscription: Rate structures seen by the fleet

Quick Start:
    >>> from datetime import datetime
    >>> from lifttruck import (LiftTruck, LiftTruckConfig, FleetState,
    ...                        TariffSubscription, create_flat_tariff, simulate)
    >>>
    >>> config = LiftTruckConfig(name="warehouse-1", n_batteries=15, n_chargers=8)
    >>> truck = LiftTruck(config, seed=42, state=FleetState(energy_charging=600.0))
    >>> subscription = TariffSubscription(create_flat_tariff(0.12))
    >>>
    >>> records = simulate(truck, datetime(2024, 1, 7), hours=168,
    ...                    subscription=subscription)
    >>> stats = truck.get_statistics()
    >>> bootstrap = truck.get_bootstrap_state()
"""

from .data_structures import (
    Shift,
    ShiftEnergy,
    FleetState,
    LiftTruckConfig,
    SizingResult,
    StepInfo,
    StepRecord,
)
from .schedule import ScheduleGrid, DEFAULT_SHIFT_DATA
from .capacity_validator import (
    CapacityValidator,
    validate_batteries,
    validate_chargers,
)
from .energy_needs import EnergyNeedsProjector, EnergyNeedsCache
from .charging_policy import (
    ChargingPolicy,
    EarlyChargingPolicy,
    TimeOfUseChargingPolicy,
    RegulationChargingPolicy,
    select_policy,
)
from .tariff import (
    RateStructure,
    TariffConfig,
    Tariff,
    TariffSubscription,
    create_flat_tariff,
    create_tou_tariff,
    create_regulation_tariff,
)
from .lift_truck import LiftTruck
from .config import load_instances, config_from_dict
from .simulation import simulate, summarize, energy_cost
from .utils import (
    HOURS_DAY,
    DAYS_WEEK,
    HOURS_WEEK,
    day_of_week,
    grid_index,
    index_of_time,
    next_index,
    previous_index,
    split_index,
)

__version__ = "0.1.0"

__all__ = [
    # Main model
    'LiftTruck',

    # Data structures
    'Shift',
    'ShiftEnergy',
    'FleetState',
    'LiftTruckConfig',
    'SizingResult',
    'StepInfo',
    'StepRecord',

    # Schedule
    'ScheduleGrid',
    'DEFAULT_SHIFT_DATA',

    # Sizing
    'CapacityValidator',
    'validate_batteries',
    'validate_chargers',

    # Energy needs
    'EnergyNeedsProjector',
    'EnergyNeedsCache',

    # Charging policies
    'ChargingPolicy',
    'EarlyChargingPolicy',
    'TimeOfUseChargingPolicy',
    'RegulationChargingPolicy',
    'select_policy',

    # Tariffs
    'RateStructure',
    'TariffConfig',
    'Tariff',
    'TariffSubscription',
    'create_flat_tariff',
    'create_tou_tariff',
    'create_regulation_tariff',

    # Configuration and simulation
    'load_instances',
    'config_from_dict',
    'simulate',
    'summarize',
    'energy_cost',

    # Grid indexing
    'HOURS_DAY',
    'DAYS_WEEK',
    'HOURS_WEEK',
    'day_of_week',
    'grid_index',
    'index_of_time',
    'next_index',
    'previous_index',
    'split_index',
]
