"""
Tariffs and subscriptions seen by the lift-truck fleet.

The fleet model only needs three things from its tariff: whether the rate
structure is time-of-use, whether it pays for regulation capacity, and the
per-kWh price at a given time. This module provides a small tariff class
covering flat, time-of-use (peak/off-peak) and regulation-capable rate
structures, so the model can be driven without a host market simulation.

Key Features:
- Flat, time-of-use and regulation-capable rate structures
- Peak windows that may wrap past midnight and be limited to some days
- Price lookup by timestamp or by weekly grid index
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from .utils import HOURS_DAY, index_of_time, split_index

logger = logging.getLogger(__name__)


class RateStructure(Enum):
    """Rate structure classifications."""
    FLAT = "flat"
    TIME_OF_USE = "time_of_use"
    REGULATION = "regulation"


@dataclass
class PeakPeriod:
    """
    Definition of a peak-rate window.

    Attributes:
        start_hour: Start hour (0-23)
        end_hour: End hour (0-24, exclusive)
        days: Days this window applies (1..7, Sunday = 1). None = all days.
    """
    start_hour: int
    end_hour: int
    days: Optional[List[int]] = None

    def covers(self, index: int) -> bool:
        """Check if this window covers the hour at a weekly grid index."""
        day, hour = split_index(index)
        if self.days is not None and day not in self.days:
            return False

        span = (self.end_hour - self.start_hour) % HOURS_DAY or HOURS_DAY
        return (hour - self.start_hour) % HOURS_DAY < span


@dataclass
class TariffConfig:
    """
    Tariff configuration.

    Attributes:
        name: Tariff name/identifier
        rate_structure: Flat, time-of-use or regulation-capable
        energy_price: Flat or off-peak rate ($/kWh)
        peak_price: Peak rate ($/kWh), time-of-use only
        peak_hours: List of (start_hour, end_hour) peak windows
        peak_days: Days the peak windows apply (1..7, Sunday = 1), None = all
        regulation_rate: Payment for regulation capacity ($/kWh)

    Examples:
        >>> TariffConfig(
        ...     name="Weekday peak",
        ...     rate_structure=RateStructure.TIME_OF_USE,
        ...     energy_price=0.10,
        ...     peak_price=0.30,
        ...     peak_hours=[(7, 19)],
        ...     peak_days=[2, 3, 4, 5, 6]
        ... )
    """
    name: str = "Default Tariff"
    rate_structure: RateStructure = RateStructure.FLAT
    energy_price: float = 0.12
    peak_price: Optional[float] = None
    peak_hours: List[Tuple[int, int]] = field(default_factory=list)
    peak_days: Optional[List[int]] = None
    regulation_rate: Optional[float] = None

    def validate(self) -> List[str]:
        """Validate tariff configuration."""
        errors = []

        if self.energy_price < 0:
            errors.append("Energy price must be non-negative")
        if self.rate_structure == RateStructure.TIME_OF_USE:
            if self.peak_price is None:
                errors.append("Time-of-use tariff needs a peak price")
            elif self.peak_price <= self.energy_price:
                errors.append("Peak price should exceed off-peak price")
            if not self.peak_hours:
                errors.append("Time-of-use tariff needs at least one peak window")
        if self.rate_structure == RateStructure.REGULATION and not self.regulation_rate:
            errors.append("Regulation tariff needs a positive regulation rate")

        for start, end in self.peak_hours:
            if not (0 <= start < HOURS_DAY and 0 <= end <= HOURS_DAY):
                errors.append(f"Invalid peak hour range: {start}-{end}")

        return errors


class Tariff:
    """
    Tariff offered to the fleet's customer.

    Attributes:
        config: Tariff configuration
        periods: Peak windows built from the configuration
    """

    def __init__(self, config: Optional[TariffConfig] = None):
        self.config = config or TariffConfig()

        errors = self.config.validate()
        if errors:
            logger.warning(f"Tariff validation warnings: {errors}")

        self.periods: List[PeakPeriod] = [
            PeakPeriod(start, end, self.config.peak_days)
            for start, end in self.config.peak_hours
        ]

        logger.info(
            f"Tariff initialized: {self.config.name} "
            f"({self.config.rate_structure.value})"
        )

    @property
    def rate_structure(self) -> RateStructure:
        return self.config.rate_structure

    def is_time_of_use(self) -> bool:
        return self.config.rate_structure == RateStructure.TIME_OF_USE

    def has_regulation_rate(self) -> bool:
        return (self.config.rate_structure == RateStructure.REGULATION
                and bool(self.config.regulation_rate))

    @property
    def regulation_rate(self) -> float:
        return self.config.regulation_rate or 0.0

    def is_peak(self, index: int) -> bool:
        if not self.is_time_of_use():
            return False
        return any(p.covers(index) for p in self.periods)

    def price_at_index(self, index: int) -> float:
        """
        Energy price ($/kWh) for the hour at a weekly grid index.

        Args:
            index: Grid index (wrapped modulo 168)

        Returns:
            Peak price inside a peak window, the energy price otherwise
        """
        if self.is_peak(index):
            return self.config.peak_price
        return self.config.energy_price

    def get_usage_charge(self, when: datetime) -> float:
        """Energy price ($/kWh) at a timestamp."""
        return self.price_at_index(index_of_time(when))

    def cheapest_price(self, start_index: int, hours: int) -> float:
        """Lowest price over ``hours`` slots starting at ``start_index``."""
        if hours <= 0:
            return self.price_at_index(start_index)
        return min(self.price_at_index(start_index + h) for h in range(hours))

    def __repr__(self) -> str:
        return (f"Tariff({self.config.name}: {self.config.rate_structure.value}, "
                f"${self.config.energy_price:.3f}/kWh)")


@dataclass
class TariffSubscription:
    """
    Link between a customer and the tariff it is subscribed to.

    Attributes:
        tariff: Subscribed tariff
        customer_name: Name of the subscribing customer
    """
    tariff: Tariff
    customer_name: str = ""


def create_flat_tariff(price: float = 0.12, name: str = "Flat") -> Tariff:
    """Create a flat-rate tariff."""
    return Tariff(TariffConfig(name=name, energy_price=price))


def create_tou_tariff(
    peak_price: float,
    off_peak_price: float,
    peak_start: int = 7,
    peak_end: int = 19,
    peak_days: Optional[List[int]] = None,
    name: str = "Time-of-use"
) -> Tariff:
    """
    Create a peak/off-peak time-of-use tariff.

    Args:
        peak_price: Peak rate ($/kWh)
        off_peak_price: Off-peak rate ($/kWh)
        peak_start: Peak window start hour (default 7am)
        peak_end: Peak window end hour (default 7pm)
        peak_days: Days with a peak window (1..7, Sunday = 1), None = all
        name: Tariff name

    Returns:
        Configured time-of-use Tariff
    """
    return Tariff(TariffConfig(
        name=name,
        rate_structure=RateStructure.TIME_OF_USE,
        energy_price=off_peak_price,
        peak_price=peak_price,
        peak_hours=[(peak_start, peak_end)],
        peak_days=peak_days
    ))


def create_regulation_tariff(
    price: float = 0.12,
    regulation_rate: float = 0.05,
    name: str = "Regulation"
) -> Tariff:
    """Create a flat-price tariff that pays for regulation capacity."""
    return Tariff(TariffConfig(
        name=name,
        rate_structure=RateStructure.REGULATION,
        energy_price=price,
        regulation_rate=regulation_rate
    ))
