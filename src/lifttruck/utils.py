"""
Utility functions for the lift-truck fleet model.

This module provides the circular weekly-grid index arithmetic used by the
schedule, the sizing validators and the energy-needs projection, plus a few
helpers for exporting step history.

All index helpers are pure functions over integers so they can be tested
without building a model.
"""

from datetime import datetime
from typing import Any, Dict, List, Tuple

import numpy as np


HOURS_DAY = 24
DAYS_WEEK = 7
HOURS_WEEK = HOURS_DAY * DAYS_WEEK  # 168 cells in the weekly grid


def day_of_week(when: datetime) -> int:
    """
    Day of week for a timestamp using the 1-based Sunday = 1 convention.

    Args:
        when: Timestamp to convert

    Returns:
        Day number in 1..7 (Sunday = 1, Monday = 2, ..., Saturday = 7)

    Examples:
        >>> day_of_week(datetime(2024, 1, 7))   # a Sunday
        1
        >>> day_of_week(datetime(2024, 1, 8))   # a Monday
        2
    """
    # isoweekday: Monday = 1 .. Sunday = 7
    return when.isoweekday() % DAYS_WEEK + 1


def grid_index(day: int, hour: int) -> int:
    """
    Index into the weekly grid for a (day, hour) pair.

    Formula:
        index = hour + (day - 1) * 24

    Args:
        day: Day of week, 1..7 with Sunday = 1
        hour: Hour of day, 0..23

    Returns:
        Grid index in [0, 167]

    Raises:
        ValueError: If day or hour is out of range
    """
    if not 1 <= day <= DAYS_WEEK:
        raise ValueError(f"day must be in 1..{DAYS_WEEK}, got {day}")
    if not 0 <= hour < HOURS_DAY:
        raise ValueError(f"hour must be in 0..{HOURS_DAY - 1}, got {hour}")
    return hour + (day - 1) * HOURS_DAY


def index_of_time(when: datetime) -> int:
    """Grid index of the hour slot containing ``when``."""
    return grid_index(day_of_week(when), when.hour)


def split_index(index: int) -> Tuple[int, int]:
    """(day, hour) of a grid index, wrapped modulo 168."""
    day, hour = divmod(index % HOURS_WEEK, HOURS_DAY)
    return day + 1, hour


def next_index(index: int) -> int:
    """Next index in the circular grid (167 wraps to 0)."""
    return (index + 1) % HOURS_WEEK


def previous_index(index: int) -> int:
    """Previous index in the circular grid (0 wraps to 167)."""
    return (index - 1) % HOURS_WEEK


def advance_index(index: int, hours: int) -> int:
    """Index ``hours`` slots after ``index``, wrapping around the week."""
    return (index + hours) % HOURS_WEEK


def hours_between(from_index: int, to_index: int) -> int:
    """
    Forward distance in hours from one grid index to another.

    Args:
        from_index: Starting grid index
        to_index: Target grid index

    Returns:
        Hours in [0, 167] needed to walk forward from ``from_index``
        to ``to_index``
    """
    return (to_index - from_index) % HOURS_WEEK


def records_to_dataframe_data(records: List[Any]) -> List[Dict]:
    """
    Convert a list of record objects to DataFrame-ready dictionaries.

    Args:
        records: List of records with a to_dict() method

    Returns:
        List of dictionaries suitable for pandas DataFrame creation
    """
    result = []
    for r in records:
        if hasattr(r, 'to_dict'):
            result.append(r.to_dict())
        else:
            result.append(vars(r).copy())
    return result


def calculate_summary_statistics(values: List[float]) -> Dict[str, float]:
    """Min, max, mean, spread, total and count of a series; zeros when empty."""
    data = np.asarray(values, dtype=float)
    if data.size == 0:
        return {'min': 0.0, 'max': 0.0, 'mean': 0.0, 'std': 0.0, 'sum': 0.0, 'count': 0}

    return {
        'min': float(data.min()),
        'max': float(data.max()),
        'mean': float(data.mean()),
        'std': float(data.std()),
        'sum': float(data.sum()),
        'count': int(data.size),
    }
