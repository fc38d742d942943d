"""
Configuration loading for lift-truck fleet instances.

Instances are described by name, each with a mapping of parameters:

    {
        "warehouse-1": {
            "truckKW": 4.0,
            "nBatteries": 15,
            "shiftData": ["block", "2", "3", "4", "5", "6",
                          "shift", "8", "8", "8"]
        }
    }

Parameter names may use the host simulation's camelCase spelling or the
snake_case field names of LiftTruckConfig. Unknown parameters are logged
and ignored.
"""

import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from .data_structures import LiftTruckConfig

logger = logging.getLogger(__name__)


# host simulation parameter name -> LiftTruckConfig field
PARAMETER_ALIASES = {
    'truckKW': 'truck_kw',
    'truckStd': 'truck_std',
    'batteryCapacity': 'battery_capacity',
    'nBatteries': 'n_batteries',
    'nChargers': 'n_chargers',
    'maxChargeKW': 'max_charge_kw',
    'chargeEfficiency': 'charge_efficiency',
    'planningHorizon': 'planning_horizon',
    'shiftData': 'shift_data',
}

_FIELD_NAMES = {f.name for f in fields(LiftTruckConfig)}


def _coerce(field_name: str, value: Any) -> Any:
    if field_name == 'shift_data':
        if isinstance(value, str):
            return value.replace(',', ' ').split()
        return [str(v) for v in value]
    if field_name in ('n_batteries', 'n_chargers', 'planning_horizon'):
        return int(value)
    if field_name == 'enable_logging':
        return bool(value)
    return float(value)


def config_from_dict(name: str, params: Mapping[str, Any]) -> LiftTruckConfig:
    """
    Build a LiftTruckConfig from a parameter mapping.

    Args:
        name: Instance name
        params: Parameter values keyed by camelCase or snake_case name

    Returns:
        Configuration with defaults for unspecified parameters

    Raises:
        ValueError: If a parameter value cannot be converted
    """
    kwargs: Dict[str, Any] = {'name': name}
    for key, value in params.items():
        field_name = PARAMETER_ALIASES.get(key, key)
        if field_name not in _FIELD_NAMES or field_name == 'name':
            logger.warning(f"Ignoring unknown parameter {key!r} for {name}")
            continue
        try:
            kwargs[field_name] = _coerce(field_name, value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Bad value {value!r} for {key} in {name}") from e
    return LiftTruckConfig(**kwargs)


def load_instances(source: Union[str, Path, Mapping[str, Any]]) -> Dict[str, LiftTruckConfig]:
    """
    Load named fleet configurations.

    Args:
        source: Path to a JSON file, or an already-parsed mapping of
            instance name to parameters

    Returns:
        Dictionary mapping instance name to LiftTruckConfig
    """
    if isinstance(source, (str, Path)):
        with open(source, encoding="utf-8") as fh:
            data = json.load(fh)
    else:
        data = source

    configs = {
        name: config_from_dict(name, params or {})
        for name, params in data.items()
    }
    logger.info(f"Loaded {len(configs)} lift-truck configurations")
    return configs
