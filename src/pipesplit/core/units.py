"""Conversion between the document's internal length unit (feet) and display units."""
from __future__ import annotations

import numpy as np

from pipesplit.errors import ParameterError

INTERNAL_UNIT = "ft"

# Display units per internal unit
_UNITS_PER_FOOT = {
    "ft": 1.0,
    "in": 12.0,
    "mm": 304.8,
    "cm": 30.48,
    "m": 0.3048,
}


def _factor(unit: str) -> float:
    try:
        return _UNITS_PER_FOOT[unit.lower()]
    except KeyError:
        raise ParameterError(
            f"Unknown length unit '{unit}'. Available units: {sorted(_UNITS_PER_FOOT)}"
        ) from None


def convert_from_internal(value, unit: str):
    """Internal feet -> display unit. Sequences come back as numpy arrays."""
    if isinstance(value, (list, tuple, np.ndarray)):
        return np.asarray(value, dtype=float) * _factor(unit)
    return float(value) * _factor(unit)


def convert_to_internal(value, unit: str):
    """Display unit -> internal feet. Sequences come back as numpy arrays."""
    if isinstance(value, (list, tuple, np.ndarray)):
        return np.asarray(value, dtype=float) / _factor(unit)
    return float(value) / _factor(unit)


def available_units():
    return sorted(_UNITS_PER_FOOT)
