# --- src/circuitsim_core/units.py ---
import logging
import math
from numbers import Real
from typing import Any

import pint

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.debug("Pint Unit Registry initialized.")


def to_magnitude(value: Any, units: str) -> float:
    """
    Converts a raw parameter value to a float expressed in `units`.

    Plain numbers are taken to be in `units` already. Strings are parsed with
    Pint ("4.7 kohm", "100 uF", "10 ms"); a bare numeric string is treated like
    a plain number. `pint.Quantity` objects are converted directly.

    Raises:
        pint.DimensionalityError: The value carries incompatible units.
        pint.UndefinedUnitError: The string names an unknown unit.
        TypeError / ValueError: The value is not numeric at all.
    """
    if isinstance(value, bool):
        raise TypeError(f"Expected a numeric value in '{units}', got boolean {value!r}.")
    if isinstance(value, Real):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        lowered = text.lower()
        if lowered in ("inf", "+inf", "infinity"):
            return math.inf
        value = ureg.Quantity(text)
    if isinstance(value, Quantity):
        if value.unitless:
            return float(value.magnitude)
        return float(value.to(units).magnitude)
    raise TypeError(f"Cannot interpret {value!r} as a quantity in '{units}'.")
