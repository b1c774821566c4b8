# src/circuitsim_core/components/junction.py
"""
Physics and linearization of a single p-n junction, shared by Diode and LED.

The junction is described by an ideality factor n and a reference operating
point (forward voltage Vf at reference current Iref). From these the module
derives the thermal-voltage scale n*Vt and a saturation current Is that puts
the Shockley curve through the reference point. A series resistance Rs limits
the current at high forward bias.

The solver never stamps the exponential directly. Each outer iteration it
stamps the companion returned by `linearize_junction_at`, then moves the
linearization point with `limit_junction_step` so that consecutive points do
not jump far up the exponential.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

from ..constants import (
    GMIN,
    JUNCTION_EXPONENT_LIMIT,
    JUNCTION_NEWTON_ITERATIONS,
    JUNCTION_NEWTON_TOLERANCE,
    THERMAL_VOLTAGE_300K,
)

logger = logging.getLogger(__name__)

_FALLBACK_SATURATION_CURRENT = 1.0e-12
_MIN_SATURATION_CURRENT = 1.0e-30
_MAX_SATURATION_CURRENT = 1.0


@dataclass(frozen=True)
class JunctionParameters:
    """Resolved junction constants."""
    forward_voltage: float
    reference_current: float
    ideality: float
    series_resistance: float
    saturation_current: float
    thermal_scale: float
    gmin: float
    critical_voltage: float


@dataclass(frozen=True)
class JunctionLinearization:
    """
    Companion model at one linearization point: the terminal current is
    approximated by `conductance * V + current_offset` near that point.
    `current` is the junction current alone; the gmin leakage is carried only
    by the companion terms.
    """
    current: float
    conductance: float
    current_offset: float
    diode_voltage: float


def _safe_exp(x: float) -> float:
    return math.exp(min(JUNCTION_EXPONENT_LIMIT, max(-JUNCTION_EXPONENT_LIMIT, x)))


def derive_saturation_current(forward_voltage: float, reference_current: float, thermal_scale: float) -> float:
    """Is such that Is*(exp(Vf/(n*Vt)) - 1) == Iref, clamped to a sane range."""
    denominator = _safe_exp(forward_voltage / thermal_scale) - 1.0
    if not math.isfinite(denominator) or denominator <= 0 or not (reference_current > 0):
        return _FALLBACK_SATURATION_CURRENT
    saturation_current = reference_current / denominator
    if not math.isfinite(saturation_current):
        return _FALLBACK_SATURATION_CURRENT
    return min(_MAX_SATURATION_CURRENT, max(_MIN_SATURATION_CURRENT, saturation_current))


def resolve_junction_parameters(
    forward_voltage: float,
    reference_current: float,
    ideality: float,
    series_resistance: float,
    saturation_current: Optional[float] = None,
) -> JunctionParameters:
    """
    Builds the junction constants. An explicit, positive `saturation_current`
    overrides the value derived from the reference point.
    """
    thermal_scale = max(1.0e-6, ideality * THERMAL_VOLTAGE_300K)
    if saturation_current is not None and math.isfinite(saturation_current) and saturation_current > 0:
        isat = saturation_current
    else:
        isat = derive_saturation_current(forward_voltage, reference_current, thermal_scale)
    critical_voltage = thermal_scale * math.log(
        max(thermal_scale / (math.sqrt(2.0) * isat), 1.0 + 1.0e-12)
    )
    return JunctionParameters(
        forward_voltage=forward_voltage,
        reference_current=reference_current,
        ideality=ideality,
        series_resistance=max(0.0, series_resistance),
        saturation_current=isat,
        thermal_scale=thermal_scale,
        gmin=max(GMIN, 0.01 * isat),
        critical_voltage=critical_voltage,
    )


def shockley_current(voltage: float, params: JunctionParameters) -> float:
    return params.saturation_current * (_safe_exp(voltage / params.thermal_scale) - 1.0)


def shockley_conductance(voltage: float, params: JunctionParameters) -> float:
    return params.saturation_current / params.thermal_scale * _safe_exp(voltage / params.thermal_scale)


def limit_junction_step(v_new: float, v_old: float, params: JunctionParameters) -> float:
    """
    SPICE-style junction voltage limiting. Large forward steps above the
    critical voltage are compressed logarithmically.
    """
    vt = params.thermal_scale
    if v_new > params.critical_voltage and abs(v_new - v_old) > 2.0 * vt:
        if v_old > 0:
            arg = 1.0 + (v_new - v_old) / vt
            if arg > 0:
                return v_old + vt * math.log(arg)
            return params.critical_voltage
        return vt * math.log(max(v_new / vt, 1.0e-12))
    return v_new


def solve_junction_current(
    terminal_voltage: float, params: JunctionParameters, initial_current: float = 0.0
) -> float:
    """
    Solves I = Is*(exp((V - I*Rs)/(n*Vt)) - 1) for I with a bounded Newton
    iteration, starting from `initial_current`.
    """
    rs = params.series_resistance
    if rs <= 0:
        return shockley_current(terminal_voltage, params)

    current = initial_current if math.isfinite(initial_current) else 0.0
    for _ in range(JUNCTION_NEWTON_ITERATIONS):
        diode_voltage = terminal_voltage - current * rs
        residual = current - shockley_current(diode_voltage, params)
        slope = 1.0 + rs * shockley_conductance(diode_voltage, params)
        step = residual / slope
        current -= step
        if abs(step) <= JUNCTION_NEWTON_TOLERANCE:
            break
    return current


def linearize_junction_at(
    terminal_voltage: float, params: JunctionParameters, initial_current: float = 0.0
) -> JunctionLinearization:
    """Small-signal companion of the junction plus series resistance at `terminal_voltage`."""
    current = solve_junction_current(terminal_voltage, params, initial_current)
    diode_voltage = terminal_voltage - current * params.series_resistance
    gd = shockley_conductance(diode_voltage, params)
    conductance = gd / (1.0 + params.series_resistance * gd) + params.gmin
    branch_current = current + params.gmin * terminal_voltage
    return JunctionLinearization(
        current=current,
        conductance=conductance,
        current_offset=branch_current - conductance * terminal_voltage,
        diode_voltage=diode_voltage,
    )
