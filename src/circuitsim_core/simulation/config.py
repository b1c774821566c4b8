# src/circuitsim_core/simulation/config.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pint

from ..constants import GMIN, JUNCTION_CONVERGENCE_TOLERANCE, MAX_NONLINEAR_ITERATIONS
from ..units import to_magnitude

logger = logging.getLogger(__name__)

DEFAULT_TIME_STEP = 0.01  # s


class ConfigParsingError(ValueError):
    """Custom exception for errors during solver configuration parsing."""
    pass


@dataclass(frozen=True)
class SolverConfig:
    """
    Attributes:
        dt: Fixed time step used by `Circuit.step`.
        max_iterations: Outer-iteration budget for nonlinear circuits.
        convergence_tolerance: Largest accepted junction-voltage change.
        gmin: Leakage conductance added to every node.
    """
    dt: float = DEFAULT_TIME_STEP
    max_iterations: int = MAX_NONLINEAR_ITERATIONS
    convergence_tolerance: float = JUNCTION_CONVERGENCE_TOLERANCE
    gmin: float = GMIN


def parse_solver_config(raw_config: Optional[Dict[str, Any]]) -> SolverConfig:
    """
    Parses a raw solver block (numbers in SI units or Pint strings such as
    "10 ms") into a SolverConfig. Missing keys keep their defaults.
    """
    if not raw_config:
        return SolverConfig()
    try:
        defaults = SolverConfig()
        dt = to_magnitude(raw_config.get('dt', defaults.dt), 'second')
        max_iterations = int(raw_config.get('max_iterations', defaults.max_iterations))
        tolerance = to_magnitude(raw_config.get('convergence_tolerance', defaults.convergence_tolerance), 'volt')
        gmin = to_magnitude(raw_config.get('gmin', defaults.gmin), 'siemens')

        if not dt > 0: raise ValueError("Time step 'dt' must be > 0.")
        if max_iterations < 1: raise ValueError("'max_iterations' must be >= 1.")
        if not tolerance > 0: raise ValueError("'convergence_tolerance' must be > 0.")
        if gmin < 0: raise ValueError("'gmin' must be >= 0.")

        return SolverConfig(dt=dt, max_iterations=max_iterations, convergence_tolerance=tolerance, gmin=gmin)
    except (KeyError, TypeError, ValueError, pint.errors.PintError) as e:
        raise ConfigParsingError(f"Failed to parse solver configuration: {e}") from e
