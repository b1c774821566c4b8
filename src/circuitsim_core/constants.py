# --- src/circuitsim_core/constants.py ---
import logging

logger = logging.getLogger(__name__)

# --- Numerical Constants for the MNA Solver ---

#: Floor applied to every stamped resistance. Zero or negative resistances are
#: clamped to this value so a single bad parameter cannot make the matrix singular.
#: Also the threshold above which a source's internal resistance selects a Norton stamp.
MIN_RESISTANCE: float = 1.0e-9  # ohm

#: Leakage conductance added to every non-ground diagonal entry of the system matrix.
GMIN: float = 1.0e-12  # siemens

#: Smallest pivot magnitude accepted by the LU factorization.
PIVOT_EPSILON: float = 1.0e-15

#: Resistance of an open switch, open relay contact or blown fuse.
OPEN_CIRCUIT_RESISTANCE: float = 1.0e12  # ohm

#: Resistance of a closed switch.
CLOSED_SWITCH_RESISTANCE: float = MIN_RESISTANCE  # ohm

#: Current-source stamps smaller than this are skipped.
MIN_STAMPED_CURRENT: float = 1.0e-18  # A

#: Lower clamps for energy storage elements.
MIN_CAPACITANCE: float = 1.0e-18  # F
MIN_INDUCTANCE: float = 1.0e-12  # H

# --- Nonlinear Iteration ---

#: Outer fixed-point passes allowed for circuits with diodes, LEDs or relays.
MAX_NONLINEAR_ITERATIONS: int = 40

#: Largest junction linearization-point change accepted as converged.
JUNCTION_CONVERGENCE_TOLERANCE: float = 1.0e-6  # V

# --- Junction Physics ---

#: kT/q at 300 K.
THERMAL_VOLTAGE_300K: float = 0.025865  # V

#: Exponent arguments are clamped to +/- this value before exp().
JUNCTION_EXPONENT_LIMIT: float = 80.0

#: Newton passes and tolerance of the series-resistance junction current solve.
JUNCTION_NEWTON_ITERATIONS: int = 8
JUNCTION_NEWTON_TOLERANCE: float = 1.0e-14  # A

#: Fraction of the reference current above which a junction reports `conducting`.
CONDUCTION_CURRENT_RATIO: float = 0.01

# --- Physical Constants ---

VACUUM_PERMITTIVITY: float = 8.854187817e-12  # F/m
ZERO_CELSIUS_KELVIN: float = 273.15
REFERENCE_TEMPERATURE_KELVIN: float = 298.15

# --- Short-Circuit Heuristics ---

#: A source delivering at least this fraction of E/r is a short-circuit candidate.
SHORT_CIRCUIT_CURRENT_RATIO: float = 0.95
#: ...and its terminal voltage must be below max(floor, ratio * |E|).
SHORT_CIRCUIT_VOLTAGE_RATIO: float = 0.05
SHORT_CIRCUIT_VOLTAGE_FLOOR: float = 0.05  # V

logger.debug("Defined solver constants: MIN_RESISTANCE, GMIN, PIVOT_EPSILON")
