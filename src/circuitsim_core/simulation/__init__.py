from .exceptions import (
    MnaInputError,
    SingularMatrixError,
    SolveFailedError,
)
from .config import SolverConfig, ConfigParsingError, parse_solver_config
from .mna import MnaSystem
from .solver import LuFactorization, factorize_mna_matrix, solve_mna_system
from .context import SolverAnnotation, StampContext
from .state import SimulationState, SimulationStateEntry, default_entry
from .integrator import CompanionModel, DynamicIntegrator
from .results import InvalidReason, SolveMeta, SolveResult
from .diagnostics import FailureCategory, FAILURE_PRIORITY, classify_failures, detect_short_circuits
from .engine import MnaSolver

__all__ = [
    # Exceptions
    "MnaInputError",
    "SingularMatrixError",
    "SolveFailedError",
    "ConfigParsingError",
    # Configuration
    "SolverConfig",
    "parse_solver_config",
    # Core Classes
    "MnaSystem",
    "LuFactorization",
    "factorize_mna_matrix",
    "solve_mna_system",
    "SolverAnnotation",
    "StampContext",
    "SimulationState",
    "SimulationStateEntry",
    "default_entry",
    "CompanionModel",
    "DynamicIntegrator",
    "MnaSolver",
    # Results and diagnostics
    "InvalidReason",
    "SolveMeta",
    "SolveResult",
    "FailureCategory",
    "FAILURE_PRIORITY",
    "classify_failures",
    "detect_short_circuits",
]
