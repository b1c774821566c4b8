# src/circuitsim_core/simulation/results.py
"""
Result contracts of the MNA solver.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np


class InvalidReason(Enum):
    FACTORIZATION_FAILED = "factorization_failed"
    SOLVE_FAILED = "solve_failed"
    NOT_CONVERGED = "not_converged"


@dataclass(frozen=True)
class SolveMeta:
    """
    Attributes:
        converged: The accepted solution satisfied the nonlinear convergence test
                   (always True for linear circuits that solved).
        iterations: Outer passes performed.
        max_iterations: The pass budget for this circuit (1 when no nonlinear device).
        invalid_reason: Why the result is invalid, or None.
        short_circuit_source_ids: Sources flagged by the short-circuit detector.
    """
    converged: bool
    iterations: int
    max_iterations: int
    invalid_reason: Optional[InvalidReason] = None
    short_circuit_source_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def short_circuit_detected(self) -> bool:
        return bool(self.short_circuit_source_ids)


@dataclass(frozen=True)
class SolveResult:
    """
    Attributes:
        voltages: Node voltages, index = node index; voltages[0] is ground (0 V).
        currents: Branch current per component id.
        valid: False on factorization/solve failure or non-convergence.
        meta: Iteration details and diagnostics.
    """
    voltages: np.ndarray
    currents: Dict[str, float]
    valid: bool
    meta: SolveMeta

    def voltage_across(self, n1: int, n2: int) -> float:
        v1 = self.voltages[n1] if 0 <= n1 < len(self.voltages) else 0.0
        v2 = self.voltages[n2] if 0 <= n2 < len(self.voltages) else 0.0
        return float(v1 - v2)
