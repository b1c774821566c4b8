# src/circuitsim_core/simulation/exceptions.py
"""
Diagnosable exceptions raised inside the solver.

None of these cross the `MnaSolver.solve` boundary: the orchestrator catches
them and reports an invalid result with a reason code instead.
"""
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class MnaInputError(DiagnosableError):
    """A component handed to the solver is malformed (for example a node array of the wrong length)."""
    component_id: str
    details: str

    def __str__(self):
        return f"Malformed component '{self.component_id}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="MNA Input Error",
            details=self.details,
            suggestion="Rebuild the topology so that every component carries one node index per terminal.",
            context={'component_id': self.component_id}
        )


@dataclass()
class SingularMatrixError(DiagnosableError, np.linalg.LinAlgError):
    """
    Raised when LU factorization meets a pivot below PIVOT_EPSILON.

    Catchable both as `DiagnosableError` and as `numpy.linalg.LinAlgError`.
    """
    details: str
    pivot_index: Optional[int] = None

    def __str__(self):
        where = f" at pivot {self.pivot_index}" if self.pivot_index is not None else ""
        return f"Singular matrix detected{where}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Singular Matrix Encountered",
            details=self.details,
            suggestion="This is usually a loop of ideal voltage sources or ideal ammeters, or an ideal source shorted by wires. Add internal resistance or remove the loop.",
            context={}
        )


@dataclass()
class SolveFailedError(DiagnosableError):
    """Raised when forward/back substitution produces non-finite values."""
    details: str

    def __str__(self):
        return f"MNA solve failed: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Numerical Solve Failure",
            details=self.details,
            suggestion="Check for extreme parameter values (very large or very small resistances, capacitances or time steps).",
            context={}
        )
