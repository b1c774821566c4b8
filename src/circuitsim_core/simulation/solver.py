# src/circuitsim_core/simulation/solver.py
import logging
import warnings
from dataclasses import dataclass

import numpy as np
import scipy.linalg

from ..constants import PIVOT_EPSILON
from .exceptions import SingularMatrixError, SolveFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LuFactorization:
    """Packed LU factors and pivot indices as returned by LAPACK getrf."""
    lu: np.ndarray
    piv: np.ndarray

    @property
    def size(self) -> int:
        return self.lu.shape[0]


def factorize_mna_matrix(matrix: np.ndarray) -> LuFactorization:
    """
    Factorizes a dense MNA matrix with partial pivoting.

    Args:
        matrix: The square n x n system matrix.

    Returns:
        The LU factorization.

    Raises:
        SingularMatrixError: A pivot magnitude fell below PIVOT_EPSILON, or the
                             matrix contains NaN/Inf.
        ValueError: If the matrix is not square.
    """
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError("MNA matrix must be square.")

    logger.debug(f"Factorizing MNA matrix ({matrix.shape})...")
    try:
        with warnings.catch_warnings():
            # Exactly singular matrices are reported through the pivot check below.
            warnings.simplefilter("ignore", scipy.linalg.LinAlgWarning)
            lu, piv = scipy.linalg.lu_factor(matrix, check_finite=True)
    except ValueError as e:
        logger.error(f"LU factorization rejected the matrix: {e}")
        raise SingularMatrixError(details=str(e)) from e

    pivots = np.abs(np.diag(lu))
    if pivots.size:
        smallest = int(np.argmin(pivots))
        if not np.isfinite(pivots).all() or pivots[smallest] < PIVOT_EPSILON:
            logger.debug(f"Pivot {smallest} magnitude {pivots[smallest]:.3e} below {PIVOT_EPSILON:.0e}.")
            raise SingularMatrixError(
                details=f"Pivot magnitude {pivots[smallest]:.3e} is below {PIVOT_EPSILON:.0e}.",
                pivot_index=smallest,
            )
    return LuFactorization(lu=lu, piv=piv)


def solve_mna_system(factorization: LuFactorization, rhs: np.ndarray) -> np.ndarray:
    """
    Solves the MNA system using a pre-computed LU factorization.

    Raises:
        SolveFailedError: The solution contains NaN or Inf.
    """
    if rhs.shape[0] != factorization.size:
        raise ValueError(f"RHS length {rhs.shape[0]} does not match matrix size {factorization.size}.")

    solution = scipy.linalg.lu_solve((factorization.lu, factorization.piv), rhs, check_finite=False)

    if not np.all(np.isfinite(solution)):
        logger.error("NaN or Inf detected in MNA solution vector.")
        raise SolveFailedError(details="Forward/back substitution produced NaN/Inf values.")

    return solution
