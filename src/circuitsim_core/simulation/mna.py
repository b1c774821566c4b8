# src/circuitsim_core/simulation/mna.py
"""
Dense MNA system: the matrix and right-hand side plus the stamping
primitives every device uses.

Unknown layout: node k (k >= 1) is row k-1; auxiliary equation j is row
(node_count - 1) + j. Node 0 (ground) and -1 (unconnected) have no row, so
stamps touching them only write the other side.
"""
import logging
import math
from typing import Optional

import numpy as np

from ..components.passives import clamp_resistance
from ..constants import MIN_STAMPED_CURRENT

logger = logging.getLogger(__name__)


class MnaSystem:
    """A dense n x n system, n = (node_count - 1) + aux_count."""

    def __init__(self, node_count: int, aux_count: int):
        self.node_count = node_count
        self.aux_count = aux_count
        self.size = max(0, node_count - 1) + aux_count
        self.matrix = np.zeros((self.size, self.size), dtype=float)
        self.rhs = np.zeros(self.size, dtype=float)

    def reset(self) -> None:
        self.matrix.fill(0.0)
        self.rhs.fill(0.0)

    def node_row(self, node: int) -> Optional[int]:
        if node is None or node <= 0 or node >= self.node_count:
            return None
        return node - 1

    def aux_row(self, vs_index: int) -> int:
        return self.node_count - 1 + vs_index

    def stamp_conductance(self, n1: int, n2: int, conductance: float) -> None:
        i1, i2 = self.node_row(n1), self.node_row(n2)
        if i1 is not None:
            self.matrix[i1, i1] += conductance
        if i2 is not None:
            self.matrix[i2, i2] += conductance
        if i1 is not None and i2 is not None:
            self.matrix[i1, i2] -= conductance
            self.matrix[i2, i1] -= conductance

    def stamp_resistor(self, n1: int, n2: int, resistance: float) -> None:
        self.stamp_conductance(n1, n2, 1.0 / clamp_resistance(resistance))

    def stamp_current_source(self, n_from: int, n_to: int, current: float) -> None:
        """A constant current flowing out of `n_from` through the device into `n_to`."""
        if not math.isfinite(current) or abs(current) < MIN_STAMPED_CURRENT:
            return
        i_from, i_to = self.node_row(n_from), self.node_row(n_to)
        if i_from is not None:
            self.rhs[i_from] -= current
        if i_to is not None:
            self.rhs[i_to] += current

    def stamp_voltage_source(
        self, n1: int, n2: int, voltage: float, vs_index: Optional[int], series_resistance: float = 0.0
    ) -> None:
        """
        Enforces V(n1) - V(n2) - series_resistance * I = voltage, where the
        auxiliary unknown I is the current entering the device at n1.
        """
        if vs_index is None:
            logger.warning("Voltage source stamp without an auxiliary index was skipped.")
            return
        k = self.aux_row(vs_index)
        i1, i2 = self.node_row(n1), self.node_row(n2)
        if i1 is not None:
            self.matrix[k, i1] += 1.0
            self.matrix[i1, k] += 1.0
        if i2 is not None:
            self.matrix[k, i2] -= 1.0
            self.matrix[i2, k] -= 1.0
        if series_resistance:
            self.matrix[k, k] -= series_resistance
        self.rhs[k] += voltage

    def add_gmin(self, gmin: float) -> None:
        """Leakage to ground on every node row; auxiliary rows are untouched."""
        for i in range(max(0, self.node_count - 1)):
            self.matrix[i, i] += gmin
