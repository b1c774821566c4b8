# src/circuitsim_core/simulation/diagnostics.py
"""
Post-solve diagnostics: the short-circuit detector and the classification of
a step's problems into user-facing failure categories.

The short-circuit thresholds are heuristics. A source is flagged when it
delivers at least SHORT_CIRCUIT_CURRENT_RATIO of its theoretical short
current E/r while its terminal voltage has collapsed to within
max(SHORT_CIRCUIT_VOLTAGE_FLOOR, SHORT_CIRCUIT_VOLTAGE_RATIO*|E|).
"""
import logging
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from ..components.base import ComponentBase
from ..components.base_enums import SOURCE_KINDS
from ..constants import (
    MIN_RESISTANCE,
    SHORT_CIRCUIT_CURRENT_RATIO,
    SHORT_CIRCUIT_VOLTAGE_FLOOR,
    SHORT_CIRCUIT_VOLTAGE_RATIO,
)
from ..topology.validation import TopologyIssue, TopologyIssueCode
from .results import InvalidReason, SolveResult

logger = logging.getLogger(__name__)


def _node_voltage(voltages: np.ndarray, node: int) -> float:
    if 0 <= node < len(voltages):
        return float(voltages[node])
    return 0.0


def detect_short_circuits(
    components: Iterable[ComponentBase],
    voltages: np.ndarray,
    currents: Mapping[str, float],
    sim_time: float,
) -> Tuple[str, ...]:
    """
    Returns the ids of sources that are shorted out, either directly (both
    terminals on one node) or through a near-zero external load.
    """
    flagged: List[str] = []
    for comp in components:
        if comp.kind not in SOURCE_KINDS or len(comp.nodes) != 2:
            continue
        n_pos, n_neg = comp.nodes
        if n_pos < 0 or n_neg < 0:
            continue
        if n_pos == n_neg:
            flagged.append(comp.id)
            continue

        r = comp.internal_resistance
        emf = comp.emf(sim_time)
        if not r > MIN_RESISTANCE or emf == 0:
            continue
        short_current = abs(emf) / r
        delivered = abs(currents.get(comp.id, 0.0))
        terminal_voltage = abs(_node_voltage(voltages, n_pos) - _node_voltage(voltages, n_neg))
        voltage_limit = max(SHORT_CIRCUIT_VOLTAGE_FLOOR, SHORT_CIRCUIT_VOLTAGE_RATIO * abs(emf))
        if delivered >= SHORT_CIRCUIT_CURRENT_RATIO * short_current and terminal_voltage <= voltage_limit:
            flagged.append(comp.id)

    if flagged:
        logger.warning(f"Short circuit detected across source(s): {flagged}")
    return tuple(flagged)


class FailureCategory(Enum):
    CONFLICTING_SOURCES = "conflicting_sources"
    SHORT_CIRCUIT = "short_circuit"
    SINGULAR_MATRIX = "singular_matrix"
    NOT_CONVERGED = "not_converged"
    FLOATING_SUBCIRCUIT = "floating_subcircuit"

    @property
    def is_fatal(self) -> bool:
        return self is not FailureCategory.FLOATING_SUBCIRCUIT


#: Highest priority first.
FAILURE_PRIORITY: Sequence[FailureCategory] = (
    FailureCategory.CONFLICTING_SOURCES,
    FailureCategory.SHORT_CIRCUIT,
    FailureCategory.SINGULAR_MATRIX,
    FailureCategory.NOT_CONVERGED,
    FailureCategory.FLOATING_SUBCIRCUIT,
)

_ISSUE_CATEGORY: Dict[TopologyIssueCode, FailureCategory] = {
    TopologyIssueCode.CONFLICTING_SOURCES: FailureCategory.CONFLICTING_SOURCES,
    TopologyIssueCode.FLOATING_SUBCIRCUIT: FailureCategory.FLOATING_SUBCIRCUIT,
}

_REASON_CATEGORY: Dict[InvalidReason, FailureCategory] = {
    InvalidReason.FACTORIZATION_FAILED: FailureCategory.SINGULAR_MATRIX,
    InvalidReason.SOLVE_FAILED: FailureCategory.SINGULAR_MATRIX,
    InvalidReason.NOT_CONVERGED: FailureCategory.NOT_CONVERGED,
}


def classify_failures(result: SolveResult, issues: Iterable[TopologyIssue] = ()) -> List[FailureCategory]:
    """
    Merges the solver's verdict and the topology issues into a de-duplicated
    list of categories ordered by FAILURE_PRIORITY.
    """
    found = set()
    for issue in issues:
        found.add(_ISSUE_CATEGORY[issue.code])
    if result.meta.short_circuit_source_ids:
        found.add(FailureCategory.SHORT_CIRCUIT)
    if result.meta.invalid_reason is not None:
        found.add(_REASON_CATEGORY[result.meta.invalid_reason])
    return [category for category in FAILURE_PRIORITY if category in found]
