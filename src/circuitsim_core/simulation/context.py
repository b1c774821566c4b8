# src/circuitsim_core/simulation/context.py
"""
Per-solve objects handed to device handlers.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional

import numpy as np

from .mna import MnaSystem
from .state import SimulationStateEntry

if TYPE_CHECKING:
    from ..components.base import ComponentBase
    from .integrator import DynamicIntegrator


@dataclass(frozen=True)
class SolverAnnotation:
    """
    Solver bookkeeping for one component, recomputed on every `set_circuit`
    and kept apart from the component itself.

    Attributes:
        shorted: Both terminals of a two-terminal device sit on the same node.
        norton_model: The source is stamped as a Norton equivalent.
        vs_index: Auxiliary equation index, or None when the device has none.
        malformed: The node array is unusable; the device is never stamped.
    """
    shorted: bool = False
    norton_model: bool = False
    vs_index: Optional[int] = None
    malformed: bool = False


_DEFAULT_ANNOTATION = SolverAnnotation()


class StampContext:
    """
    The surface device handlers see during one `solve`: stamping primitives,
    trial/solved voltages, annotations, the integrator and the
    iteration-local working state of nonlinear devices.
    """

    def __init__(
        self,
        system: MnaSystem,
        annotations: Dict[str, SolverAnnotation],
        integrator: "DynamicIntegrator",
        working_state: Dict[str, SimulationStateEntry],
        dt: float,
        sim_time: float,
    ):
        self.system = system
        self.annotations = annotations
        self.integrator = integrator
        self.working_state = working_state
        self.dt = dt
        self.sim_time = sim_time
        self.solution: Optional[np.ndarray] = None

    # --- Stamping primitives ---

    def stamp_resistor(self, n1: int, n2: int, resistance: float) -> None:
        self.system.stamp_resistor(n1, n2, resistance)

    def stamp_conductance(self, n1: int, n2: int, conductance: float) -> None:
        self.system.stamp_conductance(n1, n2, conductance)

    def stamp_current_source(self, n_from: int, n_to: int, current: float) -> None:
        self.system.stamp_current_source(n_from, n_to, current)

    def stamp_voltage_source(
        self, n1: int, n2: int, voltage: float, vs_index: Optional[int], series_resistance: float = 0.0
    ) -> None:
        self.system.stamp_voltage_source(n1, n2, voltage, vs_index, series_resistance)

    # --- Readback ---

    def voltage(self, node: int) -> float:
        row = self.system.node_row(node)
        if row is None or self.solution is None:
            return 0.0
        return float(self.solution[row])

    def aux_current(self, vs_index: int) -> float:
        if self.solution is None:
            return 0.0
        return float(self.solution[self.system.aux_row(vs_index)])

    # --- Lookups ---

    def annotation(self, component: "ComponentBase") -> SolverAnnotation:
        return self.annotations.get(component.id, _DEFAULT_ANNOTATION)

    def state(self, component: "ComponentBase") -> SimulationStateEntry:
        entry = self.working_state.get(component.id)
        if entry is None:
            entry = self.integrator.state(component)
        return entry
