# src/circuitsim_core/simulation/engine.py

"""
Defines the `MnaSolver`, the orchestrator that turns a numbered circuit into
node voltages and branch currents for one time step.

Lifecycle:
    Idle        no circuit set
    Assembled   `set_circuit` computed solver annotations and auxiliary rows
    Iterating   up to `max_iterations` stamp/factorize/solve passes
    Solved      valid result, nonlinear operating points committed
    Failed      factorization failure, solve failure or non-convergence

The solver never raises for degenerate circuits. Singular systems, bad
numerics and non-convergence come back as `SolveResult(valid=False)` with an
`InvalidReason`.
"""
import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from ..cache import FactorizationCache, create_factorization_key
from ..components.base import ComponentBase
from ..components.base_enums import ComponentKind
from ..components.capabilities import IDynamicContributor, IMnaContributor, INonlinearContributor
from ..data_structures import Node
from .config import SolverConfig
from .context import SolverAnnotation, StampContext
from .diagnostics import detect_short_circuits
from .exceptions import MnaInputError, SingularMatrixError, SolveFailedError
from .integrator import DynamicIntegrator
from .mna import MnaSystem
from .results import InvalidReason, SolveMeta, SolveResult
from .solver import factorize_mna_matrix, solve_mna_system
from .state import SimulationState, SimulationStateEntry

logger = logging.getLogger(__name__)


def _is_shorted(component: ComponentBase) -> bool:
    nodes = component.nodes
    return (
        len(nodes) == 2
        and component.kind is not ComponentKind.GROUND
        and nodes[0] >= 0
        and nodes[0] == nodes[1]
    )


def _is_switch_connected(component: ComponentBase) -> bool:
    nodes = component.nodes
    if component.kind is ComponentKind.SWITCH:
        return nodes[0] >= 0 and nodes[1] >= 0
    if component.kind is ComponentKind.SPDT_SWITCH:
        return nodes[0] >= 0 and (nodes[1] >= 0 or nodes[2] >= 0)
    return False


class MnaSolver:
    """
    Assembles and solves the MNA system for a set of components.

    The solver owns the factorization cache and, unless one is injected, the
    `SimulationState` that carries device history between time steps.
    """

    def __init__(self, config: Optional[SolverConfig] = None, state: Optional[SimulationState] = None):
        self.config: SolverConfig = config or SolverConfig()
        self.simulation_state: SimulationState = state if state is not None else SimulationState()
        self.integrator = DynamicIntegrator(self.simulation_state)
        self.cache = FactorizationCache()

        self.components: List[ComponentBase] = []
        self.annotations: Dict[str, SolverAnnotation] = {}
        self.node_count: int = 0
        self.aux_count: int = 0
        self.switch_connected: bool = False
        self._nonlinear: List[ComponentBase] = []
        logger.debug("MnaSolver initialized.")

    # --- Assembly ---

    def set_circuit(self, components: Sequence[ComponentBase], nodes: Union[Sequence[Node], int]) -> None:
        """
        Takes ownership of a numbered circuit. Recomputes every solver
        annotation, reallocates auxiliary rows and drops the cached
        factorization.

        Args:
            components: Components whose `nodes` arrays were written by the
                        topology builder.
            nodes: The builder's node list, or just the node count.
        """
        self.components = list(components)
        self.node_count = nodes if isinstance(nodes, int) else len(nodes)
        self.annotations = {}
        self.aux_count = 0
        self.switch_connected = False
        self._nonlinear = []

        for comp in self.components:
            try:
                self._validate_nodes(comp)
            except MnaInputError as e:
                logger.warning(f"{e}. The component is skipped.")
                self.annotations[comp.id] = SolverAnnotation(malformed=True)
                continue

            shorted = _is_shorted(comp)
            vs_index = None
            if comp.requires_auxiliary_equation() and not shorted and all(n >= 0 for n in comp.nodes):
                vs_index = self.aux_count
                self.aux_count += 1

            self.annotations[comp.id] = SolverAnnotation(
                shorted=shorted,
                norton_model=comp.uses_norton_model(),
                vs_index=vs_index,
            )
            if _is_switch_connected(comp):
                self.switch_connected = True
            if comp.is_nonlinear():
                self._nonlinear.append(comp)
            self.simulation_state.ensure(comp)

        self.cache.invalidate()
        logger.debug(
            f"Circuit set: {len(self.components)} components, {self.node_count} nodes, "
            f"{self.aux_count} auxiliary equations, switch_connected={self.switch_connected}."
        )

    def _validate_nodes(self, component: ComponentBase) -> None:
        nodes = component.nodes
        if nodes is None or len(nodes) != component.terminal_count():
            raise MnaInputError(
                component_id=component.id,
                details=f"Expected {component.terminal_count()} node indices, got {nodes!r}.",
            )
        for node in nodes:
            if not isinstance(node, (int, np.integer)) or node < -1 or node >= self.node_count:
                raise MnaInputError(
                    component_id=component.id,
                    details=f"Node index {node!r} is outside [-1, {self.node_count}).",
                )

    # --- Solve ---

    def solve(self, dt: float, sim_time: float) -> SolveResult:
        """
        Solves the circuit at `sim_time` with time step `dt`.

        Circuits without nonlinear devices take exactly one pass. Otherwise the
        junction linearization points and relay states are iterated on a
        working copy until the largest junction-voltage change is within
        `convergence_tolerance` and no relay flipped.
        """
        max_iterations = self.config.max_iterations if self._nonlinear else 1
        size = max(0, self.node_count - 1) + self.aux_count
        if self.node_count < 2 or size <= 0:
            return SolveResult(
                voltages=np.zeros(max(self.node_count, 1)),
                currents={comp.id: 0.0 for comp in self.components},
                valid=True,
                meta=SolveMeta(converged=True, iterations=0, max_iterations=max_iterations),
            )

        self.integrator.switch_connected = self.switch_connected
        self.integrator.dt = dt
        system = MnaSystem(self.node_count, self.aux_count)
        working = self.simulation_state.working_copy(self._nonlinear)
        context = StampContext(system, self.annotations, self.integrator, working, dt, sim_time)

        voltages = np.zeros(self.node_count)
        currents: Dict[str, float] = {}
        accepted: Dict[str, SimulationStateEntry] = {}
        converged = False
        iteration = 0

        for iteration in range(1, max_iterations + 1):
            system.reset()
            self._stamp_all(context)
            system.add_gmin(self.config.gmin)

            key = create_factorization_key(
                system.matrix, self.node_count, self.aux_count, dt, self.config.gmin, self.switch_connected
            )
            factorization = self.cache.get(key)
            if factorization is None:
                try:
                    factorization = factorize_mna_matrix(system.matrix)
                except SingularMatrixError as e:
                    logger.warning(f"Factorization failed at t={sim_time:.6g}s: {e}")
                    return self._invalid_result(InvalidReason.FACTORIZATION_FAILED, iteration, max_iterations)
                self.cache.put(key, factorization)

            try:
                solution = solve_mna_system(factorization, system.rhs)
            except SolveFailedError as e:
                logger.warning(f"Solve failed at t={sim_time:.6g}s: {e}")
                return self._invalid_result(InvalidReason.SOLVE_FAILED, iteration, max_iterations)

            context.solution = solution
            voltages = self._extract_voltages(solution)
            currents = self._read_currents(context)

            if not self._nonlinear:
                converged = True
                break

            accepted = {cid: replace(entry) for cid, entry in working.items()}
            max_delta, flipped = self._update_operating_points(context)
            logger.debug(f"Iteration {iteration}: max junction delta {max_delta:.3e} V, relay flipped={flipped}.")
            if max_delta <= self.config.convergence_tolerance and not flipped:
                converged = True
                break
            self.cache.invalidate()

        if not converged:
            logger.warning(f"Nonlinear iteration did not converge within {max_iterations} passes at t={sim_time:.6g}s.")
            return SolveResult(
                voltages=voltages,
                currents=currents,
                valid=False,
                meta=SolveMeta(
                    converged=False,
                    iterations=iteration,
                    max_iterations=max_iterations,
                    invalid_reason=InvalidReason.NOT_CONVERGED,
                ),
            )

        if accepted:
            self.simulation_state.commit(accepted)

        short_ids = detect_short_circuits(self.components, voltages, currents, sim_time)
        return SolveResult(
            voltages=voltages,
            currents=currents,
            valid=True,
            meta=SolveMeta(
                converged=True,
                iterations=iteration,
                max_iterations=max_iterations,
                short_circuit_source_ids=short_ids,
            ),
        )

    def _invalid_result(self, reason: InvalidReason, iteration: int, max_iterations: int) -> SolveResult:
        return SolveResult(
            voltages=np.zeros(self.node_count),
            currents={comp.id: 0.0 for comp in self.components},
            valid=False,
            meta=SolveMeta(
                converged=False, iterations=iteration, max_iterations=max_iterations, invalid_reason=reason
            ),
        )

    def _is_stampable(self, component: ComponentBase) -> bool:
        annotation = self.annotations.get(component.id)
        if annotation is None or annotation.malformed or annotation.shorted:
            return False
        if component.terminal_count() == 2 and (component.nodes[0] < 0 or component.nodes[1] < 0):
            return False
        return True

    def _stamp_all(self, context: StampContext) -> None:
        for comp in self.components:
            if not self._is_stampable(comp):
                continue
            contributor = comp.get_capability(IMnaContributor)
            if contributor is None:
                logger.warning(f"Component '{comp.id}' has no MNA contribution; skipped.")
                continue
            contributor.stamp(comp, context, comp.nodes)

    def _extract_voltages(self, solution: np.ndarray) -> np.ndarray:
        voltages = np.zeros(self.node_count)
        voltages[1:] = solution[:self.node_count - 1]
        return voltages

    def _read_currents(self, context: StampContext) -> Dict[str, float]:
        currents: Dict[str, float] = {}
        for comp in self.components:
            annotation = self.annotations.get(comp.id)
            if annotation is not None and annotation.shorted and annotation.norton_model:
                currents[comp.id] = comp.emf(context.sim_time) / comp.internal_resistance
                continue
            if not self._is_stampable(comp):
                currents[comp.id] = 0.0
                continue
            contributor = comp.get_capability(IMnaContributor)
            currents[comp.id] = float(contributor.current(comp, context, comp.nodes)) if contributor else 0.0
        return currents

    def _update_operating_points(self, context: StampContext):
        max_delta = 0.0
        flipped = False
        for comp in self._nonlinear:
            if not self._is_stampable(comp):
                continue
            contributor = comp.get_capability(INonlinearContributor)
            if contributor is None:
                continue
            update = contributor.update_operating_point(comp, context, comp.nodes)
            max_delta = max(max_delta, update.voltage_delta)
            flipped = flipped or update.state_flipped
        return max_delta, flipped

    # --- Time stepping ---

    def update_dynamic_components(
        self,
        voltages: np.ndarray,
        currents: Optional[Mapping[str, float]] = None,
        dt: Optional[float] = None,
    ) -> None:
        """
        Advances capacitor, inductor and motor history and fuse heating from
        an accepted solution. Call once per valid time step, after `solve`.

        Args:
            voltages: Node voltages of the accepted result.
            currents: Branch currents of the accepted result. Devices missing
                      from the mapping recompute their current from `voltages`.
            dt: The step to integrate over; defaults to the `dt` of the last solve.
        """
        if dt is not None:
            self.integrator.dt = dt

        def node_voltage(node: int) -> float:
            return float(voltages[node]) if 0 <= node < len(voltages) else 0.0

        for comp in self.components:
            contributor = comp.get_capability(IDynamicContributor)
            if contributor is None:
                continue
            if not self._is_stampable(comp):
                # An unwired lead keeps the stored history for reconnection;
                # a device shorted onto one node has discharged.
                annotation = self.annotations.get(comp.id)
                if annotation is not None and annotation.shorted:
                    contributor.commit_step(comp, self.integrator, 0.0, 0.0)
                continue
            voltage = node_voltage(comp.nodes[0]) - node_voltage(comp.nodes[1])
            current = currents.get(comp.id) if currents is not None else None
            contributor.commit_step(comp, self.integrator, voltage, current)

    def reset(self) -> None:
        """Returns every device to its default history and drops the cached factorization."""
        self.simulation_state.reset_for_components(self.components)
        self.cache.invalidate()
        self.cache.clear_stats()

    def get_cache_stats(self) -> Dict[str, int]:
        return self.cache.get_stats()
