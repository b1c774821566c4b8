# src/circuitsim_core/circuit.py

"""
Defines the `Circuit`, the facade an editor or script drives.

A `Circuit` owns the placed components, the wires between them and the
simulation clock. It keeps the electrical topology in sync with structural
edits (rebuilding immediately, or once at the end of a batch), hands the
numbered circuit to an `MnaSolver` on every `step`, commits dynamic history
for accepted steps and writes the per-component display readouts.
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Collection, Dict, Iterator, List, Optional, Union

from .components.base import ComponentBase, create_component
from .components.base_enums import SOURCE_KINDS, ComponentKind
from .components.exceptions import ComponentError
from .components.geometry import terminal_position
from .data_structures import ComponentReadout, Point, TerminalRef, Wire
from .errors import CircuitBuildError, DiagnosableError, SimulationRunError, format_diagnostic_report
from .parser import CircuitDescriptionParser, ParsedCircuitDescription
from .simulation.config import ConfigParsingError, SolverConfig, parse_solver_config
from .simulation.diagnostics import FailureCategory, classify_failures
from .simulation.engine import MnaSolver
from .simulation.results import SolveResult
from .simulation.state import SimulationState
from .topology import (
    CompactionResult,
    ConnectivityCache,
    TopologyBuilder,
    TopologyIssue,
    TopologyResult,
    check_topology,
    compact_wires,
    sync_wire_endpoints_to_terminal_refs,
)

logger = logging.getLogger(__name__)

TerminalPositionResolver = Callable[[ComponentBase, int], Optional[Point]]


class Circuit:
    """
    A drawable, steppable circuit.

    Attributes:
        components: Component id -> component, in insertion order.
        wires: Wire id -> wire.
        topology: The most recent `TopologyResult`, or None before the first build.
        topology_version: Incremented on every rebuild.
        sim_time: Simulated time of the next step, in seconds.
        last_result: The `SolveResult` of the most recent step.
    """

    def __init__(
        self,
        name: str = "circuit",
        config: Optional[SolverConfig] = None,
        terminal_position_resolver: TerminalPositionResolver = terminal_position,
    ):
        self.name = name
        self.config = config or SolverConfig()
        self.source_file_path: Optional[Path] = None
        self.components: Dict[str, ComponentBase] = {}
        self.wires: Dict[str, Wire] = {}

        self.terminal_position_resolver = terminal_position_resolver
        self._builder = TopologyBuilder(terminal_position_resolver)
        self.connectivity = ConnectivityCache()
        self.topology: Optional[TopologyResult] = None
        self.topology_version = 0
        self._batch_depth = 0
        self._rebuild_pending = False

        self.simulation_state = SimulationState()
        self.solver = MnaSolver(self.config, self.simulation_state)
        self.sim_time = 0.0
        self.last_result: Optional[SolveResult] = None

    def __repr__(self) -> str:
        return (
            f"Circuit(name='{self.name}', components={len(self.components)}, "
            f"wires={len(self.wires)}, t={self.sim_time:.6g})"
        )

    # --- Structural edits ---

    def add_component(self, component: ComponentBase) -> ComponentBase:
        if component.id in self.components:
            raise ComponentError(component_id=component.id, details="A component with this id already exists.")
        self.components[component.id] = component
        self._topology_changed()
        return component

    def create_component(self, kind: Union[ComponentKind, str], instance_id: str, **kwargs) -> ComponentBase:
        """Instantiates a registered device and adds it to the circuit."""
        return self.add_component(create_component(kind, instance_id, **kwargs))

    def remove_component(self, component_id: str) -> ComponentBase:
        component = self.components.pop(component_id)
        self.simulation_state.remove(component_id)
        for wire in self.wires.values():
            if wire.a_ref is not None and wire.a_ref.component_id == component_id:
                wire.a_ref = None
            if wire.b_ref is not None and wire.b_ref.component_id == component_id:
                wire.b_ref = None
        self._topology_changed()
        return component

    def move_component(self, component_id: str, x: float, y: float, rotation: Optional[int] = None) -> None:
        component = self.components[component_id]
        component.x, component.y = x, y
        if rotation is not None:
            component.rotation = rotation
        self._topology_changed()

    def add_wire(self, wire: Wire) -> Wire:
        if wire.id in self.wires:
            raise ValueError(f"A wire with id '{wire.id}' already exists.")
        wire.a = Point.quantize(*wire.a)
        wire.b = Point.quantize(*wire.b)
        self.wires[wire.id] = wire
        self._topology_changed()
        return wire

    def connect(self, wire_id: str, a: TerminalRef, b: TerminalRef) -> Wire:
        """Adds a wire bound at both ends to component terminals."""
        a_point = self._terminal_point(a)
        b_point = self._terminal_point(b)
        return self.add_wire(Wire(id=wire_id, a=a_point, b=b_point, a_ref=a, b_ref=b))

    def _terminal_point(self, ref: TerminalRef) -> Point:
        component = self.components[ref.component_id]
        position = self.terminal_position_resolver(component, ref.terminal_index)
        if position is None:
            raise ComponentError(
                component_id=ref.component_id,
                details=f"Terminal index {ref.terminal_index} does not exist.",
            )
        return Point.quantize(*position)

    def remove_wire(self, wire_id: str) -> Wire:
        wire = self.wires.pop(wire_id)
        self._topology_changed()
        return wire

    def compact_wires(self, scope_wire_ids: Optional[Collection[str]] = None) -> CompactionResult:
        """Merges redundant wire segments; see `topology.compact_wires`."""
        result = compact_wires(
            self.wires, self.components.values(), self.terminal_position_resolver, scope_wire_ids
        )
        if result.changed:
            self._topology_changed()
        return result

    # --- Topology maintenance ---

    def begin_topology_batch(self) -> None:
        self._batch_depth += 1

    def end_topology_batch(self) -> bool:
        """
        Closes one batch level. The outermost close performs the deferred
        rebuild, if any edit requested one.

        Returns:
            True when this call rebuilt the topology.
        """
        if self._batch_depth == 0:
            logger.warning("end_topology_batch() called without a matching begin_topology_batch().")
            return False
        self._batch_depth -= 1
        if self._batch_depth == 0 and self._rebuild_pending:
            self.rebuild_topology()
            return True
        return False

    @contextmanager
    def topology_batch(self) -> Iterator["Circuit"]:
        self.begin_topology_batch()
        try:
            yield self
        finally:
            self.end_topology_batch()

    @property
    def in_topology_batch(self) -> bool:
        return self._batch_depth > 0

    def _topology_changed(self) -> None:
        if self._batch_depth > 0:
            self._rebuild_pending = True
        else:
            self.rebuild_topology()

    def rebuild_topology(self) -> TopologyResult:
        moved = sync_wire_endpoints_to_terminal_refs(
            self.wires.values(), self.components, self.terminal_position_resolver
        )
        if moved:
            logger.debug(f"Synchronized {moved} wire endpoint(s) to their terminals.")
        self.topology = self._builder.build(self.components, self.wires)
        self.topology_version += 1
        self._rebuild_pending = False
        logger.debug(f"Topology version {self.topology_version}: {self.topology.node_count} nodes.")
        return self.topology

    def _ensure_topology(self) -> TopologyResult:
        if self.topology is None or (self._rebuild_pending and self._batch_depth == 0):
            return self.rebuild_topology()
        return self.topology

    def is_component_connected(self, component: ComponentBase) -> bool:
        topology = self._ensure_topology()
        return self.connectivity.is_connected(component, self.topology_version, topology.terminal_degree)

    def check_topology(self) -> List[TopologyIssue]:
        topology = self._ensure_topology()
        return check_topology(self.components.values(), topology.node_count)

    # --- Simulation ---

    def step(self, dt: Optional[float] = None) -> SolveResult:
        """
        Advances the simulation by one fixed step.

        The circuit is solved at the current `sim_time`; on a valid result the
        capacitor, inductor, motor and fuse history is committed and `sim_time`
        advances by `dt`. An invalid step leaves both untouched, so the next
        attempt solves the same instant again.
        """
        dt = self.config.dt if dt is None else dt
        topology = self._ensure_topology()

        self.solver.set_circuit(list(self.components.values()), topology.nodes)
        result = self.solver.solve(dt, self.sim_time)
        if result.valid:
            self.solver.update_dynamic_components(result.voltages, result.currents, dt)
            self.sim_time += dt
        else:
            logger.warning(
                f"Step at t={self.sim_time:.6g}s is invalid ({result.meta.invalid_reason.value})."
            )

        self._write_readouts(result)
        self.last_result = result
        return result

    def run(self, steps: int, dt: Optional[float] = None, strict: bool = False) -> List[SolveResult]:
        """
        Takes `steps` consecutive steps.

        Raises:
            SimulationRunError: With `strict`, on the first invalid step. The
                                report names the failure reason and the
                                classified causes.
        """
        results = []
        for _ in range(steps):
            result = self.step(dt)
            results.append(result)
            if strict and not result.valid:
                raise SimulationRunError(self._invalid_step_report(result))
        return results

    def _invalid_step_report(self, result: SolveResult) -> str:
        categories = ", ".join(c.value for c in self.failure_categories()) or "none identified"
        return format_diagnostic_report(
            error_type="Invalid Simulation Step",
            details=(
                f"Circuit '{self.name}' could not be solved ({result.meta.invalid_reason.value}) "
                f"after {result.meta.iterations} of {result.meta.max_iterations} iteration(s).\n"
                f"Likely causes: {categories}."
            ),
            suggestion="Check for ideal sources wired in parallel, shorted sources and floating parts of the circuit.",
            context={'sim_time': f"{self.sim_time:.6g} s"},
        )

    def _write_readouts(self, result: SolveResult) -> None:
        for comp in self.components.values():
            readout = ComponentReadout()
            readout.connected = self.is_component_connected(comp)
            annotation = self.solver.annotations.get(comp.id)
            shorted = annotation is not None and annotation.shorted
            if readout.connected and comp.kind is not ComponentKind.GROUND and (
                not shorted or comp.kind in SOURCE_KINDS
            ):
                current = result.currents.get(comp.id, 0.0)
                voltage = 0.0
                if len(comp.nodes) >= 2 and not shorted:
                    voltage = result.voltage_across(comp.nodes[0], comp.nodes[1])
                readout.current = current
                readout.voltage = voltage
                readout.power = voltage * current
                readout.brightness = comp.brightness(current, voltage)
            comp.readout = readout

    def failure_categories(self) -> List[FailureCategory]:
        """Problems of the last step, highest priority first."""
        if self.last_result is None:
            return []
        return classify_failures(self.last_result, self.check_topology())

    def reset(self) -> None:
        """Rewinds the clock and returns all device history to its defaults."""
        self.sim_time = 0.0
        self.last_result = None
        self.simulation_state.reset_for_components(self.components.values())
        self.solver.cache.invalidate()
        for comp in self.components.values():
            comp.readout = ComponentReadout()
        logger.info(f"Circuit '{self.name}' reset.")

    # --- Construction from descriptions ---

    @classmethod
    def from_description(cls, description: ParsedCircuitDescription) -> "Circuit":
        config = parse_solver_config(description.raw_solver_config)
        circuit = cls(name=description.circuit_name, config=config)
        circuit.source_file_path = description.source_yaml_path
        with circuit.topology_batch():
            for comp_data in description.components:
                circuit.create_component(
                    comp_data.component_type,
                    comp_data.instance_id,
                    x=comp_data.x,
                    y=comp_data.y,
                    rotation=comp_data.rotation,
                    **comp_data.raw_parameters_dict,
                )
            for wire_data in description.wires:
                circuit.add_wire(Wire(
                    id=wire_data.wire_id,
                    a=Point.quantize(*wire_data.a),
                    b=Point.quantize(*wire_data.b),
                    a_ref=TerminalRef(*wire_data.a_ref) if wire_data.a_ref else None,
                    b_ref=TerminalRef(*wire_data.b_ref) if wire_data.b_ref else None,
                ))
        logger.info(f"Built circuit '{circuit.name}' ({len(circuit.components)} components).")
        return circuit

    @classmethod
    def load_file(cls, yaml_path: Union[str, Path]) -> "Circuit":
        """
        Parses a YAML circuit description and builds a ready `Circuit`.

        Raises:
            CircuitBuildError: Any parsing, schema, parameter or configuration
                               problem, carrying a diagnostic report.
        """
        try:
            description = CircuitDescriptionParser().parse_file(yaml_path)
            return cls.from_description(description)
        except DiagnosableError as e:
            report = e.get_diagnostic_report()
            logger.error(f"Circuit build failed: {e}")
            raise CircuitBuildError(report) from e
        except ConfigParsingError as e:
            report = format_diagnostic_report(
                error_type="Solver Configuration Error",
                details=str(e),
                suggestion="Give 'dt', 'convergence_tolerance' and 'gmin' as positive numbers or unit strings such as '10 ms'.",
                context={'source_file': yaml_path},
            )
            logger.error(f"Circuit build failed: {e}")
            raise CircuitBuildError(report) from e
