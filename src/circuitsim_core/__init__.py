import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("CircuitSim Core package initialized.")

from .units import ureg, pint, Quantity
from .constants import MIN_RESISTANCE, GMIN, PIVOT_EPSILON
from .data_structures import Point, TerminalRef, Wire, Node, ComponentReadout
from .components import ComponentKind, create_component
from .parser import CircuitDescriptionParser
from .simulation import MnaSolver, SolverConfig, SolveResult, SolveMeta, InvalidReason, FailureCategory
from .topology import TopologyBuilder, compact_wires
from .circuit import Circuit
from .errors import CircuitSimError, CircuitBuildError, SimulationRunError

__all__ = [
    # Units
    "ureg", "pint", "Quantity",
    # Numerical constants
    "MIN_RESISTANCE", "GMIN", "PIVOT_EPSILON",
    # Data Structures
    "Point", "TerminalRef", "Wire", "Node", "ComponentReadout",
    # Components
    "ComponentKind", "create_component",
    # Parser
    "CircuitDescriptionParser",
    # Simulation
    "MnaSolver", "SolverConfig", "SolveResult", "SolveMeta", "InvalidReason", "FailureCategory",
    # Topology
    "TopologyBuilder", "compact_wires",
    # Facade
    "Circuit",
    # Top-Level Errors (Actionable Diagnostics)
    "CircuitSimError", "CircuitBuildError", "SimulationRunError",
]
