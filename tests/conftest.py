# tests/conftest.py
from typing import Dict, Optional, Sequence

import pytest

from circuitsim_core.components import create_component
from circuitsim_core.components.base import ComponentBase
from circuitsim_core.data_structures import Point
from circuitsim_core.simulation import MnaSolver


def make(kind: str, instance_id: str, nodes: Optional[Sequence[int]] = None, **params) -> ComponentBase:
    """Creates a device with a pre-assigned node array."""
    return create_component(kind, instance_id, nodes=nodes, **params)


def solve_once(components, node_count: int, dt: float = 0.01, sim_time: float = 0.0, solver: MnaSolver = None):
    solver = solver or MnaSolver()
    solver.set_circuit(components, node_count)
    return solver.solve(dt, sim_time)


class FixedResolver:
    """Terminal positions taken from a plain table: (component id, terminal) -> (x, y)."""

    def __init__(self, table: Dict[tuple, tuple]):
        self.table = table

    def __call__(self, component: ComponentBase, terminal_index: int) -> Optional[Point]:
        position = self.table.get((component.id, terminal_index))
        return Point(*position) if position is not None else None


@pytest.fixture
def solver():
    return MnaSolver()
