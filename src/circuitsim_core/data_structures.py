# src/circuitsim_core/data_structures.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

logger = logging.getLogger(__name__)


class Point(NamedTuple):
    """An integer canvas coordinate. Equal points are electrically joined."""
    x: int
    y: int

    @classmethod
    def quantize(cls, x: float, y: float) -> "Point":
        return cls(int(round(x)), int(round(y)))


@dataclass(frozen=True)
class TerminalRef:
    """Binds a wire endpoint to a component terminal."""
    component_id: str
    terminal_index: int


@dataclass
class Wire:
    """
    An ideal, zero-resistance conductor between two canvas points.

    `a_ref`/`b_ref` pin an endpoint to a component terminal so the endpoint can
    follow the component when it moves. `node_index` is written by the
    topology builder (-1 when the wire is not part of any numbered node).
    """
    id: str
    a: Point
    b: Point
    a_ref: Optional[TerminalRef] = None
    b_ref: Optional[TerminalRef] = None
    node_index: int = -1

    def endpoint(self, which: str) -> Point:
        return self.a if which == 'a' else self.b

    def ref(self, which: str) -> Optional[TerminalRef]:
        return self.a_ref if which == 'a' else self.b_ref


@dataclass
class Node:
    """
    An electrical node produced by the topology builder. Node 0 is ground.
    Nodes are recomputed on every structural change.
    """
    index: int
    terminals: List[TerminalRef] = field(default_factory=list)
    wire_ids: List[str] = field(default_factory=list)

    @property
    def is_ground(self) -> bool:
        return self.index == 0


@dataclass
class ComponentReadout:
    """Per-step display values written by `Circuit.step`."""
    current: float = 0.0
    voltage: float = 0.0
    power: float = 0.0
    brightness: float = 0.0
    connected: bool = False
