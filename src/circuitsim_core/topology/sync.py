# src/circuitsim_core/topology/sync.py
import logging
from typing import Callable, Dict, Iterable, Optional

from ..components.base import ComponentBase
from ..data_structures import Point, Wire

logger = logging.getLogger(__name__)


def sync_wire_endpoints_to_terminal_refs(
    wires: Iterable[Wire],
    components: Dict[str, ComponentBase],
    terminal_position_resolver: Callable[[ComponentBase, int], Optional[Point]],
) -> int:
    """
    Moves every terminal-bound wire endpoint onto its terminal's current
    position. References to missing components or terminals are dropped.

    Returns:
        The number of endpoints that moved or lost their reference.
    """
    changed = 0
    for wire in wires:
        for which in ('a', 'b'):
            ref = wire.ref(which)
            if ref is None:
                continue
            comp = components.get(ref.component_id)
            position = terminal_position_resolver(comp, ref.terminal_index) if comp is not None else None
            if position is None:
                logger.debug(f"Wire '{wire.id}' end {which} lost its terminal {ref}.")
                if which == 'a':
                    wire.a_ref = None
                else:
                    wire.b_ref = None
                changed += 1
                continue
            position = Point.quantize(*position)
            if wire.endpoint(which) != position:
                if which == 'a':
                    wire.a = position
                else:
                    wire.b = position
                changed += 1
    return changed
