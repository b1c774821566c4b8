# src/circuitsim_core/components/geometry.py
"""
Default terminal geometry: where each terminal of each device kind sits on
the canvas. The topology builder accepts any resolver with the signature of
`terminal_position`; this one is used by the `Circuit` facade.
"""
import logging
from typing import Optional, Tuple

from ..data_structures import Point
from .base import ComponentBase
from .base_enums import ComponentKind

logger = logging.getLogger(__name__)

_TWO_TERMINAL_OFFSET = 30

_FIXED_OFFSETS = {
    ComponentKind.GROUND: ((0, -20),),
    ComponentKind.SPDT_SWITCH: ((-30, 0), (30, -10), (30, 10)),
    ComponentKind.RELAY: ((-30, -12), (30, -12), (-30, 12), (30, 12)),
}


def terminal_local_position(component: ComponentBase, terminal_index: int) -> Optional[Tuple[int, int]]:
    """Terminal offset in component space, before rotation and translation."""
    if terminal_index < 0 or terminal_index >= component.terminal_count():
        return None

    kind = component.kind
    if kind in _FIXED_OFFSETS:
        rel_x, rel_y = _FIXED_OFFSETS[kind][terminal_index]
    elif kind is ComponentKind.RHEOSTAT:
        if terminal_index == 0:
            rel_x, rel_y = -35, 0
        elif terminal_index == 1:
            rel_x, rel_y = 35, 0
        else:
            # Slider tracks the wiper position along the body.
            position = min(max(component.params['position'], 0.0), 1.0)
            rel_x, rel_y = round(-20 + 40 * position), -28
    else:
        rel_x = -_TWO_TERMINAL_OFFSET if terminal_index == 0 else _TWO_TERMINAL_OFFSET
        rel_y = 0

    extension = component.terminal_extensions.get(terminal_index)
    if extension:
        rel_x += extension[0]
        rel_y += extension[1]
    return int(round(rel_x)), int(round(rel_y))


def terminal_position(component: ComponentBase, terminal_index: int) -> Optional[Point]:
    """Canvas position of a terminal; rotation is applied in 90 degree steps."""
    local = terminal_local_position(component, terminal_index)
    if local is None:
        return None
    lx, ly = local
    rotation = int(component.rotation or 0) % 360
    if rotation == 90:
        lx, ly = -ly, lx
    elif rotation == 180:
        lx, ly = -lx, -ly
    elif rotation == 270:
        lx, ly = ly, -lx
    return Point.quantize(component.x + lx, component.y + ly)
