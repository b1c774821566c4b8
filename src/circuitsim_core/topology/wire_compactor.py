# src/circuitsim_core/topology/wire_compactor.py
"""
Editing-time wire hygiene.

Zero-length wires are dropped. Then, wherever exactly two wire endpoints meet
at a free point (no component terminal there, neither endpoint bound to a
terminal), the two wires are merged into one when they either run straight
through the point in opposite directions or share both of their far ends.
The absorbed wire's id is mapped to the surviving wire's id so callers can
re-key side state such as probes.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, Iterable, List, Optional, Tuple

from ..components.base import ComponentBase
from ..components.geometry import terminal_position
from ..data_structures import Point, TerminalRef, Wire

logger = logging.getLogger(__name__)

COLLINEAR_TOLERANCE = 1.0e-6


@dataclass
class CompactionResult:
    changed: bool = False
    removed_ids: List[str] = field(default_factory=list)
    replacement_by_removed_id: Dict[str, str] = field(default_factory=dict)


def _other_end(which: str) -> str:
    return 'b' if which == 'a' else 'a'


def _set_endpoint(wire: Wire, which: str, point: Point, ref: Optional[TerminalRef]) -> None:
    if which == 'a':
        wire.a, wire.a_ref = point, ref
    else:
        wire.b, wire.b_ref = point, ref


def _terminal_points(
    components: Iterable[ComponentBase],
    resolver: Callable[[ComponentBase, int], Optional[Point]],
) -> set:
    points = set()
    for comp in components:
        for ti in range(comp.terminal_count()):
            position = resolver(comp, ti)
            if position is not None:
                points.add(Point.quantize(*position))
    return points


def compact_wires(
    wires: Dict[str, Wire],
    components: Iterable[ComponentBase] = (),
    terminal_position_resolver: Callable[[ComponentBase, int], Optional[Point]] = terminal_position,
    scope_wire_ids: Optional[Collection[str]] = None,
) -> CompactionResult:
    """
    Compacts `wires` in place.

    Args:
        wires: Wire id -> Wire; merged wires are deleted from this mapping.
        components: Components whose terminal coordinates must never be merged through.
        terminal_position_resolver: Terminal coordinate lookup for `components`;
            defaults to the standard device geometry.
        scope_wire_ids: When given, only merges involving at least one of these wires happen.
    """
    result = CompactionResult()

    for wire in list(wires.values()):
        wire.a = Point.quantize(*wire.a)
        wire.b = Point.quantize(*wire.b)
        if wire.a == wire.b:
            del wires[wire.id]
            result.removed_ids.append(wire.id)
            result.changed = True

    terminal_points = _terminal_points(components, terminal_position_resolver)
    scope = set(scope_wire_ids) if scope_wire_ids is not None else None

    while _merge_one(wires, terminal_points, scope, result):
        result.changed = True

    if result.changed:
        logger.debug(
            f"Wire compaction removed {len(result.removed_ids)} wire(s): {result.removed_ids}"
        )
    return result


def _merge_one(
    wires: Dict[str, Wire], terminal_points: set, scope: Optional[set], result: CompactionResult
) -> bool:
    """Performs the first available merge; returns False when none is left."""
    endpoints_at: Dict[Point, List[Tuple[str, str]]] = defaultdict(list)
    for wire in wires.values():
        endpoints_at[wire.a].append((wire.id, 'a'))
        endpoints_at[wire.b].append((wire.id, 'b'))

    for point, endpoints in endpoints_at.items():
        if len(endpoints) != 2 or point in terminal_points:
            continue
        (id_a, end_a), (id_b, end_b) = endpoints
        if id_a == id_b:
            continue
        if scope is not None and id_a not in scope and id_b not in scope:
            continue

        wire_a, wire_b = wires[id_a], wires[id_b]
        if wire_a.ref(end_a) is not None or wire_b.ref(end_b) is not None:
            continue

        far_a, far_b = _other_end(end_a), _other_end(end_b)
        far_point_a, far_point_b = wire_a.endpoint(far_a), wire_b.endpoint(far_b)
        far_ref_a, far_ref_b = wire_a.ref(far_a), wire_b.ref(far_b)

        if far_point_a == far_point_b:
            # Redundant loop: both wires join the same two points.
            if far_ref_a is not None and far_ref_b is not None and far_ref_a != far_ref_b:
                continue
            _set_endpoint(wire_a, far_a, far_point_a, far_ref_a or far_ref_b)
        else:
            ux, uy = far_point_a.x - point.x, far_point_a.y - point.y
            vx, vy = far_point_b.x - point.x, far_point_b.y - point.y
            cross = ux * vy - uy * vx
            dot = ux * vx + uy * vy
            if abs(cross) > COLLINEAR_TOLERANCE or dot >= 0:
                continue
            wire_a.a, wire_a.a_ref = far_point_a, far_ref_a
            wire_a.b, wire_a.b_ref = far_point_b, far_ref_b

        del wires[id_b]
        result.removed_ids.append(id_b)
        for removed, survivor in result.replacement_by_removed_id.items():
            if survivor == id_b:
                result.replacement_by_removed_id[removed] = id_a
        result.replacement_by_removed_id[id_b] = id_a
        logger.debug(f"Merged wire '{id_b}' into '{id_a}' at {tuple(point)}.")
        return True

    return False
