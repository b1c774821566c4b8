# src/circuitsim_core/topology/node_builder.py
"""
Derives electrical nodes from the physical drawing.

Every component terminal and every wire endpoint is a "post" with a dense
integer id. Posts are joined when they are the two ends of one wire or when
they sit on exactly the same (integer) canvas coordinate. Each resulting set
that contains at least one connected terminal becomes a node; the set chosen
as reference becomes node 0.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..components.base import ComponentBase
from ..components.base_enums import ComponentKind, SOURCE_KINDS
from ..data_structures import Node, Point, TerminalRef, Wire
from .union_find import DisjointSet

logger = logging.getLogger(__name__)

TerminalPositionResolver = Callable[[ComponentBase, int], Optional[Point]]


@dataclass(frozen=True)
class TopologyResult:
    """
    Attributes:
        nodes: The electrical nodes; `nodes[i].index == i` and node 0 is ground.
        terminal_degree: For every placed terminal, how many other posts touch
                         its coordinate (wire endpoints plus other terminals).
                         Zero means the terminal is unconnected.
        ground_terminal: The terminal that anchored node 0, if any.
    """
    nodes: List[Node]
    terminal_degree: Dict[TerminalRef, int]
    ground_terminal: Optional[TerminalRef]

    @property
    def node_count(self) -> int:
        return len(self.nodes)


def _as_list(items: Union[Dict[str, object], Iterable[object]]) -> list:
    return list(items.values()) if isinstance(items, dict) else list(items)


class TopologyBuilder:
    """Union-find node extraction. Writes `component.nodes` and `wire.node_index`."""

    def __init__(self, terminal_position_resolver: TerminalPositionResolver):
        self.resolve = terminal_position_resolver

    def build(
        self,
        components: Union[Dict[str, ComponentBase], Iterable[ComponentBase]],
        wires: Union[Dict[str, Wire], Iterable[Wire]],
    ) -> TopologyResult:
        components = _as_list(components)
        wires = _as_list(wires)

        # --- Post arena: terminals first, then two endpoints per wire ---
        terminal_posts: List[Tuple[ComponentBase, int, Point]] = []
        for comp in components:
            for ti in range(comp.terminal_count()):
                position = self.resolve(comp, ti)
                if position is not None:
                    terminal_posts.append((comp, ti, Point.quantize(*position)))

        terminal_total = len(terminal_posts)
        dsu = DisjointSet(terminal_total + 2 * len(wires))

        posts_at: Dict[Point, List[int]] = defaultdict(list)
        wire_ends_at: Dict[Point, int] = defaultdict(int)
        terminals_at: Dict[Point, int] = defaultdict(int)

        for post_id, (_, _, position) in enumerate(terminal_posts):
            posts_at[position].append(post_id)
            terminals_at[position] += 1

        for wi, wire in enumerate(wires):
            a_id = terminal_total + 2 * wi
            b_id = a_id + 1
            a, b = Point.quantize(*wire.a), Point.quantize(*wire.b)
            posts_at[a].append(a_id)
            posts_at[b].append(b_id)
            wire_ends_at[a] += 1
            wire_ends_at[b] += 1
            dsu.union(a_id, b_id)

        for post_ids in posts_at.values():
            first = post_ids[0]
            for other in post_ids[1:]:
                dsu.union(first, other)

        # --- Degrees ---
        terminal_degree: Dict[TerminalRef, int] = {}
        connected: List[bool] = []
        for comp, ti, position in terminal_posts:
            degree = wire_ends_at[position] + terminals_at[position] - 1
            terminal_degree[TerminalRef(comp.id, ti)] = degree
            connected.append(degree > 0)

        # --- Reference node selection ---
        ground_post = self._select_ground_post(terminal_posts, connected)
        ground_root = dsu.find(ground_post) if ground_post is not None else None

        # --- Node numbering ---
        root_to_node: Dict[int, int] = {}
        nodes: List[Node] = []
        if ground_root is not None:
            root_to_node[ground_root] = 0
            nodes.append(Node(index=0))

        for post_id, (comp, ti, _) in enumerate(terminal_posts):
            root = dsu.find(post_id)
            if not connected[post_id] and root != ground_root:
                continue
            if root not in root_to_node:
                root_to_node[root] = len(nodes)
                nodes.append(Node(index=len(nodes)))

        # --- Write back ---
        for comp in components:
            comp.nodes = [-1] * comp.terminal_count()
        for post_id, (comp, ti, _) in enumerate(terminal_posts):
            root = dsu.find(post_id)
            if connected[post_id] or root == ground_root:
                node_index = root_to_node[root]
                comp.nodes[ti] = node_index
                nodes[node_index].terminals.append(TerminalRef(comp.id, ti))

        for wi, wire in enumerate(wires):
            node_index = root_to_node.get(dsu.find(terminal_total + 2 * wi), -1)
            wire.node_index = node_index
            if node_index >= 0:
                nodes[node_index].wire_ids.append(wire.id)

        ground_terminal = None
        if ground_post is not None:
            comp, ti, _ = terminal_posts[ground_post]
            ground_terminal = TerminalRef(comp.id, ti)

        logger.debug(
            f"Topology built: {len(terminal_posts)} terminals, {len(wires)} wires -> {len(nodes)} nodes."
        )
        return TopologyResult(nodes=nodes, terminal_degree=terminal_degree, ground_terminal=ground_terminal)

    @staticmethod
    def _select_ground_post(
        terminal_posts: List[Tuple[ComponentBase, int, Point]], connected: List[bool]
    ) -> Optional[int]:
        """
        Priority: connected Ground, connected source negative terminal, first
        connected terminal, isolated Ground, any source negative terminal.
        """
        def first(predicate) -> Optional[int]:
            for post_id, (comp, ti, _) in enumerate(terminal_posts):
                if predicate(post_id, comp, ti):
                    return post_id
            return None

        def is_ground(comp: ComponentBase) -> bool:
            return comp.kind is ComponentKind.GROUND

        def is_source_negative(comp: ComponentBase, ti: int) -> bool:
            return comp.kind in SOURCE_KINDS and ti == 1

        candidates = (
            lambda p, c, t: connected[p] and is_ground(c),
            lambda p, c, t: connected[p] and is_source_negative(c, t),
            lambda p, c, t: connected[p],
            lambda p, c, t: is_ground(c),
            lambda p, c, t: is_source_negative(c, t),
        )
        for predicate in candidates:
            post_id = first(predicate)
            if post_id is not None:
                return post_id
        return None
