# src/circuitsim_core/topology/validation.py
"""
Graph-level checks of a numbered topology, run before a solve to explain
results that would otherwise just come back invalid or meaningless.

- Floating sub-circuits: groups of nodes with no conductive path to node 0.
  They solve only thanks to gmin leakage, so their voltages are arbitrary.
- Conflicting sources: a loop made only of voltage-defined branches (ideal
  sources, ideal ammeters). Such a loop makes the MNA matrix singular.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Tuple

import networkx as nx

from ..components.base import ComponentBase
from ..components.base_enums import ComponentKind, SOURCE_KINDS

logger = logging.getLogger(__name__)


class TopologyIssueCode(Enum):
    FLOATING_SUBCIRCUIT = "floating_subcircuit"
    CONFLICTING_SOURCES = "conflicting_sources"


@dataclass(frozen=True)
class TopologyIssue:
    code: TopologyIssueCode
    message: str
    component_ids: Tuple[str, ...] = field(default_factory=tuple)
    nodes: Tuple[int, ...] = field(default_factory=tuple)


def _conducts(component: ComponentBase) -> bool:
    if component.kind is ComponentKind.GROUND:
        return False
    if component.kind is ComponentKind.VOLTMETER and component.is_ideal():
        return False
    return True


def _is_voltage_defined(component: ComponentBase) -> bool:
    if component.kind in SOURCE_KINDS:
        return not component.uses_norton_model()
    if component.kind is ComponentKind.AMMETER:
        return component.is_ideal()
    return False


def build_conduction_graph(components: Iterable[ComponentBase], node_count: int) -> nx.MultiGraph:
    """Nodes are electrical node indices; one edge per conducting terminal pair of each component."""
    graph = nx.MultiGraph()
    graph.add_nodes_from(range(node_count))
    for comp in components:
        if not _conducts(comp):
            continue
        valid = [n for n in comp.nodes if n >= 0]
        for i in range(len(valid)):
            for j in range(i + 1, len(valid)):
                if valid[i] != valid[j]:
                    graph.add_edge(valid[i], valid[j], component_id=comp.id)
    return graph


def check_topology(components: Iterable[ComponentBase], node_count: int) -> List[TopologyIssue]:
    components = list(components)
    issues: List[TopologyIssue] = []
    if node_count < 2:
        return issues

    graph = build_conduction_graph(components, node_count)
    for group in nx.connected_components(graph):
        if 0 in group:
            continue
        member_ids = sorted({
            data['component_id'] for _, _, data in graph.subgraph(group).edges(data=True)
        })
        if not member_ids:
            continue
        issues.append(TopologyIssue(
            code=TopologyIssueCode.FLOATING_SUBCIRCUIT,
            message=f"Nodes {sorted(group)} have no conductive path to ground.",
            component_ids=tuple(member_ids),
            nodes=tuple(sorted(group)),
        ))

    source_graph = nx.Graph()
    loop_members: List[str] = []
    for comp in components:
        if not _is_voltage_defined(comp):
            continue
        n1, n2 = comp.nodes[0], comp.nodes[1]
        if n1 < 0 or n2 < 0 or n1 == n2:
            continue
        if source_graph.has_node(n1) and source_graph.has_node(n2) and nx.has_path(source_graph, n1, n2):
            path = nx.shortest_path(source_graph, n1, n2)
            loop_members = [source_graph.edges[u, v]['component_id'] for u, v in zip(path, path[1:])]
            loop_members.append(comp.id)
            issues.append(TopologyIssue(
                code=TopologyIssueCode.CONFLICTING_SOURCES,
                message=f"Ideal voltage-defined branches form a loop: {loop_members}.",
                component_ids=tuple(loop_members),
                nodes=tuple(path),
            ))
            continue
        source_graph.add_edge(n1, n2, component_id=comp.id)

    for issue in issues:
        logger.warning(f"Topology issue [{issue.code.value}]: {issue.message}")
    return issues
