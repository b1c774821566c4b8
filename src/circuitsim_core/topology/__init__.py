# src/circuitsim_core/topology/__init__.py
from .union_find import DisjointSet
from .node_builder import TopologyBuilder, TopologyResult
from .wire_compactor import compact_wires, CompactionResult
from .connectivity import ConnectivityCache
from .validation import check_topology, TopologyIssue, TopologyIssueCode
from .sync import sync_wire_endpoints_to_terminal_refs

__all__ = [
    "DisjointSet",
    "TopologyBuilder",
    "TopologyResult",
    "compact_wires",
    "CompactionResult",
    "ConnectivityCache",
    "check_topology",
    "TopologyIssue",
    "TopologyIssueCode",
    "sync_wire_endpoints_to_terminal_refs",
]
