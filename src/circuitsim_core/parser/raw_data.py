# src/circuitsim_core/parser/raw_data.py
"""
The intermediate representation produced by `CircuitDescriptionParser`.

These are plain, validated records. Parameter values are kept exactly as
written (numbers or unit strings); converting them is the job of each
device's `set_parameter`.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ParsedComponentData:
    instance_id: str
    component_type: str
    x: float
    y: float
    rotation: int
    raw_parameters_dict: Dict[str, Any]


@dataclass(frozen=True)
class ParsedWireData:
    wire_id: str
    a: Tuple[float, float]
    b: Tuple[float, float]
    a_ref: Optional[Tuple[str, int]] = None
    b_ref: Optional[Tuple[str, int]] = None


@dataclass(frozen=True)
class ParsedCircuitDescription:
    circuit_name: str
    source_yaml_path: Optional[Path]
    components: List[ParsedComponentData] = field(default_factory=list)
    wires: List[ParsedWireData] = field(default_factory=list)
    raw_solver_config: Optional[Dict[str, Any]] = None
