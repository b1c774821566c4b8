# src/circuitsim_core/simulation/state.py
"""
Cross-timestep device history, keyed by component id.

Entries are created lazily with kind-specific defaults and persist until an
explicit reset. The solver only writes nonlinear operating points here after
a valid solve; capacitor, inductor, motor and fuse history is written by
`update_dynamic_components`.
"""
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, Optional

from ..components.base_enums import ComponentKind

if TYPE_CHECKING:
    from ..components.base import ComponentBase

logger = logging.getLogger(__name__)


@dataclass
class SimulationStateEntry:
    # Capacitor / inductor history
    prev_voltage: float = 0.0
    prev_charge: float = 0.0
    prev_current: float = 0.0
    history_ready: bool = False
    # Motor
    speed: float = 0.0
    back_emf: float = 0.0
    # Diode / LED junction linearization point
    junction_voltage: float = 0.0
    junction_current: float = 0.0
    conducting: bool = False
    # Relay
    energized: bool = False
    # Fuse heating
    i2t_accum: float = 0.0
    blown: bool = False


def default_entry(component: "ComponentBase") -> SimulationStateEntry:
    """The reset state of a device."""
    if component.kind is ComponentKind.INDUCTOR:
        return SimulationStateEntry(prev_current=float(component.params.get('initial_current') or 0.0))
    if component.kind is ComponentKind.FUSE:
        return SimulationStateEntry(
            i2t_accum=float(component.params.get('i2t_accum') or 0.0),
            blown=bool(component.params.get('blown')),
        )
    return SimulationStateEntry()


class SimulationState:
    """Per-component-id store of `SimulationStateEntry` objects."""

    def __init__(self):
        self._entries: Dict[str, SimulationStateEntry] = {}

    def __contains__(self, component_id: str) -> bool:
        return component_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, component_id: str) -> Optional[SimulationStateEntry]:
        return self._entries.get(component_id)

    def ensure(self, component: "ComponentBase") -> SimulationStateEntry:
        entry = self._entries.get(component.id)
        if entry is None:
            entry = default_entry(component)
            self._entries[component.id] = entry
        return entry

    def reset_for_components(self, components: Iterable["ComponentBase"]) -> None:
        """Drops all history and recreates default entries for `components`."""
        self._entries = {comp.id: default_entry(comp) for comp in components}
        logger.debug(f"Simulation state reset for {len(self._entries)} component(s).")

    def remove(self, component_id: str) -> None:
        self._entries.pop(component_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def working_copy(self, components: Iterable["ComponentBase"]) -> Dict[str, SimulationStateEntry]:
        """Independent copies of the entries of `components`, for iteration-local updates."""
        return {comp.id: replace(self.ensure(comp)) for comp in components}

    def commit(self, entries: Dict[str, SimulationStateEntry]) -> None:
        for component_id, entry in entries.items():
            self._entries[component_id] = replace(entry)
