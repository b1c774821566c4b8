# src/circuitsim_core/topology/connectivity.py
import logging
from typing import Dict, Mapping, Optional

from ..components.base import ComponentBase
from ..components.capabilities import IConnectivityProvider
from ..data_structures import TerminalRef

logger = logging.getLogger(__name__)


class ConnectivityCache:
    """
    Memoizes, per topology version, whether each component is wired into the
    circuit well enough to conduct. Readouts of components that are not are
    zeroed by the caller.

    A terminal counts as wired when it sits on a valid node and its
    coordinate touches at least one other post. Which terminals must be wired
    is the device's `IConnectivityProvider` rule.
    """

    def __init__(self):
        self._version: Optional[int] = None
        self._memo: Dict[str, bool] = {}
        self.hits = 0
        self.misses = 0

    def invalidate(self) -> None:
        self._version = None
        self._memo.clear()

    def is_connected(
        self,
        component: ComponentBase,
        topology_version: int,
        terminal_degree: Mapping[TerminalRef, int],
    ) -> bool:
        if topology_version != self._version:
            self._memo.clear()
            self._version = topology_version

        cached = self._memo.get(component.id)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        wired = [
            node >= 0 and terminal_degree.get(TerminalRef(component.id, ti), 0) > 0
            for ti, node in enumerate(component.nodes)
        ]
        provider = component.get_capability(IConnectivityProvider)
        connected = bool(provider.is_wired(component, wired)) if provider else all(wired)
        self._memo[component.id] = connected
        return connected
