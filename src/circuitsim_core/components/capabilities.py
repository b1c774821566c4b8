# src/circuitsim_core/components/capabilities.py
"""
Defines the capability architecture for CircuitSim Core devices.

The MNA orchestrator, the dynamic integrator and the connectivity cache never
switch on device kinds. Instead they ask a component for a capability
(`IMnaContributor`, `INonlinearContributor`, `IDynamicContributor`,
`IConnectivityProvider`) and call through the returned object. Each device
class declares its capabilities as nested classes decorated with `@provides`.

Key elements:
- ComponentCapability: marker protocol for all capabilities.
- IMnaContributor: the stamp/current pair every device implements.
- INonlinearContributor: operating-point update between outer iterations
  (diode/LED junctions, relay hysteresis).
- IDynamicContributor: history commit after an accepted time step.
- IConnectivityProvider: whether the device is wired into a closed path.
- @provides: class decorator registering a nested class as an implementation.
"""

import logging
from dataclasses import dataclass
from typing import (
    Optional,
    Protocol,
    Sequence,
    Type,
    TypeVar,
    TYPE_CHECKING,
    runtime_checkable,
)

if TYPE_CHECKING:
    from .base import ComponentBase
    from ..simulation.context import StampContext
    from ..simulation.integrator import DynamicIntegrator

logger = logging.getLogger(__name__)


@runtime_checkable
class ComponentCapability(Protocol):
    """Marker protocol for all component capabilities."""
    pass


TCapability = TypeVar("TCapability", bound=ComponentCapability)


@runtime_checkable
class IMnaContributor(ComponentCapability, Protocol):
    """
    The stamp/current contract of a device.

    `nodes` is the component's node-index array for this solve (-1 marks an
    unconnected terminal, 0 is ground). Implementations only touch the
    system through the context primitives.
    """

    def stamp(self, component: "ComponentBase", context: "StampContext", nodes: Sequence[int]) -> None:
        """Adds the device's contribution to the matrix and right-hand side."""
        ...

    def current(self, component: "ComponentBase", context: "StampContext", nodes: Sequence[int]) -> float:
        """Reads the device's branch current back from the solved system."""
        ...


@dataclass(frozen=True)
class OperatingPointUpdate:
    """Outcome of one nonlinear operating-point update."""
    voltage_delta: float = 0.0
    state_flipped: bool = False


@runtime_checkable
class INonlinearContributor(ComponentCapability, Protocol):
    """
    Updates the iteration-local operating point (junction linearization point,
    relay energized flag) from a trial solution.
    """

    def update_operating_point(
        self, component: "ComponentBase", context: "StampContext", nodes: Sequence[int]
    ) -> OperatingPointUpdate:
        ...


@runtime_checkable
class IDynamicContributor(ComponentCapability, Protocol):
    """Advances cross-timestep history after an accepted solve."""

    def commit_step(
        self,
        component: "ComponentBase",
        integrator: "DynamicIntegrator",
        voltage: float,
        current: Optional[float],
    ) -> None:
        """
        Args:
            voltage: Voltage across terminal 0 -> terminal 1 at the accepted solution.
            current: The branch current read back by the solver, if the caller has it.
        """
        ...


@runtime_checkable
class IConnectivityProvider(ComponentCapability, Protocol):
    """Reports whether a device is wired into the circuit well enough to conduct."""

    def is_wired(self, component: "ComponentBase", wired: Sequence[bool]) -> bool:
        """
        Args:
            wired: Per terminal, True when the terminal sits on a valid node and
                   touches at least one wire or other terminal.
        """
        ...


def provides(capability_protocol: Type[ComponentCapability]):
    """
    A class decorator to register a class as an implementation for a capability.

    The decorated class gets an `_implements_capability` attribute which
    `ComponentBase.declare_capabilities` uses for discovery.

    Args:
        capability_protocol: The capability Protocol (e.g., IMnaContributor)
                             that this class implements.
    """

    def decorator(cls: Type) -> Type:
        if not issubclass(capability_protocol, ComponentCapability):
            raise TypeError(
                f"Decorator argument for @provides must be a ComponentCapability "
                f"Protocol, but got {capability_protocol}."
            )
        cls._implements_capability = capability_protocol
        logger.debug(
            f"Class '{cls.__name__}' registered as providing capability '{capability_protocol.__name__}'."
        )
        return cls

    return decorator
