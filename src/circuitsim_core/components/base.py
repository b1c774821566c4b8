# src/circuitsim_core/components/base.py

import logging
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type, Union

import pint

from ..data_structures import ComponentReadout
from ..units import to_magnitude
from .base_enums import ComponentKind
from .capabilities import ComponentCapability, TCapability, IConnectivityProvider, provides
from .exceptions import ComponentError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterSpec:
    """
    Declares one device parameter.

    `units` is the Pint unit the value is stored in; `None` marks a
    non-numeric parameter (flags, selectors). `choices` restricts selectors.
    """
    units: Optional[str]
    default: Any
    choices: Optional[Tuple[Any, ...]] = None


class ComponentBase(ABC):
    """
    The abstract base class for every device on the canvas.

    A component owns its identity, its canvas placement, its resolved
    parameters and the node-index array written by the topology builder.
    Solver bookkeeping (auxiliary rows, short flags) is kept out of this
    object; see `simulation.context.SolverAnnotation`.

    Behavior is provided through capabilities declared as nested classes,
    so the solver only depends on the capability protocols.
    """
    component_kind: ClassVar[ComponentKind]

    def __init__(
        self,
        instance_id: str,
        x: float = 0.0,
        y: float = 0.0,
        rotation: int = 0,
        nodes: Optional[Sequence[int]] = None,
        **parameters: Any,
    ):
        self.id: str = instance_id
        self.x = x
        self.y = y
        self.rotation = rotation
        self.terminal_extensions: Dict[int, Tuple[int, int]] = {}

        self.nodes: List[int] = [-1] * self.terminal_count()
        if nodes is not None:
            self.nodes = [int(n) for n in nodes]

        self.params: Dict[str, Any] = {
            name: spec.default for name, spec in self.declare_parameters().items()
        }
        for name, value in parameters.items():
            self.set_parameter(name, value)

        self.readout = ComponentReadout()
        self._capability_cache: Dict[Type[ComponentCapability], ComponentCapability] = {}
        logger.debug(f"Initialized {type(self).__name__} '{self.id}'")

    @property
    def kind(self) -> ComponentKind:
        return type(self).component_kind

    @property
    def type_str(self) -> str:
        return self.kind.value

    @classmethod
    def terminal_count(cls) -> int:
        return len(cls.declare_terminals())

    def set_parameter(self, name: str, value: Any) -> None:
        """Validates, converts and stores one parameter value."""
        spec = self.declare_parameters().get(name)
        if spec is None:
            raise ComponentError(
                component_id=self.id,
                details=f"Unknown parameter '{name}' for {self.type_str}. "
                        f"Valid parameters: {sorted(self.declare_parameters())}."
            )
        if spec.units is not None and value is not None:
            try:
                value = to_magnitude(value, spec.units)
            except (pint.errors.PintError, TypeError, ValueError) as e:
                raise ComponentError(
                    component_id=self.id,
                    details=f"Invalid value {value!r} for parameter '{name}' (expected {spec.units}): {e}"
                ) from e
        elif isinstance(spec.default, bool):
            value = bool(value)
        if spec.choices is not None and value not in spec.choices:
            raise ComponentError(
                component_id=self.id,
                details=f"Parameter '{name}' must be one of {list(spec.choices)}, got {value!r}."
            )
        self.params[name] = value

    def requires_auxiliary_equation(self) -> bool:
        """True when the device needs an extra MNA unknown (its branch current)."""
        return False

    def is_nonlinear(self) -> bool:
        """True when the device takes part in the outer fixed-point iteration."""
        return False

    def uses_norton_model(self) -> bool:
        return False

    def brightness(self, current: float, voltage: float) -> float:
        """Display brightness in [0, 1]; only light-emitting devices override it."""
        return 0.0

    @provides(IConnectivityProvider)
    class ConnectivityProvider:
        """Default rule: every terminal must be wired."""
        def is_wired(self, component: "ComponentBase", wired: Sequence[bool]) -> bool:
            return len(wired) > 0 and all(wired)

    @classmethod
    def declare_capabilities(cls) -> Dict[Type[ComponentCapability], Type]:
        """
        Discovers the nested `@provides` classes along the MRO. A capability
        defined on a subclass shadows the same capability on its parents.
        """
        discovered_capabilities = {}
        for base_class in cls.__mro__:
            for _, member_obj in inspect.getmembers(base_class):
                if hasattr(member_obj, '_implements_capability'):
                    protocol = member_obj._implements_capability
                    if protocol not in discovered_capabilities:
                        discovered_capabilities[protocol] = member_obj
        return discovered_capabilities

    def get_capability(self, capability_type: Type[TCapability]) -> Optional[TCapability]:
        """
        Queries the component for a capability, instantiating the implementation
        once per component instance.

        Returns:
            The capability implementation, or `None` when the device lacks it.
        """
        if capability_type in self._capability_cache:
            return self._capability_cache[capability_type]

        impl_class = type(self).declare_capabilities().get(capability_type)
        if impl_class:
            instance = impl_class()
            self._capability_cache[capability_type] = instance
            return instance

        return None

    @classmethod
    @abstractmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        """Declare parameter names with their storage units and defaults."""
        pass

    @classmethod
    @abstractmethod
    def declare_terminals(cls) -> List[str]:
        """Declare the terminal names; the list index is the terminal index."""
        pass

    def __str__(self) -> str:
        return f"{type(self).__name__}('{self.id}')"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id='{self.id}', nodes={self.nodes})"


# --- Global Component Registry and Decorator ---

COMPONENT_REGISTRY: Dict[ComponentKind, Type[ComponentBase]] = {}


def register_component(kind: ComponentKind):
    """
    A class decorator that registers a device class for a `ComponentKind` and
    checks its declarations.
    """
    def decorator(cls: Type[ComponentBase]):
        if not issubclass(cls, ComponentBase):
            raise TypeError(f"Class {cls.__name__} must inherit from ComponentBase.")

        terminals = cls.declare_terminals()
        if not isinstance(terminals, list) or not terminals or not all(isinstance(t, str) and t for t in terminals):
            raise TypeError(
                f"Component class '{cls.__name__}' violates API contract. "
                f"declare_terminals() must return a non-empty list of strings, but returned: {terminals}."
            )
        if len(set(terminals)) != len(terminals):
            raise TypeError(
                f"Component class '{cls.__name__}' violates API contract. "
                f"declare_terminals() returned duplicates: {terminals}."
            )

        params = cls.declare_parameters()
        if not isinstance(params, dict) or not all(isinstance(k, str) and isinstance(v, ParameterSpec) for k, v in params.items()):
            raise TypeError(
                f"Component class '{cls.__name__}' violates API contract. "
                f"declare_parameters() must return a Dict[str, ParameterSpec]."
            )

        if kind in COMPONENT_REGISTRY:
            logger.warning(f"Component kind '{kind.value}' is being redefined/overwritten.")
        cls.component_kind = kind
        COMPONENT_REGISTRY[kind] = cls
        logger.info(f"Registered component type '{kind.value}' -> {cls.__name__}")
        return cls
    return decorator


def create_component(kind: Union[ComponentKind, str], instance_id: str, **kwargs: Any) -> ComponentBase:
    """
    Instantiates a registered device.

    Args:
        kind: A `ComponentKind` or its type tag (e.g. "Resistor").
        instance_id: The stable component id.
        **kwargs: Placement (`x`, `y`, `rotation`), optional `nodes`, and parameters.
    """
    if isinstance(kind, str):
        try:
            kind = ComponentKind.from_type_str(kind)
        except ValueError as e:
            raise ComponentError(component_id=instance_id, details=str(e)) from None
    cls = COMPONENT_REGISTRY.get(kind)
    if cls is None:
        raise ComponentError(component_id=instance_id, details=f"No implementation registered for '{kind.value}'.")
    return cls(instance_id, **kwargs)
