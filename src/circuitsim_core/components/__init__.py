# src/circuitsim_core/components/__init__.py
import logging
logger = logging.getLogger(__name__)

# Import base first to define registry and decorator
from .base import (
    ComponentBase, ParameterSpec, COMPONENT_REGISTRY, register_component, create_component
)
from .base_enums import (
    ComponentKind, IntegrationMethod, RheostatConnectionMode,
    SOURCE_KINDS, NONLINEAR_KINDS, SWITCH_KINDS,
)
from .capabilities import (
    IMnaContributor, INonlinearContributor, IDynamicContributor, IConnectivityProvider,
    OperatingPointUpdate, provides,
)
from .exceptions import ComponentError
# Import concrete devices to trigger registration
from .sources import Ground, PowerSource, ACVoltageSource, VoltageSourceBase
from .passives import Resistor, Bulb, Thermistor, Photoresistor, Rheostat, rheostat_connection_mode
from .storage import Capacitor, ParallelPlateCapacitor, Inductor, CapacitorBase
from .switching import Switch, SPDTSwitch, Relay, Fuse
from .meters import Ammeter, Voltmeter
from .semiconductors import Diode, LED
from .machines import Motor
from .geometry import terminal_position

logger.debug(f"Available component types: {[k.value for k in COMPONENT_REGISTRY]}")

__all__ = [
    "ComponentBase", "ParameterSpec", "COMPONENT_REGISTRY", "register_component", "create_component",
    "ComponentKind", "IntegrationMethod", "RheostatConnectionMode",
    "SOURCE_KINDS", "NONLINEAR_KINDS", "SWITCH_KINDS",
    "IMnaContributor", "INonlinearContributor", "IDynamicContributor", "IConnectivityProvider",
    "OperatingPointUpdate", "provides",
    "ComponentError",
    "Ground", "PowerSource", "ACVoltageSource", "VoltageSourceBase",
    "Resistor", "Bulb", "Thermistor", "Photoresistor", "Rheostat", "rheostat_connection_mode",
    "Capacitor", "ParallelPlateCapacitor", "Inductor", "CapacitorBase",
    "Switch", "SPDTSwitch", "Relay", "Fuse",
    "Ammeter", "Voltmeter",
    "Diode", "LED",
    "Motor",
    "terminal_position",
]
