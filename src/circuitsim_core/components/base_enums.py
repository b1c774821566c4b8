# src/circuitsim_core/components/base_enums.py
from enum import Enum


class ComponentKind(Enum):
    """
    The closed set of device kinds the solver understands. The value is the
    type tag used in circuit descriptions.
    """
    GROUND = "Ground"
    POWER_SOURCE = "PowerSource"
    AC_VOLTAGE_SOURCE = "ACVoltageSource"
    RESISTOR = "Resistor"
    BULB = "Bulb"
    THERMISTOR = "Thermistor"
    PHOTORESISTOR = "Photoresistor"
    RHEOSTAT = "Rheostat"
    CAPACITOR = "Capacitor"
    PARALLEL_PLATE_CAPACITOR = "ParallelPlateCapacitor"
    INDUCTOR = "Inductor"
    MOTOR = "Motor"
    SWITCH = "Switch"
    SPDT_SWITCH = "SPDTSwitch"
    FUSE = "Fuse"
    AMMETER = "Ammeter"
    VOLTMETER = "Voltmeter"
    DIODE = "Diode"
    LED = "LED"
    RELAY = "Relay"

    @classmethod
    def from_type_str(cls, type_str: str) -> "ComponentKind":
        try:
            return cls(type_str)
        except ValueError:
            raise ValueError(f"Unknown component type '{type_str}'.") from None


#: Kinds that drive the circuit and carry an EMF plus internal resistance.
SOURCE_KINDS = frozenset({ComponentKind.POWER_SOURCE, ComponentKind.AC_VOLTAGE_SOURCE})

#: Kinds whose operating point is iterated by the nonlinear loop.
NONLINEAR_KINDS = frozenset({ComponentKind.DIODE, ComponentKind.LED, ComponentKind.RELAY})

#: Kinds whose electrical connection forces backward-Euler integration.
SWITCH_KINDS = frozenset({ComponentKind.SWITCH, ComponentKind.SPDT_SWITCH})


class IntegrationMethod(Enum):
    """Companion-model integration rule for capacitors and inductors."""
    AUTO = "auto"
    BACKWARD_EULER = "backward-euler"
    TRAPEZOIDAL = "trapezoidal"


class RheostatConnectionMode(Enum):
    """Which of the rheostat's three terminals are wired into the circuit."""
    NONE = "none"
    LEFT_SLIDER = "left-slider"
    RIGHT_SLIDER = "right-slider"
    LEFT_RIGHT = "left-right"
    ALL = "all"
    SLIDER_ONLY = "slider-only"
