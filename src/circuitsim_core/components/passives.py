# src/circuitsim_core/components/passives.py
"""
Resistive devices: Resistor, Bulb, Thermistor, Photoresistor and the
three-terminal Rheostat.

Every two-terminal device here exposes `resistance()` and shares one stamp:
a single conductance between its terminals. Current is reported from
terminal 0 to terminal 1.
"""

import logging
import math
from typing import Dict, List, Sequence, Tuple

from ..constants import MIN_RESISTANCE, REFERENCE_TEMPERATURE_KELVIN, ZERO_CELSIUS_KELVIN
from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind, RheostatConnectionMode
from .capabilities import IConnectivityProvider, IMnaContributor, provides

logger = logging.getLogger(__name__)


def clamp_resistance(resistance: float) -> float:
    """Replaces zero, negative or NaN resistances with MIN_RESISTANCE."""
    if not (resistance > MIN_RESISTANCE):
        return MIN_RESISTANCE
    return resistance


class ResistiveComponent(ComponentBase):
    """A two-terminal device whose only stamp is one resistance."""

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['p1', 'p2']

    def resistance(self) -> float:
        raise NotImplementedError

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "ResistiveComponent", context, nodes):
            context.stamp_resistor(nodes[0], nodes[1], component.resistance())

        def current(self, component: "ResistiveComponent", context, nodes) -> float:
            dv = context.voltage(nodes[0]) - context.voltage(nodes[1])
            return dv / clamp_resistance(component.resistance())


@register_component(ComponentKind.RESISTOR)
class Resistor(ResistiveComponent):
    """Represents an ideal Resistor component."""

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {'resistance': ParameterSpec('ohm', 100.0)}

    def resistance(self) -> float:
        return self.params['resistance']


@register_component(ComponentKind.BULB)
class Bulb(ResistiveComponent):
    """An incandescent bulb modeled as a fixed filament resistance."""

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'resistance': ParameterSpec('ohm', 50.0),
            'rated_power': ParameterSpec('watt', 5.0),
        }

    def resistance(self) -> float:
        return self.params['resistance']

    def brightness(self, current: float, voltage: float) -> float:
        rated = self.params['rated_power']
        if not (rated > 0):
            return 0.0
        return min(1.0, abs(current * voltage) / rated)


@register_component(ComponentKind.THERMISTOR)
class Thermistor(ResistiveComponent):
    """NTC thermistor, Beta model: R = R25 * exp(beta * (1/T - 1/298.15))."""

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'resistance_at_25': ParameterSpec('ohm', 1000.0),
            'beta': ParameterSpec('kelvin', 3950.0),
            'temperature_c': ParameterSpec('dimensionless', 25.0),
        }

    def resistance(self) -> float:
        temperature_k = max(1.0, self.params['temperature_c'] + ZERO_CELSIUS_KELVIN)
        exponent = self.params['beta'] * (1.0 / temperature_k - 1.0 / REFERENCE_TEMPERATURE_KELVIN)
        return self.params['resistance_at_25'] * math.exp(min(exponent, 700.0))


@register_component(ComponentKind.PHOTORESISTOR)
class Photoresistor(ResistiveComponent):
    """LDR interpolating linearly between its dark and fully lit resistance."""

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'resistance_dark': ParameterSpec('ohm', 1.0e5),
            'resistance_light': ParameterSpec('ohm', 500.0),
            'light_level': ParameterSpec('dimensionless', 0.5),
        }

    def resistance(self) -> float:
        level = min(1.0, max(0.0, self.params['light_level']))
        dark = self.params['resistance_dark']
        return dark + (self.params['resistance_light'] - dark) * level


# --- Rheostat ---

def rheostat_connection_mode(nodes: Sequence[int]) -> RheostatConnectionMode:
    """Derives which resistive path is active from the wired terminals."""
    left, right, slider = (n >= 0 for n in nodes[:3])
    if left and right and slider:
        return RheostatConnectionMode.ALL
    if left and slider:
        return RheostatConnectionMode.LEFT_SLIDER
    if right and slider:
        return RheostatConnectionMode.RIGHT_SLIDER
    if left and right:
        return RheostatConnectionMode.LEFT_RIGHT
    if slider:
        return RheostatConnectionMode.SLIDER_ONLY
    return RheostatConnectionMode.NONE


@register_component(ComponentKind.RHEOSTAT)
class Rheostat(ComponentBase):
    """
    Sliding rheostat. Terminals: 0 left end, 1 right end, 2 slider.
    The slider splits the track into left-slider and slider-right sections.
    """

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['left', 'right', 'slider']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'min_resistance': ParameterSpec('ohm', 0.0),
            'max_resistance': ParameterSpec('ohm', 100.0),
            'position': ParameterSpec('dimensionless', 0.5),
        }

    def section_resistances(self) -> Tuple[float, float]:
        """(left-slider, slider-right) resistances, each floored at MIN_RESISTANCE."""
        r_min = self.params['min_resistance']
        r_max = self.params['max_resistance']
        position = min(1.0, max(0.0, self.params['position']))
        span = r_max - r_min
        return (
            clamp_resistance(r_min + span * position),
            clamp_resistance(r_max - span * position),
        )

    def full_resistance(self) -> float:
        return clamp_resistance(self.params['max_resistance'])

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "Rheostat", context, nodes):
            n_left, n_right, n_slider = nodes
            r_left, r_right = component.section_resistances()
            mode = rheostat_connection_mode(nodes)

            if mode is RheostatConnectionMode.LEFT_SLIDER:
                if n_left != n_slider:
                    context.stamp_resistor(n_left, n_slider, r_left)
            elif mode is RheostatConnectionMode.RIGHT_SLIDER:
                if n_right != n_slider:
                    context.stamp_resistor(n_slider, n_right, r_right)
            elif mode is RheostatConnectionMode.LEFT_RIGHT:
                if n_left != n_right:
                    context.stamp_resistor(n_left, n_right, component.full_resistance())
            elif mode is RheostatConnectionMode.ALL:
                if n_left == n_slider and n_right == n_slider:
                    return
                if n_left == n_slider:
                    context.stamp_resistor(n_slider, n_right, r_right)
                elif n_right == n_slider:
                    context.stamp_resistor(n_left, n_slider, r_left)
                elif n_left == n_right:
                    context.stamp_resistor(n_left, n_slider, r_left * r_right / (r_left + r_right))
                else:
                    context.stamp_resistor(n_left, n_slider, r_left)
                    context.stamp_resistor(n_slider, n_right, r_right)

        def current(self, component: "Rheostat", context, nodes) -> float:
            n_left, n_right, n_slider = nodes
            r_left, r_right = component.section_resistances()
            v_left, v_right, v_slider = (context.voltage(n) for n in nodes)
            mode = rheostat_connection_mode(nodes)

            if mode is RheostatConnectionMode.LEFT_SLIDER:
                return (v_left - v_slider) / r_left
            if mode is RheostatConnectionMode.RIGHT_SLIDER:
                return (v_slider - v_right) / r_right
            if mode is RheostatConnectionMode.LEFT_RIGHT:
                return (v_left - v_right) / component.full_resistance()
            if mode is RheostatConnectionMode.ALL:
                i_left = (v_left - v_slider) / r_left
                i_right = (v_slider - v_right) / r_right
                return i_left if abs(i_left) >= abs(i_right) else i_right
            return 0.0

    @provides(IConnectivityProvider)
    class ConnectivityProvider:
        def is_wired(self, component: "Rheostat", wired: Sequence[bool]) -> bool:
            distinct_nodes = {component.nodes[i] for i, ok in enumerate(wired) if ok and component.nodes[i] >= 0}
            return len(distinct_nodes) >= 2
