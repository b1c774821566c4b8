# src/circuitsim_core/components/switching.py
"""
Switching devices: Switch, SPDTSwitch, Relay and Fuse.

Open and closed states are always finite resistances so that toggling a
switch never produces a singular matrix.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..constants import CLOSED_SWITCH_RESISTANCE, OPEN_CIRCUIT_RESISTANCE
from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind
from .capabilities import (
    IConnectivityProvider,
    IDynamicContributor,
    IMnaContributor,
    INonlinearContributor,
    OperatingPointUpdate,
    provides,
)
from .passives import clamp_resistance

logger = logging.getLogger(__name__)


def _both_valid(n1: int, n2: int) -> bool:
    return n1 >= 0 and n2 >= 0 and n1 != n2


@register_component(ComponentKind.SWITCH)
class Switch(ComponentBase):

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['p1', 'p2']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {'closed': ParameterSpec(None, False)}

    def resistance(self) -> float:
        return CLOSED_SWITCH_RESISTANCE if self.params['closed'] else OPEN_CIRCUIT_RESISTANCE

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "Switch", context, nodes):
            context.stamp_resistor(nodes[0], nodes[1], component.resistance())

        def current(self, component: "Switch", context, nodes) -> float:
            if not component.params['closed']:
                return 0.0
            return (context.voltage(nodes[0]) - context.voltage(nodes[1])) / CLOSED_SWITCH_RESISTANCE


@register_component(ComponentKind.SPDT_SWITCH)
class SPDTSwitch(ComponentBase):
    """Single-pole double-throw switch. Terminals: 0 common, 1 throw a, 2 throw b."""

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['common', 'throw_a', 'throw_b']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'position': ParameterSpec(None, 'a', ('a', 'b')),
            'on_resistance': ParameterSpec('ohm', CLOSED_SWITCH_RESISTANCE),
            'off_resistance': ParameterSpec('ohm', OPEN_CIRCUIT_RESISTANCE),
        }

    def selected_terminal(self) -> int:
        return 1 if self.params['position'] == 'a' else 2

    def throw_resistances(self):
        """(common-a, common-b) resistances for the current position."""
        r_on = clamp_resistance(self.params['on_resistance'])
        r_off = clamp_resistance(self.params['off_resistance'])
        return (r_on, r_off) if self.params['position'] == 'a' else (r_off, r_on)

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "SPDTSwitch", context, nodes):
            n_common, n_a, n_b = nodes
            r_a, r_b = component.throw_resistances()
            if _both_valid(n_common, n_a):
                context.stamp_resistor(n_common, n_a, r_a)
            if _both_valid(n_common, n_b):
                context.stamp_resistor(n_common, n_b, r_b)

        def current(self, component: "SPDTSwitch", context, nodes) -> float:
            selected = component.selected_terminal()
            n_common, n_selected = nodes[0], nodes[selected]
            if not _both_valid(n_common, n_selected):
                return 0.0
            r_on = component.throw_resistances()[selected - 1]
            return (context.voltage(n_common) - context.voltage(n_selected)) / r_on

    @provides(IConnectivityProvider)
    class ConnectivityProvider:
        def is_wired(self, component: "SPDTSwitch", wired: Sequence[bool]) -> bool:
            return bool(wired[0] and wired[component.selected_terminal()])


@register_component(ComponentKind.RELAY)
class Relay(ComponentBase):
    """
    Electromechanical relay. Terminals 0-1 are the coil, 2-3 the contact.
    The contact closes when the coil current reaches `pull_in_current` and
    opens again at or below `drop_out_current`.
    """

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['coil_a', 'coil_b', 'contact_a', 'contact_b']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'coil_resistance': ParameterSpec('ohm', 200.0),
            'pull_in_current': ParameterSpec('ampere', 0.02),
            'drop_out_current': ParameterSpec('ampere', 0.01),
            'contact_on_resistance': ParameterSpec('ohm', 1.0e-3),
            'contact_off_resistance': ParameterSpec('ohm', OPEN_CIRCUIT_RESISTANCE),
        }

    def is_nonlinear(self) -> bool:
        return True

    def coil_resistance(self) -> float:
        return clamp_resistance(self.params['coil_resistance'])

    @staticmethod
    def _coil_current(component: "Relay", context, nodes) -> float:
        if not _both_valid(nodes[0], nodes[1]):
            return 0.0
        return (context.voltage(nodes[0]) - context.voltage(nodes[1])) / component.coil_resistance()

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "Relay", context, nodes):
            if _both_valid(nodes[0], nodes[1]):
                context.stamp_resistor(nodes[0], nodes[1], component.coil_resistance())
            if _both_valid(nodes[2], nodes[3]):
                energized = context.state(component).energized
                key = 'contact_on_resistance' if energized else 'contact_off_resistance'
                context.stamp_resistor(nodes[2], nodes[3], component.params[key])

        def current(self, component: "Relay", context, nodes) -> float:
            return Relay._coil_current(component, context, nodes)

    @provides(INonlinearContributor)
    class NonlinearContributor:
        def update_operating_point(self, component: "Relay", context, nodes) -> OperatingPointUpdate:
            coil_current = abs(Relay._coil_current(component, context, nodes))
            entry = context.state(component)
            energized = entry.energized
            if coil_current >= component.params['pull_in_current']:
                energized = True
            elif coil_current <= component.params['drop_out_current']:
                energized = False
            flipped = energized != entry.energized
            entry.energized = energized
            return OperatingPointUpdate(state_flipped=flipped)

    @provides(IConnectivityProvider)
    class ConnectivityProvider:
        def is_wired(self, component: "Relay", wired: Sequence[bool]) -> bool:
            coil = wired[0] and wired[1]
            contact = wired[2] and wired[3]
            return bool(coil or contact)


@register_component(ComponentKind.FUSE)
class Fuse(ComponentBase):
    """
    A fuse with I^2*t heating. After each accepted step I^2*dt accumulates
    into the fuse's simulation state; once it reaches `i2t_threshold` the
    fuse stays blown until the simulation is reset.

    The `blown` and `i2t_accum` parameters are the initial condition the
    state returns to on reset.
    """

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['p1', 'p2']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'rated_current': ParameterSpec('ampere', 3.0),
            'i2t_threshold': ParameterSpec('ampere ** 2 * second', 1.0),
            'cold_resistance': ParameterSpec('ohm', 0.05),
            'blown_resistance': ParameterSpec('ohm', OPEN_CIRCUIT_RESISTANCE),
            'blown': ParameterSpec(None, False),
            'i2t_accum': ParameterSpec('ampere ** 2 * second', 0.0),
        }

    def resistance(self, blown: bool) -> float:
        key = 'blown_resistance' if blown else 'cold_resistance'
        return clamp_resistance(self.params[key])

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "Fuse", context, nodes):
            blown = context.state(component).blown
            context.stamp_resistor(nodes[0], nodes[1], component.resistance(blown))

        def current(self, component: "Fuse", context, nodes) -> float:
            blown = context.state(component).blown
            return (context.voltage(nodes[0]) - context.voltage(nodes[1])) / component.resistance(blown)

    @provides(IDynamicContributor)
    class DynamicContributor:
        def commit_step(self, component: "Fuse", integrator, voltage: float, current: Optional[float]) -> None:
            entry = integrator.state(component)
            if entry.blown:
                return
            if current is None:
                current = voltage / component.resistance(False)
            entry.i2t_accum += current * current * integrator.dt
            if entry.i2t_accum >= component.params['i2t_threshold']:
                entry.blown = True
                logger.warning(
                    f"Fuse '{component.id}' blown: I^2t {entry.i2t_accum:.4g} "
                    f">= {component.params['i2t_threshold']:.4g} A^2s."
                )
