# src/circuitsim_core/components/sources.py
"""
Ground and the driving sources (DC power source, sinusoidal AC source).

A source whose internal resistance exceeds MIN_RESISTANCE is stamped as a
Norton equivalent (conductance 1/r plus a constant current E/r into the
positive node) and needs no auxiliary equation. An ideal source takes an
auxiliary row enforcing V(+) - V(-) = E. Source current is reported positive
when the source delivers power (current leaving the positive terminal).
"""

import logging
import math
from typing import Dict, List, Sequence

from ..constants import MIN_RESISTANCE
from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind
from .capabilities import IConnectivityProvider, IMnaContributor, provides

logger = logging.getLogger(__name__)


@register_component(ComponentKind.GROUND)
class Ground(ComponentBase):
    """Reference node marker. Its terminal is always node 0 when connected."""

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['terminal']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {}

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component, context, nodes):
            pass

        def current(self, component, context, nodes) -> float:
            return 0.0

    @provides(IConnectivityProvider)
    class ConnectivityProvider:
        def is_wired(self, component, wired: Sequence[bool]) -> bool:
            return bool(wired and wired[0])


class VoltageSourceBase(ComponentBase):
    """Shared behavior of DC and AC sources."""

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['positive', 'negative']

    def emf(self, sim_time: float) -> float:
        raise NotImplementedError

    @property
    def internal_resistance(self) -> float:
        r = self.params['internal_resistance']
        return r if math.isfinite(r) else 0.0

    def uses_norton_model(self) -> bool:
        return self.internal_resistance > MIN_RESISTANCE

    def requires_auxiliary_equation(self) -> bool:
        return not self.uses_norton_model()

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "VoltageSourceBase", context, nodes):
            n_pos, n_neg = nodes
            emf = component.emf(context.sim_time)
            annotation = context.annotation(component)
            if annotation.norton_model:
                r = component.internal_resistance
                context.stamp_resistor(n_pos, n_neg, r)
                context.stamp_current_source(n_neg, n_pos, emf / r)
            else:
                context.stamp_voltage_source(n_pos, n_neg, emf, annotation.vs_index)

        def current(self, component: "VoltageSourceBase", context, nodes) -> float:
            n_pos, n_neg = nodes
            annotation = context.annotation(component)
            if annotation.norton_model:
                terminal_voltage = context.voltage(n_pos) - context.voltage(n_neg)
                return (component.emf(context.sim_time) - terminal_voltage) / component.internal_resistance
            if annotation.vs_index is None:
                return 0.0
            return -context.aux_current(annotation.vs_index)


@register_component(ComponentKind.POWER_SOURCE)
class PowerSource(VoltageSourceBase):
    """A battery: constant EMF behind an internal resistance."""

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'voltage': ParameterSpec('volt', 12.0),
            'internal_resistance': ParameterSpec('ohm', 0.5),
        }

    def emf(self, sim_time: float) -> float:
        return self.params['voltage']


@register_component(ComponentKind.AC_VOLTAGE_SOURCE)
class ACVoltageSource(VoltageSourceBase):
    """Sinusoidal source: offset + rms*sqrt(2)*sin(2*pi*f*t + phase)."""

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'rms_voltage': ParameterSpec('volt', 12.0),
            'frequency': ParameterSpec('hertz', 50.0),
            'phase': ParameterSpec('degree', 0.0),
            'offset': ParameterSpec('volt', 0.0),
            'internal_resistance': ParameterSpec('ohm', 0.5),
        }

    def emf(self, sim_time: float) -> float:
        amplitude = self.params['rms_voltage'] * math.sqrt(2.0)
        omega = 2.0 * math.pi * self.params['frequency']
        phase_rad = math.radians(self.params['phase'])
        return self.params['offset'] + amplitude * math.sin(omega * sim_time + phase_rad)
