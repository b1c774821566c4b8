# src/circuitsim_core/components/storage.py
"""
Energy-storage devices: Capacitor, ParallelPlateCapacitor and Inductor.

Each time step they are replaced by a companion model (resistor plus constant
current source) supplied by the solver's `DynamicIntegrator`, which owns the
integration rule and the device history.
"""

import logging
from typing import Dict, List, Optional

from ..constants import MIN_CAPACITANCE, MIN_INDUCTANCE, MIN_RESISTANCE, VACUUM_PERMITTIVITY
from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind, IntegrationMethod
from .capabilities import IDynamicContributor, IMnaContributor, provides

logger = logging.getLogger(__name__)

_INTEGRATION_CHOICES = tuple(m.value for m in IntegrationMethod)


class CapacitorBase(ComponentBase):
    """Anything that stores charge; subclasses define `capacitance()`."""

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['p1', 'p2']

    def capacitance(self) -> float:
        raise NotImplementedError

    def effective_capacitance(self) -> float:
        c = self.capacitance()
        return c if c > MIN_CAPACITANCE else MIN_CAPACITANCE

    @property
    def integration_method(self) -> IntegrationMethod:
        return IntegrationMethod(self.params['integration_method'])

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "CapacitorBase", context, nodes):
            companion = context.integrator.capacitor_companion(component, context.dt)
            if companion is None:
                return
            context.stamp_resistor(nodes[0], nodes[1], companion.resistance)
            context.stamp_current_source(nodes[0], nodes[1], companion.current)

        def current(self, component: "CapacitorBase", context, nodes) -> float:
            dv = context.voltage(nodes[0]) - context.voltage(nodes[1])
            return context.integrator.capacitor_current(component, context.dt, dv)

    @provides(IDynamicContributor)
    class DynamicContributor:
        def commit_step(self, component: "CapacitorBase", integrator, voltage: float, current: Optional[float]) -> None:
            integrator.commit_capacitor(component, voltage, current)


@register_component(ComponentKind.CAPACITOR)
class Capacitor(CapacitorBase):

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'capacitance': ParameterSpec('farad', 1.0e-3),
            'integration_method': ParameterSpec(None, IntegrationMethod.AUTO.value, _INTEGRATION_CHOICES),
        }

    def capacitance(self) -> float:
        return self.params['capacitance']


@register_component(ComponentKind.PARALLEL_PLATE_CAPACITOR)
class ParallelPlateCapacitor(CapacitorBase):
    """C = eps0 * eps_r * A / d, recomputed from geometry on every stamp."""

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'plate_area': ParameterSpec('meter ** 2', 0.01),
            'plate_distance': ParameterSpec('meter', 0.001),
            'dielectric_constant': ParameterSpec('dimensionless', 1.0),
            'integration_method': ParameterSpec(None, IntegrationMethod.AUTO.value, _INTEGRATION_CHOICES),
        }

    def capacitance(self) -> float:
        area = max(0.0, self.params['plate_area'])
        distance = max(1.0e-12, self.params['plate_distance'])
        relative_permittivity = max(1.0e-6, self.params['dielectric_constant'])
        return VACUUM_PERMITTIVITY * relative_permittivity * area / distance


@register_component(ComponentKind.INDUCTOR)
class Inductor(ComponentBase):

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['p1', 'p2']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'inductance': ParameterSpec('henry', 0.1),
            'initial_current': ParameterSpec('ampere', 0.0),
            'integration_method': ParameterSpec(None, IntegrationMethod.AUTO.value, _INTEGRATION_CHOICES),
        }

    def effective_inductance(self) -> float:
        inductance = self.params['inductance']
        return inductance if inductance > MIN_INDUCTANCE else MIN_INDUCTANCE

    @property
    def integration_method(self) -> IntegrationMethod:
        return IntegrationMethod(self.params['integration_method'])

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "Inductor", context, nodes):
            companion = context.integrator.inductor_companion(component, context.dt)
            if companion is None:
                context.stamp_resistor(nodes[0], nodes[1], MIN_RESISTANCE)
                return
            context.stamp_resistor(nodes[0], nodes[1], companion.resistance)
            context.stamp_current_source(nodes[0], nodes[1], companion.current)

        def current(self, component: "Inductor", context, nodes) -> float:
            dv = context.voltage(nodes[0]) - context.voltage(nodes[1])
            return context.integrator.inductor_current(component, context.dt, dv)

    @provides(IDynamicContributor)
    class DynamicContributor:
        def commit_step(self, component: "Inductor", integrator, voltage: float, current: Optional[float]) -> None:
            integrator.commit_inductor(component, voltage, current)
