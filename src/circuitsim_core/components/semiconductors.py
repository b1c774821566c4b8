# src/circuitsim_core/components/semiconductors.py
"""
Diode and LED. Both are a p-n junction in series with an on-resistance,
stamped each outer iteration as the companion returned by
`junction.linearize_junction_at` around the iteration-local linearization
point held in the solver's working state.
"""

import logging
from typing import Dict, List

from ..constants import CONDUCTION_CURRENT_RATIO
from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind
from .capabilities import IMnaContributor, INonlinearContributor, OperatingPointUpdate, provides
from .junction import (
    JunctionLinearization,
    JunctionParameters,
    limit_junction_step,
    linearize_junction_at,
    resolve_junction_parameters,
)

logger = logging.getLogger(__name__)


class JunctionDevice(ComponentBase):
    """Common behavior of Diode and LED. Terminal 0 is the anode."""

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['anode', 'cathode']

    def is_nonlinear(self) -> bool:
        return True

    def reference_current(self) -> float:
        raise NotImplementedError

    def junction_parameters(self) -> JunctionParameters:
        return resolve_junction_parameters(
            forward_voltage=self.params['forward_voltage'],
            reference_current=self.reference_current(),
            ideality=self.params['ideality'],
            series_resistance=self.params['on_resistance'],
            saturation_current=self.params['saturation_current'],
        )

    def _linearization(self, context) -> JunctionLinearization:
        entry = context.state(self)
        return linearize_junction_at(entry.junction_voltage, self.junction_parameters(), entry.junction_current)

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "JunctionDevice", context, nodes):
            companion = component._linearization(context)
            context.stamp_conductance(nodes[0], nodes[1], companion.conductance)
            context.stamp_current_source(nodes[0], nodes[1], companion.current_offset)

        def current(self, component: "JunctionDevice", context, nodes) -> float:
            companion = component._linearization(context)
            dv = context.voltage(nodes[0]) - context.voltage(nodes[1])
            return companion.conductance * dv + companion.current_offset

    @provides(INonlinearContributor)
    class NonlinearContributor:
        def update_operating_point(self, component: "JunctionDevice", context, nodes) -> OperatingPointUpdate:
            params = component.junction_parameters()
            entry = context.state(component)
            v_trial = context.voltage(nodes[0]) - context.voltage(nodes[1])
            v_next = limit_junction_step(v_trial, entry.junction_voltage, params)
            delta = abs(v_next - entry.junction_voltage)

            companion = linearize_junction_at(v_next, params, entry.junction_current)
            entry.junction_voltage = v_next
            entry.junction_current = companion.current
            entry.conducting = companion.current >= CONDUCTION_CURRENT_RATIO * params.reference_current
            return OperatingPointUpdate(voltage_delta=delta)


@register_component(ComponentKind.DIODE)
class Diode(JunctionDevice):

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'forward_voltage': ParameterSpec('volt', 0.7),
            'on_resistance': ParameterSpec('ohm', 1.0),
            'ideality': ParameterSpec('dimensionless', 1.8),
            'reference_current': ParameterSpec('ampere', 1.0e-3),
            'saturation_current': ParameterSpec('ampere', None),
        }

    def reference_current(self) -> float:
        return self.params['reference_current']


@register_component(ComponentKind.LED)
class LED(JunctionDevice):

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'forward_voltage': ParameterSpec('volt', 2.0),
            'on_resistance': ParameterSpec('ohm', 2.0),
            'ideality': ParameterSpec('dimensionless', 2.2),
            'rated_current': ParameterSpec('ampere', 0.02),
            'saturation_current': ParameterSpec('ampere', None),
        }

    def reference_current(self) -> float:
        rated = self.params['rated_current']
        return rated if rated > 0 else 0.02

    def brightness(self, current: float, voltage: float) -> float:
        return min(1.0, max(0.0, current / self.reference_current()))
