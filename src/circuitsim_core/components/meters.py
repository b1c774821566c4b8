# src/circuitsim_core/components/meters.py
"""
Measuring instruments. An ideal ammeter (zero resistance) is an auxiliary
equation forcing zero volts across it; an ideal voltmeter (infinite
resistance) is not stamped at all. Finite internal resistances are stamped
as plain resistors.
"""

import logging
import math
from typing import Dict, List

from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind
from .capabilities import IMnaContributor, provides
from .passives import clamp_resistance

logger = logging.getLogger(__name__)


@register_component(ComponentKind.AMMETER)
class Ammeter(ComponentBase):

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['p1', 'p2']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {'resistance': ParameterSpec('ohm', 0.0)}

    def is_ideal(self) -> bool:
        return not (self.params['resistance'] > 0)

    def requires_auxiliary_equation(self) -> bool:
        return self.is_ideal()

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "Ammeter", context, nodes):
            if component.is_ideal():
                context.stamp_voltage_source(nodes[0], nodes[1], 0.0, context.annotation(component).vs_index)
            else:
                context.stamp_resistor(nodes[0], nodes[1], component.params['resistance'])

        def current(self, component: "Ammeter", context, nodes) -> float:
            if component.is_ideal():
                vs_index = context.annotation(component).vs_index
                return context.aux_current(vs_index) if vs_index is not None else 0.0
            dv = context.voltage(nodes[0]) - context.voltage(nodes[1])
            return dv / clamp_resistance(component.params['resistance'])


@register_component(ComponentKind.VOLTMETER)
class Voltmeter(ComponentBase):

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['p1', 'p2']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {'resistance': ParameterSpec('ohm', math.inf)}

    def is_ideal(self) -> bool:
        r = self.params['resistance']
        return r is None or not math.isfinite(r) or r <= 0

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "Voltmeter", context, nodes):
            if not component.is_ideal():
                context.stamp_resistor(nodes[0], nodes[1], component.params['resistance'])

        def current(self, component: "Voltmeter", context, nodes) -> float:
            if component.is_ideal():
                return 0.0
            return (context.voltage(nodes[0]) - context.voltage(nodes[1])) / component.params['resistance']
