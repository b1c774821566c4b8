# src/circuitsim_core/components/machines.py

import logging
import math
from typing import Dict, List, Optional

from .base import ComponentBase, ParameterSpec, register_component
from .base_enums import ComponentKind
from .capabilities import IDynamicContributor, IMnaContributor, provides
from .passives import clamp_resistance

logger = logging.getLogger(__name__)


@register_component(ComponentKind.MOTOR)
class Motor(ComponentBase):
    """
    Permanent-magnet DC motor: armature resistance in series with a back-EMF
    source, folded into one auxiliary equation
    V(p1) - V(p2) - R*I = back_emf. The auxiliary unknown I is the motor
    current from terminal 0 to terminal 1.

    Shaft dynamics advance explicitly once per accepted step:
    torque = Kt*I, speed += (torque - load)/J * dt (never negative),
    back_emf = Ke*speed.
    """

    @classmethod
    def declare_terminals(cls) -> List[str]:
        return ['p1', 'p2']

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            'resistance': ParameterSpec('ohm', 5.0),
            'torque_constant': ParameterSpec('newton * meter / ampere', 0.1),
            'emf_constant': ParameterSpec('volt * second', 0.1),
            'inertia': ParameterSpec('kilogram * meter ** 2', 0.01),
            'load_torque': ParameterSpec('newton * meter', 0.01),
        }

    def requires_auxiliary_equation(self) -> bool:
        return True

    def armature_resistance(self) -> float:
        return clamp_resistance(self.params['resistance'])

    @provides(IMnaContributor)
    class MnaContributor:
        def stamp(self, component: "Motor", context, nodes):
            back_emf = context.integrator.state(component).back_emf
            context.stamp_voltage_source(
                nodes[0], nodes[1], back_emf, context.annotation(component).vs_index,
                series_resistance=component.armature_resistance(),
            )

        def current(self, component: "Motor", context, nodes) -> float:
            vs_index = context.annotation(component).vs_index
            return context.aux_current(vs_index) if vs_index is not None else 0.0

    @provides(IDynamicContributor)
    class DynamicContributor:
        def commit_step(self, component: "Motor", integrator, voltage: float, current: Optional[float]) -> None:
            entry = integrator.state(component)
            if current is None or not math.isfinite(current):
                current = (voltage - entry.back_emf) / component.armature_resistance()
            inertia = max(component.params['inertia'], 1.0e-9)
            torque = component.params['torque_constant'] * current
            acceleration = (torque - component.params['load_torque']) / inertia
            entry.speed = max(0.0, entry.speed + acceleration * integrator.dt)
            entry.back_emf = component.params['emf_constant'] * entry.speed
