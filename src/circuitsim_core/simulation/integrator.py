# src/circuitsim_core/simulation/integrator.py
"""
Companion models for energy-storage devices and the per-step history commit.

Capacitor (voltage v, current i from terminal 0 to 1):
    backward Euler   Req = dt/C,      i = v/Req - Qprev/dt
    trapezoidal      Req = dt/(2C),   i = v/Req - (Vprev/Req + Iprev)
Inductor:
    backward Euler   Req = L/dt,      i = v/Req + Iprev
    trapezoidal      Req = 2L/dt,     i = v/Req + (Iprev + Vprev/Req)

In each case the stamp is a resistor Req in parallel with a constant current
source carrying the offset term from terminal 0 to terminal 1.
"""
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..components.base_enums import IntegrationMethod
from ..constants import MIN_RESISTANCE
from .state import SimulationState, SimulationStateEntry

if TYPE_CHECKING:
    from ..components.base import ComponentBase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompanionModel:
    resistance: float
    current: float
    method: IntegrationMethod


class DynamicIntegrator:
    """
    Resolves the integration rule per device and owns the capacitor, inductor
    and motor history stored in `SimulationState`.

    Attributes:
        switch_connected: Set by the solver when a switch is wired into the
                          circuit; forces backward Euler everywhere.
        dt: The step of the most recent solve or commit.
    """

    def __init__(self, simulation_state: SimulationState):
        self.simulation_state = simulation_state
        self.switch_connected = False
        self.dt = 0.0

    def state(self, component: "ComponentBase") -> SimulationStateEntry:
        return self.simulation_state.ensure(component)

    def resolve_method(self, component: "ComponentBase") -> IntegrationMethod:
        """Backward Euler until history exists, or always when forced; trapezoidal otherwise."""
        requested = component.integration_method
        if self.switch_connected or requested is IntegrationMethod.BACKWARD_EULER:
            return IntegrationMethod.BACKWARD_EULER
        if self.state(component).history_ready:
            return IntegrationMethod.TRAPEZOIDAL
        return IntegrationMethod.BACKWARD_EULER

    # --- Capacitor ---

    def capacitor_companion(self, component: "ComponentBase", dt: float) -> Optional[CompanionModel]:
        """None when dt is not positive; the capacitor is then an open circuit."""
        if not dt > 0:
            return None
        capacitance = component.effective_capacitance()
        entry = self.state(component)
        method = self.resolve_method(component)
        if method is IntegrationMethod.TRAPEZOIDAL:
            resistance = dt / (2.0 * capacitance)
            current = -(entry.prev_voltage / resistance + entry.prev_current)
        else:
            resistance = dt / capacitance
            current = -entry.prev_charge / dt
        return CompanionModel(resistance=resistance, current=current, method=method)

    def capacitor_current(self, component: "ComponentBase", dt: float, voltage: float) -> float:
        companion = self.capacitor_companion(component, dt)
        if companion is None:
            return 0.0
        return voltage / companion.resistance + companion.current

    def commit_capacitor(self, component: "ComponentBase", voltage: float, current: Optional[float]) -> None:
        if current is None or not math.isfinite(current):
            current = self.capacitor_current(component, self.dt, voltage)
        entry = self.state(component)
        entry.prev_voltage = voltage
        entry.prev_charge = component.effective_capacitance() * voltage
        entry.prev_current = current
        entry.history_ready = True

    # --- Inductor ---

    def inductor_companion(self, component: "ComponentBase", dt: float) -> Optional[CompanionModel]:
        """None when dt is not positive; the inductor is then a short."""
        if not dt > 0:
            return None
        inductance = component.effective_inductance()
        entry = self.state(component)
        method = self.resolve_method(component)
        if method is IntegrationMethod.TRAPEZOIDAL:
            resistance = 2.0 * inductance / dt
            current = entry.prev_current + entry.prev_voltage / resistance
        else:
            resistance = inductance / dt
            current = entry.prev_current
        return CompanionModel(resistance=resistance, current=current, method=method)

    def inductor_current(self, component: "ComponentBase", dt: float, voltage: float) -> float:
        companion = self.inductor_companion(component, dt)
        if companion is None:
            return voltage / MIN_RESISTANCE
        return voltage / companion.resistance + companion.current

    def commit_inductor(self, component: "ComponentBase", voltage: float, current: Optional[float]) -> None:
        if current is None or not math.isfinite(current):
            current = self.inductor_current(component, self.dt, voltage)
        entry = self.state(component)
        entry.prev_current = current
        entry.prev_voltage = voltage
        entry.history_ready = True
