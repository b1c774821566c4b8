# tests/test_nonlinear.py
import numpy as np
import pytest

from conftest import make
from circuitsim_core.simulation import InvalidReason, MnaSolver, SolverConfig


def diode_circuit(forward=True, voltage=5.0, load=100.0):
    diode_nodes = [2, 0] if forward else [0, 2]
    return [
        make("PowerSource", "V1", nodes=[1, 0], voltage=voltage, internal_resistance=0.0),
        make("Resistor", "R1", nodes=[1, 2], resistance=load),
        make("Diode", "D1", nodes=diode_nodes),
    ]


class TestDiode:

    def test_forward_bias_conducts(self, solver):
        solver.set_circuit(diode_circuit(forward=True), 3)
        result = solver.solve(0.01, 0.0)
        assert result.valid
        assert result.meta.converged
        assert 1 < result.meta.iterations <= result.meta.max_iterations == 40
        assert result.currents["D1"] == pytest.approx((5.0 - 0.7) / 101.0, rel=0.1)
        assert result.currents["D1"] == pytest.approx(result.currents["R1"], rel=1e-6)
        assert solver.simulation_state.get("D1").conducting

    def test_reverse_bias_blocks(self, solver):
        solver.set_circuit(diode_circuit(forward=False), 3)
        result = solver.solve(0.01, 0.0)
        assert result.valid
        assert abs(result.currents["D1"]) < 1e-6
        assert result.voltages[2] == pytest.approx(5.0, abs=1e-3)
        assert not solver.simulation_state.get("D1").conducting

    def test_explicit_saturation_current(self, solver):
        components = diode_circuit()
        components[2].set_parameter("saturation_current", "1 nA")
        solver.set_circuit(components, 3)
        result = solver.solve(0.01, 0.0)
        assert result.valid
        assert components[2].junction_parameters().saturation_current == pytest.approx(1e-9)

    def test_iteration_budget_exhausted(self):
        solver = MnaSolver(SolverConfig(max_iterations=1))
        solver.set_circuit(diode_circuit(), 3)
        result = solver.solve(0.01, 0.0)
        assert not result.valid
        assert not result.meta.converged
        assert result.meta.invalid_reason is InvalidReason.NOT_CONVERGED
        assert result.meta.iterations == 1
        # Last voltages are still reported for display.
        assert result.voltages[1] == pytest.approx(5.0)
        # Nothing is committed from a failed solve.
        assert solver.simulation_state.get("D1").junction_voltage == 0.0

    def test_linear_circuit_takes_one_pass(self, solver):
        solver.set_circuit(diode_circuit()[:2], 3)
        result = solver.solve(0.01, 0.0)
        assert result.meta.iterations == 1
        assert result.meta.max_iterations == 1


class TestLed:

    def test_forward_led(self, solver):
        components = [
            make("PowerSource", "V1", nodes=[1, 0], voltage=5.0, internal_resistance=0.0),
            make("Resistor", "R1", nodes=[1, 2], resistance=150.0),
            make("LED", "L1", nodes=[2, 0]),
        ]
        solver.set_circuit(components, 3)
        result = solver.solve(0.01, 0.0)
        assert result.valid
        assert result.currents["L1"] == pytest.approx(3.0 / 152.0, rel=0.05)
        assert solver.simulation_state.get("L1").conducting
        assert components[2].brightness(result.currents["L1"], 2.0) == pytest.approx(
            result.currents["L1"] / 0.02
        )


class TestRelay:

    def _circuit(self, voltage):
        return [
            make("PowerSource", "V1", nodes=[1, 0], voltage=voltage, internal_resistance=0.0),
            make("Relay", "K1", nodes=[1, 0, 1, 2]),
            make("Resistor", "RL", nodes=[2, 0], resistance=10.0),
        ]

    def test_pull_in_closes_contact(self, solver):
        solver.set_circuit(self._circuit(10.0), 3)
        result = solver.solve(0.01, 0.0)
        assert result.valid
        assert result.meta.iterations == 2
        assert result.currents["K1"] == pytest.approx(0.05, rel=1e-6)
        assert result.currents["RL"] == pytest.approx(1.0, rel=1e-3)
        assert solver.simulation_state.get("K1").energized

    def test_hysteresis_band_keeps_state(self, solver):
        solver.set_circuit(self._circuit(3.0), 3)
        released = solver.solve(0.01, 0.0)
        assert released.currents["RL"] == pytest.approx(0.0, abs=1e-6)
        assert not solver.simulation_state.get("K1").energized

        solver.simulation_state.get("K1").energized = True
        held = solver.solve(0.01, 0.0)
        assert held.valid
        assert held.currents["RL"] == pytest.approx(0.3, rel=1e-3)
        assert solver.simulation_state.get("K1").energized

    def test_drop_out_releases(self, solver):
        solver.set_circuit(self._circuit(1.0), 3)
        solver.simulation_state.get("K1").energized = True
        result = solver.solve(0.01, 0.0)
        assert result.valid
        assert result.currents["RL"] == pytest.approx(0.0, abs=1e-6)
        assert not solver.simulation_state.get("K1").energized


class TestIdempotence:

    def test_repeated_nonlinear_solve_is_bit_identical(self, solver):
        solver.set_circuit(diode_circuit(), 3)
        first = solver.solve(0.01, 0.0)
        second = solver.solve(0.01, 0.0)
        assert first.valid and second.valid
        np.testing.assert_array_equal(first.voltages, second.voltages)
        assert first.currents == second.currents

    def test_repeated_dynamic_solve_is_bit_identical(self, solver):
        components = [
            make("PowerSource", "V1", nodes=[1, 0], voltage=10.0, internal_resistance=0.0),
            make("Resistor", "R1", nodes=[1, 2], resistance=100.0),
            make("Capacitor", "C1", nodes=[2, 0], capacitance=1e-3),
            make("Relay", "K1", nodes=[1, 0, 2, 0]),
        ]
        solver.set_circuit(components, 3)
        first = solver.solve(0.01, 0.0)
        solver.set_circuit(components, 3)
        second = solver.solve(0.01, 0.0)
        np.testing.assert_array_equal(first.voltages, second.voltages)
        assert first.currents == second.currents
