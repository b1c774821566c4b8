# tests/test_mna_system.py
import numpy as np
import pytest

from circuitsim_core.constants import MIN_RESISTANCE
from circuitsim_core.simulation import MnaSystem


class TestLayout:

    def test_size_counts_non_ground_nodes_and_aux_rows(self):
        system = MnaSystem(node_count=3, aux_count=2)
        assert system.size == 4
        assert system.matrix.shape == (4, 4)
        assert system.rhs.shape == (4,)

    def test_row_mapping(self):
        system = MnaSystem(node_count=3, aux_count=1)
        assert system.node_row(0) is None
        assert system.node_row(-1) is None
        assert system.node_row(1) == 0
        assert system.node_row(2) == 1
        assert system.aux_row(0) == 2


class TestStamps:

    def test_resistor_between_two_nodes(self):
        system = MnaSystem(3, 0)
        system.stamp_resistor(1, 2, 2.0)
        np.testing.assert_allclose(system.matrix, [[0.5, -0.5], [-0.5, 0.5]])

    def test_resistor_to_ground_touches_one_side(self):
        system = MnaSystem(2, 0)
        system.stamp_resistor(1, 0, 4.0)
        assert system.matrix[0, 0] == pytest.approx(0.25)

    def test_unconnected_terminal_is_ignored(self):
        system = MnaSystem(2, 0)
        system.stamp_resistor(-1, 1, 4.0)
        assert system.matrix[0, 0] == pytest.approx(0.25)
        system.stamp_current_source(-1, -1, 1.0)
        assert not system.rhs.any()

    def test_zero_resistance_is_clamped(self):
        system = MnaSystem(2, 0)
        system.stamp_resistor(1, 0, 0.0)
        assert system.matrix[0, 0] == pytest.approx(1.0 / MIN_RESISTANCE)

    def test_current_source_direction(self):
        system = MnaSystem(3, 0)
        system.stamp_current_source(1, 2, 2.0)
        np.testing.assert_allclose(system.rhs, [-2.0, 2.0])

    def test_negligible_current_is_skipped(self):
        system = MnaSystem(2, 0)
        system.stamp_current_source(0, 1, 1e-30)
        assert system.rhs[0] == 0.0

    def test_voltage_source_rows(self):
        system = MnaSystem(3, 1)
        system.stamp_voltage_source(1, 2, 5.0, vs_index=0)
        k = system.aux_row(0)
        assert system.matrix[k, 0] == 1.0 and system.matrix[0, k] == 1.0
        assert system.matrix[k, 1] == -1.0 and system.matrix[1, k] == -1.0
        assert system.rhs[k] == 5.0

    def test_voltage_source_series_resistance(self):
        system = MnaSystem(2, 1)
        system.stamp_voltage_source(1, 0, 0.5, vs_index=0, series_resistance=5.0)
        k = system.aux_row(0)
        assert system.matrix[k, k] == -5.0

    def test_gmin_only_on_node_rows(self):
        system = MnaSystem(3, 1)
        system.add_gmin(1e-12)
        np.testing.assert_allclose(np.diag(system.matrix), [1e-12, 1e-12, 0.0])

    def test_reset_clears_everything(self):
        system = MnaSystem(2, 0)
        system.stamp_resistor(1, 0, 1.0)
        system.stamp_current_source(0, 1, 1.0)
        system.reset()
        assert not system.matrix.any() and not system.rhs.any()
