# tests/test_config.py
import pytest

from circuitsim_core.simulation import ConfigParsingError, SolverConfig, parse_solver_config


class TestSolverConfig:

    def test_defaults(self):
        config = SolverConfig()
        assert config.dt == 0.01
        assert config.max_iterations == 40
        assert config.convergence_tolerance == 1e-6
        assert config.gmin == 1e-12

    @pytest.mark.parametrize("raw", [None, {}])
    def test_empty_block(self, raw):
        assert parse_solver_config(raw) == SolverConfig()

    def test_unit_strings(self):
        config = parse_solver_config({"dt": "2 ms", "convergence_tolerance": "1 uV", "gmin": "1 nS"})
        assert config.dt == pytest.approx(0.002)
        assert config.convergence_tolerance == pytest.approx(1e-6)
        assert config.gmin == pytest.approx(1e-9)
        assert config.max_iterations == 40

    def test_plain_numbers(self):
        config = parse_solver_config({"dt": 0.001, "max_iterations": 10})
        assert config == SolverConfig(dt=0.001, max_iterations=10)

    def test_zero_gmin_is_allowed(self):
        assert parse_solver_config({"gmin": 0}).gmin == 0.0

    @pytest.mark.parametrize("raw", [
        {"dt": 0},
        {"dt": "-1 s"},
        {"dt": "5 V"},
        {"dt": "5 parsec"},
        {"max_iterations": 0},
        {"max_iterations": "many"},
        {"convergence_tolerance": 0.0},
        {"gmin": -1e-12},
    ])
    def test_invalid_values(self, raw):
        with pytest.raises(ConfigParsingError):
            parse_solver_config(raw)

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError, match="Failed to parse solver configuration"):
            parse_solver_config({"dt": 0})
