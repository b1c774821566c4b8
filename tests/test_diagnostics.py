# tests/test_diagnostics.py
import logging

import pytest

from conftest import make, solve_once
from circuitsim_core.simulation import (
    FAILURE_PRIORITY,
    FailureCategory,
    InvalidReason,
    MnaInputError,
    SolveMeta,
    SolveResult,
    classify_failures,
    detect_short_circuits,
)
from circuitsim_core.topology import TopologyIssueCode, check_topology


def parallel_ideal_sources():
    return [
        make("PowerSource", "V1", nodes=[1, 0], voltage=10.0, internal_resistance=0.0),
        make("PowerSource", "V2", nodes=[1, 0], voltage=5.0, internal_resistance=0.0),
        make("Resistor", "R1", nodes=[1, 0], resistance=10.0),
    ]


class TestSingularCircuits:

    def test_parallel_ideal_sources_fail_factorization(self):
        result = solve_once(parallel_ideal_sources(), 2)
        assert not result.valid
        assert result.meta.invalid_reason is InvalidReason.FACTORIZATION_FAILED
        assert set(result.currents.values()) == {0.0}

    def test_topology_check_names_the_loop(self):
        issues = check_topology(parallel_ideal_sources(), 2)
        assert [issue.code for issue in issues] == [TopologyIssueCode.CONFLICTING_SOURCES]
        assert set(issues[0].component_ids) == {"V1", "V2"}

    def test_ideal_ammeter_across_ideal_source(self):
        components = [
            make("PowerSource", "V1", nodes=[1, 0], voltage=10.0, internal_resistance=0.0),
            make("Ammeter", "A1", nodes=[1, 0]),
        ]
        issues = check_topology(components, 2)
        assert issues[0].code is TopologyIssueCode.CONFLICTING_SOURCES

    def test_norton_sources_in_parallel_are_fine(self):
        components = [
            make("PowerSource", "V1", nodes=[1, 0], voltage=10.0),
            make("PowerSource", "V2", nodes=[1, 0], voltage=5.0),
        ]
        assert check_topology(components, 2) == []
        result = solve_once(components, 2)
        assert result.valid
        assert result.voltages[1] == pytest.approx(7.5)


class TestShortCircuit:

    def test_zero_ohm_load_is_flagged(self, caplog):
        components = [
            make("PowerSource", "V1", nodes=[1, 0], voltage=12.0, internal_resistance=0.5),
            make("Resistor", "R1", nodes=[1, 0], resistance=0.0),
        ]
        with caplog.at_level(logging.WARNING):
            result = solve_once(components, 2)
        assert result.valid
        assert result.meta.short_circuit_source_ids == ("V1",)
        assert result.meta.short_circuit_detected
        assert result.currents["V1"] == pytest.approx(24.0, rel=1e-6)
        assert "Short circuit detected" in caplog.text

    def test_terminals_on_one_node(self):
        components = [
            make("PowerSource", "V1", nodes=[1, 1], voltage=12.0, internal_resistance=0.5),
            make("Resistor", "R1", nodes=[1, 0], resistance=10.0),
        ]
        result = solve_once(components, 2)
        assert result.valid
        assert result.meta.short_circuit_source_ids == ("V1",)
        assert result.currents["V1"] == pytest.approx(24.0)

    def test_normal_load_is_not_flagged(self):
        components = [
            make("PowerSource", "V1", nodes=[1, 0], voltage=12.0, internal_resistance=0.5),
            make("Resistor", "R1", nodes=[1, 0], resistance=100.0),
        ]
        result = solve_once(components, 2)
        assert not result.meta.short_circuit_detected

    def test_ideal_source_is_only_flagged_when_terminals_coincide(self):
        components = [
            make("PowerSource", "V1", nodes=[1, 0], voltage=12.0, internal_resistance=0.0),
            make("Resistor", "R1", nodes=[1, 0], resistance=0.0),
        ]
        result = solve_once(components, 2)
        assert detect_short_circuits(components, result.voltages, result.currents, 0.0) == ()

    def test_unwired_sources_are_ignored(self):
        source = make("PowerSource", "V1", nodes=[1, -1])
        assert detect_short_circuits([source], [0.0, 0.0], {"V1": 100.0}, 0.0) == ()


class TestFloating:

    def test_floating_island_reported(self):
        components = [
            make("PowerSource", "V1", nodes=[1, 0], voltage=10.0),
            make("Resistor", "R1", nodes=[1, 0], resistance=10.0),
            make("Resistor", "R2", nodes=[2, 3], resistance=10.0),
        ]
        issues = check_topology(components, 4)
        assert len(issues) == 1
        assert issues[0].code is TopologyIssueCode.FLOATING_SUBCIRCUIT
        assert issues[0].component_ids == ("R2",)
        assert issues[0].nodes == (2, 3)
        result = solve_once(components, 4)
        assert result.valid
        assert classify_failures(result, issues) == [FailureCategory.FLOATING_SUBCIRCUIT]

    def test_ideal_voltmeter_does_not_ground_a_node(self):
        components = [
            make("Resistor", "R1", nodes=[1, 2], resistance=10.0),
            make("Voltmeter", "VM", nodes=[1, 0]),
        ]
        issues = check_topology(components, 3)
        assert [issue.code for issue in issues] == [TopologyIssueCode.FLOATING_SUBCIRCUIT]

    def test_trivial_topology_has_no_issues(self):
        assert check_topology([], 1) == []


class TestClassification:

    def test_priority_order(self):
        assert FAILURE_PRIORITY[0] is FailureCategory.CONFLICTING_SOURCES
        assert FAILURE_PRIORITY[-1] is FailureCategory.FLOATING_SUBCIRCUIT

    def test_conflicting_sources_before_singular(self):
        components = parallel_ideal_sources()
        result = solve_once(components, 2)
        categories = classify_failures(result, check_topology(components, 2))
        assert categories == [FailureCategory.CONFLICTING_SOURCES, FailureCategory.SINGULAR_MATRIX]

    @pytest.mark.parametrize("reason, category", [
        (InvalidReason.FACTORIZATION_FAILED, FailureCategory.SINGULAR_MATRIX),
        (InvalidReason.SOLVE_FAILED, FailureCategory.SINGULAR_MATRIX),
        (InvalidReason.NOT_CONVERGED, FailureCategory.NOT_CONVERGED),
    ])
    def test_invalid_reason_mapping(self, reason, category):
        result = SolveResult(
            voltages=[0.0], currents={}, valid=False,
            meta=SolveMeta(converged=False, iterations=1, max_iterations=1, invalid_reason=reason),
        )
        assert classify_failures(result) == [category]

    def test_short_circuit_category(self):
        result = SolveResult(
            voltages=[0.0], currents={}, valid=True,
            meta=SolveMeta(converged=True, iterations=1, max_iterations=1, short_circuit_source_ids=("V1",)),
        )
        assert classify_failures(result) == [FailureCategory.SHORT_CIRCUIT]

    def test_only_floating_is_not_fatal(self):
        fatal = [category for category in FailureCategory if category.is_fatal]
        assert FailureCategory.FLOATING_SUBCIRCUIT not in fatal
        assert len(fatal) == len(FailureCategory) - 1


class TestInputErrors:

    def test_report_names_the_component(self):
        error = MnaInputError(component_id="R9", details="Expected 2 node indices, got 3.")
        report = error.get_diagnostic_report()
        assert "MNA Input Error" in report
        assert "R9" in report
        assert "Expected 2 node indices" in report
        assert str(error) == "Malformed component 'R9': Expected 2 node indices, got 3."
