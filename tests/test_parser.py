# tests/test_parser.py
from pathlib import Path

import pytest
import yaml

from circuitsim_core.parser import CircuitDescriptionParser, ParsingError, SchemaValidationError


@pytest.fixture
def parser():
    return CircuitDescriptionParser()


@pytest.fixture
def divider_yaml():
    return """
circuit_name: Divider
solver:
  dt: 1 ms
  max_iterations: 20
components:
  - id: V1
    type: PowerSource
    parameters:
      voltage: 9 V
  - id: R1
    type: Resistor
    x: 120
    y: 40
    rotation: 90
    parameters:
      resistance: 1 kohm
  - id: G1
    type: Ground
wires:
  - id: w1
    a: [30, 0]
    b: [120, 10]
    a_ref: {component: V1, terminal: 0}
  - id: w2
    a: [-30, 0]
    b: [0, -20]
"""


def write(tmp_path: Path, text: str, name: str = "circuit.yaml") -> Path:
    path = tmp_path / name
    path.write_text(text)
    return path


class TestValidDescriptions:

    def test_parse_file(self, parser, tmp_path, divider_yaml):
        description = parser.parse_file(write(tmp_path, divider_yaml))
        assert description.circuit_name == "Divider"
        assert [c.instance_id for c in description.components] == ["V1", "R1", "G1"]
        resistor = description.components[1]
        assert (resistor.x, resistor.y, resistor.rotation) == (120, 40, 90)
        assert resistor.raw_parameters_dict == {"resistance": "1 kohm"}
        assert description.raw_solver_config == {"dt": "1 ms", "max_iterations": 20}

    def test_placement_defaults(self, parser, tmp_path, divider_yaml):
        ground = parser.parse_file(write(tmp_path, divider_yaml)).components[2]
        assert (ground.x, ground.y, ground.rotation) == (0, 0, 0)
        assert ground.raw_parameters_dict == {}

    def test_wires(self, parser, tmp_path, divider_yaml):
        description = parser.parse_file(write(tmp_path, divider_yaml))
        w1, w2 = description.wires
        assert w1.a == (30, 0)
        assert w1.a_ref == ("V1", 0)
        assert w1.b_ref is None
        assert w2.a_ref is None

    def test_wires_are_optional(self, parser):
        description = parser.parse_mapping({"components": [{"id": "R1", "type": "Resistor"}]})
        assert description.wires == []
        assert description.circuit_name == "circuit"
        assert description.raw_solver_config is None

    def test_name_falls_back_to_file_stem(self, parser, tmp_path):
        path = write(tmp_path, "components:\n  - {id: R1, type: Resistor}\n", name="bench.yaml")
        description = parser.parse_file(path)
        assert description.circuit_name == "bench"
        assert description.source_yaml_path == path.resolve()

    def test_parameter_values_kept_verbatim(self, parser):
        description = parser.parse_mapping({"components": [
            {"id": "S1", "type": "Switch", "parameters": {"closed": True}},
            {"id": "VM", "type": "Voltmeter", "parameters": {"resistance": None}},
        ]})
        assert description.components[0].raw_parameters_dict == {"closed": True}
        assert description.components[1].raw_parameters_dict == {"resistance": None}


class TestSchemaViolations:

    def _errors(self, parser, document) -> SchemaValidationError:
        with pytest.raises(SchemaValidationError) as exc_info:
            parser.parse_mapping(document)
        return exc_info.value

    def test_unknown_component_type(self, parser):
        error = self._errors(parser, {"components": [{"id": "Q1", "type": "Transistor"}]})
        assert "components" in error.errors
        assert "unallowed value Transistor" in str(error)

    def test_duplicate_component_ids(self, parser):
        error = self._errors(parser, {"components": [
            {"id": "R1", "type": "Resistor"},
            {"id": "R1", "type": "Resistor"},
        ]})
        assert "Duplicate values found for key 'id': ['R1']" in str(error)

    def test_duplicate_wire_ids(self, parser):
        error = self._errors(parser, {
            "components": [{"id": "R1", "type": "Resistor"}],
            "wires": [
                {"id": "w1", "a": [0, 0], "b": [10, 0]},
                {"id": "w1", "a": [0, 0], "b": [0, 10]},
            ],
        })
        assert "wires" in error.errors

    def test_invalid_identifier(self, parser):
        error = self._errors(parser, {"components": [{"id": "R-1", "type": "Resistor"}]})
        assert "Forbidden character(s): ['-']" in str(error)

    def test_rotation_must_be_quarter_turn(self, parser):
        self._errors(parser, {"components": [{"id": "R1", "type": "Resistor", "rotation": 45}]})

    def test_point_needs_two_coordinates(self, parser):
        error = self._errors(parser, {
            "components": [{"id": "R1", "type": "Resistor"}],
            "wires": [{"id": "w1", "a": [0, 0, 0], "b": [10, 0]}],
        })
        assert "wires" in error.errors

    def test_components_required(self, parser):
        error = self._errors(parser, {"circuit_name": "empty"})
        assert "components" in error.errors
        self._errors(parser, {"components": []})

    def test_unknown_top_level_key(self, parser):
        error = self._errors(parser, {"components": [{"id": "R1", "type": "Resistor"}], "ports": []})
        assert "ports" in error.errors

    def test_reference_to_unknown_component(self, parser):
        error = self._errors(parser, {
            "components": [{"id": "R1", "type": "Resistor"}],
            "wires": [{"id": "w1", "a": [0, 0], "b": [10, 0], "b_ref": {"component": "R9", "terminal": 1}}],
        })
        assert error.errors == {"wires.w1.b_ref": "unknown component 'R9'"}

    def test_negative_terminal_index(self, parser):
        self._errors(parser, {
            "components": [{"id": "R1", "type": "Resistor"}],
            "wires": [{"id": "w1", "a": [0, 0], "b": [10, 0], "a_ref": {"component": "R1", "terminal": -1}}],
        })

    def test_report(self, parser, tmp_path):
        path = write(tmp_path, "components:\n  - {id: Q1, type: Transistor}\n")
        with pytest.raises(SchemaValidationError) as exc_info:
            parser.parse_file(path)
        report = exc_info.value.get_diagnostic_report()
        assert "YAML Schema Validation Error" in report
        assert str(path.resolve()) in report


class TestFileErrors:

    def test_missing_file(self, parser, tmp_path):
        with pytest.raises(ParsingError, match="not found"):
            parser.parse_file(tmp_path / "nope.yaml")

    def test_empty_file(self, parser, tmp_path):
        with pytest.raises(ParsingError, match="empty"):
            parser.parse_file(write(tmp_path, ""))

    def test_root_must_be_mapping(self, parser, tmp_path):
        with pytest.raises(ParsingError, match="must be a dictionary"):
            parser.parse_file(write(tmp_path, yaml.safe_dump([1, 2, 3])))

    def test_invalid_syntax(self, parser, tmp_path):
        with pytest.raises(ParsingError) as exc_info:
            parser.parse_file(write(tmp_path, "components: [\n  - id: R1\n"))
        assert "Invalid YAML syntax" in exc_info.value.details
        assert "YAML Parsing or File Error" in exc_info.value.get_diagnostic_report()
