# src/circuitsim_core/parser/parser.py
import logging
import re
import string
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import cerberus
import yaml

from ..components.base_enums import ComponentKind
from .raw_data import ParsedCircuitDescription, ParsedComponentData, ParsedWireData
from .exceptions import ParsingError, SchemaValidationError

logger = logging.getLogger(__name__)

ID_REGEX = r"^[a-zA-Z_][a-zA-Z0-9_]*$"
ALLOWED_ID_CHARS = set(string.ascii_letters + string.digits + "_")


class EnhancedValidator(cerberus.Validator):
    """Custom Cerberus validator with identifier and uniqueness rules."""
    def __init__(self, *args, **kwargs):
        super(EnhancedValidator, self).__init__(*args, **kwargs)
        self.rules['id_regex'] = {'schema': {'type': 'boolean'}}
        self.rules['unique_elements_by_key'] = {'schema': {'type': 'string'}}

    def _validate_id_regex(self, constraint: bool, field: str, value: Any):
        """
        Validates that a value is a legal component or wire identifier.
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if not constraint: return
        if not isinstance(value, str):
            self._error(field, "must be a string to be validated by id_regex.")
            return

        if not re.match(ID_REGEX, value):
            invalid_chars = sorted(list(set(value) - ALLOWED_ID_CHARS))
            self._error(
                field,
                f"Identifier '{value}' is invalid. Identifiers must start with a letter or underscore, "
                f"and can only contain letters, numbers, and underscores. Forbidden character(s): {invalid_chars}"
            )

    def _validate_unique_elements_by_key(self, key_for_uniqueness: str, field: str, value: List[Dict]):
        """
        Validates that all dictionaries in a list have a unique value for a given key.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        if not isinstance(value, list):
            return

        seen_keys = set()
        duplicates = []
        for item in value:
            if not isinstance(item, dict):
                continue
            item_key = item.get(key_for_uniqueness)
            if item_key is not None:
                if item_key in seen_keys:
                    duplicates.append(item_key)
                else:
                    seen_keys.add(item_key)

        if duplicates:
            unique_duplicates = sorted(list(set(duplicates)))
            self._error(field, f"Duplicate values found for key '{key_for_uniqueness}': {unique_duplicates}")


class CircuitDescriptionParser:
    """
    Loads and validates a YAML circuit description (components placed on the
    canvas plus the wires between them) into a `ParsedCircuitDescription`.
    """
    _id_rule = {"type": "string", "required": True, "empty": False, "id_regex": True}
    _point_rule = {"type": "list", "required": True, "minlength": 2, "maxlength": 2, "schema": {"type": "number"}}
    _terminal_ref_rule = {
        "type": "dict", "required": False, "nullable": True,
        "schema": {
            "component": {"type": "string", "required": True, "empty": False},
            "terminal": {"type": "integer", "required": True, "min": 0},
        },
    }
    _quantity_rule = {"type": ["string", "number"], "required": False}

    _component_schema = {
        "id": _id_rule,
        "type": {"type": "string", "required": True, "allowed": [kind.value for kind in ComponentKind]},
        "x": {"type": "number", "required": False, "default": 0},
        "y": {"type": "number", "required": False, "default": 0},
        "rotation": {"type": "integer", "required": False, "default": 0, "allowed": [0, 90, 180, 270]},
        "parameters": {
            "type": "dict", "required": False,
            "keysrules": {"type": "string", "regex": ID_REGEX},
            "valuesrules": {"type": ["string", "number", "boolean"], "nullable": True},
        },
    }

    _wire_schema = {
        "id": _id_rule,
        "a": _point_rule,
        "b": _point_rule,
        "a_ref": _terminal_ref_rule,
        "b_ref": _terminal_ref_rule,
    }

    _schema = {
        "circuit_name": {"type": "string", "required": False, "empty": False},
        "solver": {
            "type": "dict", "required": False, "schema": {
                "dt": _quantity_rule,
                "max_iterations": {"type": "integer", "required": False, "min": 1},
                "convergence_tolerance": _quantity_rule,
                "gmin": _quantity_rule,
            },
        },
        "components": {"type": "list", "required": True, "minlength": 1, "unique_elements_by_key": "id", "schema": {"type": "dict", "schema": _component_schema}},
        "wires": {"type": "list", "required": False, "default": [], "unique_elements_by_key": "id", "schema": {"type": "dict", "schema": _wire_schema}},
    }

    def __init__(self):
        self._validator = EnhancedValidator(self._schema)
        self._validator.allow_unknown = False
        logger.info("CircuitDescriptionParser initialized.")

    def parse_file(self, yaml_path: Union[str, Path]) -> ParsedCircuitDescription:
        """Reads, validates and converts one circuit description file."""
        resolved_path = Path(yaml_path).resolve()
        logger.debug(f"Parsing circuit description file: {resolved_path}")
        content = self._load_yaml(resolved_path)
        return self.parse_mapping(content, source_path=resolved_path)

    def parse_mapping(self, content: Dict[str, Any], source_path: Optional[Path] = None) -> ParsedCircuitDescription:
        """Validates an already-loaded description document."""
        if not self._validator.validate(content):
            raise SchemaValidationError(self._validator.errors, source_path)
        validated_data = self._validator.document

        components = [
            ParsedComponentData(
                instance_id=raw["id"],
                component_type=raw["type"],
                x=raw.get("x", 0),
                y=raw.get("y", 0),
                rotation=raw.get("rotation", 0),
                raw_parameters_dict=dict(raw.get("parameters") or {}),
            )
            for raw in validated_data["components"]
        ]
        component_ids = {c.instance_id for c in components}

        wires: List[ParsedWireData] = []
        dangling: Dict[str, str] = {}
        for raw in validated_data.get("wires") or []:
            refs = {}
            for which in ("a_ref", "b_ref"):
                ref = raw.get(which)
                if ref is None:
                    refs[which] = None
                    continue
                if ref["component"] not in component_ids:
                    dangling[f"wires.{raw['id']}.{which}"] = f"unknown component '{ref['component']}'"
                refs[which] = (ref["component"], ref["terminal"])
            wires.append(ParsedWireData(
                wire_id=raw["id"],
                a=tuple(raw["a"]),
                b=tuple(raw["b"]),
                a_ref=refs["a_ref"],
                b_ref=refs["b_ref"],
            ))
        if dangling:
            raise SchemaValidationError(dangling, source_path)

        name = validated_data.get("circuit_name") or (source_path.stem if source_path else "circuit")
        logger.info(f"Parsed circuit '{name}': {len(components)} components, {len(wires)} wires.")
        return ParsedCircuitDescription(
            circuit_name=name,
            source_yaml_path=source_path,
            components=components,
            wires=wires,
            raw_solver_config=validated_data.get("solver"),
        )

    def _load_yaml(self, source: Path) -> Dict[str, Any]:
        """Loads and performs basic sanity checks on a YAML file."""
        if not source.is_file():
            raise ParsingError(details=f"Circuit description file not found at path: {source}", file_path=source)
        try:
            with source.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
            if content is None:
                raise ParsingError(details="The YAML file is empty or contains no valid content.", file_path=source)
            if not isinstance(content, dict):
                raise ParsingError(details="The root of the YAML file must be a dictionary (mapping).", file_path=source)
            return content
        except PermissionError as e:
            raise ParsingError(details=f"Permission denied when trying to read file: {e}", file_path=source) from e
        except yaml.YAMLError as e:
            raise ParsingError(details=f"Invalid YAML syntax: {e}", file_path=source) from e
