# src/circuitsim_core/parser/exceptions.py
"""
Diagnosable exceptions for the circuit-description loading stage.

`ParsingError` covers file-level and YAML syntax problems, while
`SchemaValidationError` covers structural violations reported by Cerberus.
Both derive from `DiagnosableError`, so `Circuit.load_file` can wrap either
into one `CircuitBuildError`.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import DiagnosableError, format_diagnostic_report


class BaseParsingError(DiagnosableError):
    """Local base class for all YAML parsing and schema validation errors."""
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Parsing Error",
            details=str(self),
            suggestion="Please check the format and content of the circuit description file.",
            context={}
        )


@dataclass(frozen=True)
class ParsingError(BaseParsingError):
    """
    A file could not be read or does not contain a YAML mapping.
    """
    details: str
    file_path: Optional[Path] = None

    def __str__(self):
        return f"Parsing error in file '{self.file_path}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="YAML Parsing or File Error",
            details=self.details,
            suggestion="Ensure the file exists, has the correct read permissions, and contains valid YAML syntax.",
            context={'source_file': self.file_path}
        )


@dataclass(frozen=True)
class SchemaValidationError(BaseParsingError):
    """
    The YAML is syntactically valid but does not describe a circuit (missing
    keys, unknown component types, duplicate ids, malformed coordinates).
    """
    errors: Dict[str, Any]
    file_path: Optional[Path] = None

    def _error_lines(self):
        return [f"  - Field '{k}': {v}" for k, v in sorted(self.errors.items())]

    def __str__(self):
        return (
            f"YAML schema validation failed for file '{self.file_path}':\n"
            + "\n".join(self._error_lines())
        )

    def get_diagnostic_report(self) -> str:
        details = (
            "The structure of the YAML file does not conform to the circuit description schema.\n"
            f"See details for {len(self.errors)} issue(s) below:\n\n" + "\n".join(self._error_lines())
        )
        return format_diagnostic_report(
            error_type="YAML Schema Validation Error",
            details=details,
            suggestion="Correct the listed fields. Check for unknown component types, duplicate component or wire ids, and coordinates that are not [x, y] pairs.",
            context={'source_file': self.file_path}
        )
