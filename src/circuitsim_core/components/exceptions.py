# src/circuitsim_core/components/exceptions.py
"""
Diagnosable exceptions for the components subsystem.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report

@dataclass()
class ComponentError(DiagnosableError):
    """
    Raised when a component cannot be created or configured: an unknown device
    type, an undeclared parameter name, or a value that cannot be converted to
    the parameter's unit.
    """
    component_id: str
    details: str

    def __str__(self):
        return f"Component '{self.component_id}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Component Configuration Error",
            details=self.details,
            suggestion="Check the component type and its parameter names and values (numbers in SI units or strings such as '4.7 kohm').",
            context={'component_id': self.component_id}
        )
