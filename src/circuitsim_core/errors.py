# src/circuitsim_core/errors.py
import logging
from typing import Any, Dict, Protocol, abstractmethod
from typing import runtime_checkable

logger = logging.getLogger(__name__)

# --- User-Facing Exception Hierarchy ---

class CircuitSimError(Exception):
    """Base class for all custom, user-facing errors in CircuitSim Core."""
    pass

class CircuitBuildError(CircuitSimError):
    """
    Raised when a circuit cannot be constructed from a description file or from
    raw component data. The message is a pre-formatted diagnostic report.
    """
    pass

class SimulationRunError(CircuitSimError):
    """
    Raised by `Circuit.run(strict=True)` when a step comes back invalid.
    The message is a pre-formatted diagnostic report.
    """
    pass


# --- Diagnostic Protocol & Base Exception ---

@runtime_checkable
class Diagnosable(Protocol):
    """
    A protocol for exceptions that can generate their own diagnostic report.
    """
    def get_diagnostic_report(self) -> str:
        """Generates a complete, user-friendly, multi-line report string."""
        ...

class DiagnosableError(Exception, Diagnosable):
    """
    Concrete base class for all internal exceptions that are diagnosable.

    Subclasses are catchable as plain exceptions and must implement
    `get_diagnostic_report`; they cannot be instantiated otherwise.
    """
    @abstractmethod
    def get_diagnostic_report(self) -> str:
        raise NotImplementedError


# --- Stateless Formatting Utility ---

def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    Formats the final multi-line report string so that every user-facing
    diagnostic has the same layout.

    Args:
        error_type: The high-level category of the error (e.g., "Singular Matrix").
        details: A detailed, potentially multi-line description of the problem.
        suggestion: Actionable advice for the user to resolve the issue.
        context: Contextual information (component id, source file, user input, time).

    Returns:
        A formatted report string ready for display.
    """
    lines = [
        "\n",
        "============= CircuitSim Core: Actionable Diagnostic Report =============",
        f"Error Type:     {error_type}",
    ]
    if component_id := context.get('component_id'):
        lines.append(f"Component:      {component_id}")
    if source_file := context.get('source_file'):
        lines.append(f"Source File:    {source_file}")
    if user_input := context.get('user_input'):
        lines.append(f"User Input:     '{user_input}'")
    if sim_time := context.get('sim_time'):
        lines.append(f"Sim Time:       {sim_time}")

    lines.append("\nDetails:")
    for line in details.splitlines():
        lines.append(f"  {line}")

    if suggestion:
        lines.append("\nSuggestion:")
        for line in suggestion.splitlines():
            lines.append(f"  {line}")

    lines.append("=========================================================================")
    return "\n".join(lines)
