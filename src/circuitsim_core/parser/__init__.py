from .raw_data import (
    ParsedCircuitDescription,
    ParsedComponentData,
    ParsedWireData,
)
from .parser import CircuitDescriptionParser
from .exceptions import ParsingError, SchemaValidationError

__all__ = [
    # IR Data Structures
    "ParsedCircuitDescription",
    "ParsedComponentData",
    "ParsedWireData",
    # Parser and Exceptions
    "CircuitDescriptionParser",
    "ParsingError",
    "SchemaValidationError",
]
