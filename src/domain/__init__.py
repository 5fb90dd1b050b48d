"""Domain layer: errors, constants and schemas."""

from .errors import CompilerError, ErrorCodes
from .schemas import (
    BuildResult,
    Pattern,
    PatternReference,
    Specification,
    ValidationResult,
)

__all__ = [
    "CompilerError",
    "ErrorCodes",
    "Specification",
    "Pattern",
    "PatternReference",
    "ValidationResult",
    "BuildResult",
]
