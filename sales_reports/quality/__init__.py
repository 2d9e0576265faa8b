"""
Data Quality Module
"""
from .validators import (
    DataValidator,
    DimensionIntegrityError,
    MissingColumnsError,
    ValidationResult,
    require_columns,
    validate_report_inputs,
    validate_snapshot,
)

__all__ = [
    "DataValidator",
    "DimensionIntegrityError",
    "MissingColumnsError",
    "ValidationResult",
    "require_columns",
    "validate_report_inputs",
    "validate_snapshot",
]
