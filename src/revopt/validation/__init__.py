"""Dataset validation against a fetched schema."""

from revopt.validation.core import (
    DEFAULT_SAMPLE_SIZE,
    build_column_schema,
    sample_numeric_columns,
    validate_rows,
)
from revopt.validation.reporter import ConsoleReporter

__all__ = [
    "DEFAULT_SAMPLE_SIZE",
    "ConsoleReporter",
    "build_column_schema",
    "sample_numeric_columns",
    "validate_rows",
]
