"""
Core validation logic for decoded datasets.

The structural check (required columns) is fatal and runs through a pandera
schema built from the fetched DatasetSchema. The numeric check only samples
and warns.
"""

import re
from collections.abc import Sequence

import pandas as pd
import pandera.pandas as pa
from pandera.errors import SchemaErrors

from revopt.errors import EmptyDatasetError, MissingColumnsError
from revopt.schemas.dataset import DatasetSchema, Row
from revopt.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_SAMPLE_SIZE = 50

# Currency, percent and thousands separators tolerated in numeric columns
_NUMERIC_NOISE = re.compile(r"[$%,]")


def build_column_schema(schema: DatasetSchema) -> pa.DataFrameSchema:
    """
    Build a pandera schema enforcing the required columns.

    Columns are untyped and nullable: only their presence is checked.
    Extra columns are allowed.

    Args:
        schema: Fetched dataset schema.

    Returns:
        Pandera DataFrameSchema.
    """
    columns = {
        name: pa.Column(required=True, nullable=True) for name in schema.required_columns
    }
    return pa.DataFrameSchema(columns, strict=False, name="dataset")


def validate_rows(
    rows: Sequence[Row] | None,
    schema: DatasetSchema,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> list[str]:
    """
    Validate decoded rows against a dataset schema.

    Only the first row's columns are checked for required columns; later rows
    are assumed to share the header.

    Args:
        rows: Decoded rows.
        schema: Fetched dataset schema.
        sample_size: Rows to inspect per numeric column.

    Returns:
        Numeric columns that produced a non-numeric sample warning.

    Raises:
        EmptyDatasetError: If there are no rows.
        MissingColumnsError: If required columns are missing from the first row.
    """
    if not rows:
        raise EmptyDatasetError

    first = pd.DataFrame([rows[0]])
    try:
        build_column_schema(schema).validate(first, lazy=True)
    except SchemaErrors as e:
        present = set(rows[0])
        missing = [c for c in schema.required_columns if c not in present]
        log.error("Schema validation failed", missing=missing)
        raise MissingColumnsError(missing) from e

    return sample_numeric_columns(rows, schema.numeric_columns, sample_size)


def sample_numeric_columns(
    rows: Sequence[Row],
    columns: Sequence[str],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> list[str]:
    """
    Check that numeric columns hold numeric-like text.

    Warns at most once per column and stops sampling that column at the
    first offending value. Never raises.

    Returns:
        Columns that produced a warning.
    """
    flagged: list[str] = []
    sample = rows[:sample_size]

    for col in columns:
        for row in sample:
            value = row.get(col)
            if value is None or value == "":
                continue
            if not _is_numeric_like(value):
                log.warning("Non-numeric sample", column=col, value=value)
                flagged.append(col)
                break

    return flagged


def _is_numeric_like(value: object) -> bool:
    cleaned = _NUMERIC_NOISE.sub("", str(value)).strip()
    if not cleaned:
        return True
    try:
        pd.to_numeric(cleaned)
    except (ValueError, TypeError):
        return False
    return True
