"""
Remote resource models: the dataset manifest and the dataset schema.

Both are fetched fresh on every load attempt and never mutated.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# A decoded CSV row: column name -> cell text ("" for empty cells)
Row = dict[str, str]


class Manifest(BaseModel):
    """Dataset location and provenance published next to the payload."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = Field(description="Payload location, absolute or relative to the manifest")
    version: str | None = Field(default=None, description="Cache-busting payload token")
    schema_version: str | None = Field(
        default=None, description="Cache-busting token for the matching schema"
    )
    sha256: str | None = Field(default=None, description="Expected payload digest (hex)")

    @field_validator("version", "schema_version", "sha256", mode="before")
    @classmethod
    def coerce_token(cls, v: Any) -> Any:
        """Accept numeric tokens (e.g. ``"version": 3``) as strings."""
        if isinstance(v, bool):
            msg = f"Token must be a string or number, got: {v!r}"
            raise ValueError(msg)
        if isinstance(v, int | float):
            return str(v)
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure the payload location is not blank."""
        if not v.strip():
            msg = "Manifest url must not be empty"
            raise ValueError(msg)
        return v


class DatasetSchema(BaseModel):
    """Column contract the decoded payload must satisfy."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    required_columns: list[str] = Field(
        default_factory=list, description="Columns that must be present"
    )
    numeric_columns: list[str] = Field(
        default_factory=list, description="Columns expected to hold numeric-like text"
    )

    @field_validator("required_columns", "numeric_columns", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        """Treat an explicit JSON null as an empty list."""
        return [] if v is None else v
