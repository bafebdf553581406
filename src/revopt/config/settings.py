"""
Typed configuration models using Pydantic.

All configuration is defined here with explicit typing and validation.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from revopt.ingestion.fetcher import resolve_url
from revopt.utils.cache import DATA_KEY, META_KEY
from revopt.validation.core import DEFAULT_SAMPLE_SIZE


class SourceConfig(BaseModel):
    """Remote dataset location."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(description="Base URL the manifest and schema paths resolve against")
    manifest_path: str = Field(default="data/manifest.json")
    schema_path: str = Field(default="data/schema_v1.json")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure the base URL is absolute and ends with a slash."""
        if not v.startswith(("http://", "https://")):
            msg = f"base_url must be an absolute http(s) URL, got: {v!r}"
            raise ValueError(msg)
        return v if v.endswith("/") else v + "/"

    @property
    def manifest_url(self) -> str:
        """Absolute manifest URL."""
        return resolve_url(self.base_url, self.manifest_path)

    @property
    def schema_url(self) -> str:
        """Absolute schema URL."""
        return resolve_url(self.base_url, self.schema_path)


class TransportConfig(BaseModel):
    """HTTP transport settings handed to requests."""

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float | None = Field(
        default=30.0, gt=0, description="Per-request timeout (None disables)"
    )
    user_agent: str = Field(default="revopt/1.0")


class CacheConfig(BaseModel):
    """Last-known-good cache settings."""

    model_config = ConfigDict(frozen=True)

    directory: Path = Field(default=Path("./.revopt-cache"))
    data_key: str = Field(default=DATA_KEY)
    meta_key: str = Field(default=META_KEY)


class ValidationConfig(BaseModel):
    """Dataset validation settings."""

    model_config = ConfigDict(frozen=True)

    numeric_sample_size: int = Field(default=DEFAULT_SAMPLE_SIZE, ge=1)


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_output: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Ensure the level is a standard logging level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level: {v!r}"
            raise ValueError(msg)
        return level


class LoaderConfig(BaseModel):
    """Complete loader configuration."""

    model_config = ConfigDict(frozen=True)

    source: SourceConfig
    transport: TransportConfig = Field(default_factory=TransportConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def manifest_url(self) -> str:
        """Convenience accessor for the manifest URL."""
        return self.source.manifest_url

    @property
    def schema_url(self) -> str:
        """Convenience accessor for the schema URL."""
        return self.source.schema_url
