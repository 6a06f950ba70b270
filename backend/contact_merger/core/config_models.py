"""
Pydantic models for configuration schema.

These models define the configuration structure for:
- Global settings (output format, logging)
- Merge profiles (named selector sets)
- Field selectors passed to the aggregator
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


NULL_ARGUMENT_MESSAGE = "argument must not be null"


# =============================================================================
# ENUMS
# =============================================================================


class OutputFormat(str, Enum):
    """Supported result serialization formats."""

    JSON = "json"
    YAML = "yaml"


# =============================================================================
# SELECTORS
# =============================================================================


class Selectors(BaseModel):
    """
    Field selectors for one aggregation run.

    The three single-field selectors must name a field; the list selectors
    may be empty and may repeat entries. Selectors are not checked against
    the record schema: a field missing from a record reads as "".
    """

    model_config = {"frozen": True}

    group_by_field: str = Field(..., min_length=1, description="Field to group records by")
    code_field: str = Field(..., min_length=1, description="Field holding the destination code")
    destination_field: str = Field(
        ..., min_length=1, description="Field holding the destination value"
    )
    label_fields: list[str] = Field(
        default_factory=list, description="Fields whose values become labels"
    )
    variable_fields: list[str] = Field(
        default_factory=list, description="Fields merged with last-write-wins"
    )

    @model_validator(mode="before")
    @classmethod
    def reject_null(cls, data: Any) -> Any:
        """Reject selectors that are explicitly null."""
        if isinstance(data, dict):
            for name, value in data.items():
                if value is None:
                    raise ValueError(f"{name}: {NULL_ARGUMENT_MESSAGE}")
        return data

    @field_validator("label_fields", "variable_fields", mode="before")
    @classmethod
    def split_comma_list(cls, v: Any) -> Any:
        """Allow shorthand "a, b" for a field list."""
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v


# =============================================================================
# GLOBAL CONFIG MODELS
# =============================================================================


class OutputConfig(BaseModel):
    """Output file configuration."""

    format: OutputFormat = Field(default=OutputFormat.JSON, description="Result format")
    indent: int = Field(default=2, ge=0, description="Indentation for serialized output")
    sort_keys: bool = Field(
        default=True, description="Sort group keys for deterministic output"
    )
    encoding: str = Field(default="utf-8", description="File encoding")
    filename_template: str = Field(
        default="{profile} - {stem}.{ext}",
        description="Output filename template; {ext} follows the output format",
    )


class LoggingConfig(BaseModel):
    """Logging configuration applied by the CLI and API."""

    level: str = Field(default="INFO", description="Root log level")
    format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log record format",
    )

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class GlobalConfig(BaseModel):
    """Global configuration shared across all profiles."""

    version: str = Field(default="1.0", description="Config schema version")

    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Output file settings",
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings",
    )


# =============================================================================
# PROFILE CONFIG
# =============================================================================


class ProfileInfo(BaseModel):
    """Basic profile information."""

    name: str = Field(..., min_length=1, description="Profile name")
    enabled: bool = Field(default=True, description="Whether profile is enabled")
    description: str = Field(default="", description="Profile description")


class MergeProfile(BaseModel):
    """
    Complete configuration for a named merge.

    Bundles the selectors with filename patterns used to pick the
    profile for an input file.
    """

    profile: ProfileInfo = Field(..., description="Profile information")
    selectors: Selectors = Field(..., description="Field selectors")

    # Filename matching patterns
    filename_patterns: list[str] = Field(
        default_factory=list,
        description="Patterns to match filenames to this profile",
    )

    @model_validator(mode="after")
    def set_default_filename_patterns(self) -> "MergeProfile":
        """Set default filename patterns based on profile name."""
        if not self.filename_patterns:
            name = self.profile.name
            self.filename_patterns = [
                name.upper(),
                name.upper().replace(" ", "_"),
                name.upper().replace(" ", ""),
            ]
        return self
