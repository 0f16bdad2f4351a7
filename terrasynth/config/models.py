"""
Configuration models for synthesis.

Provides type-safe configuration using pydantic with validation,
defaults, and schema enforcement.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ProviderRequirement(BaseModel):
    """One entry of the terraform block's ``required_providers``."""

    source: str = Field(description="Registry source address (e.g. hashicorp/aws)")
    version: str = Field(default="", description="Version constraint")

    model_config = ConfigDict(extra="forbid")


def _default_required_providers() -> Dict[str, ProviderRequirement]:
    return {"aws": ProviderRequirement(source="hashicorp/aws", version="~> 5.0")}


class TerraformSettings(BaseModel):
    """Settings for the emitted ``terraform`` block."""

    required_version: str = Field(
        default=">= 1.5.0",
        description="Terraform version constraint",
    )
    required_providers: Dict[str, ProviderRequirement] = Field(
        default_factory=_default_required_providers,
        description="Providers the document depends on",
    )

    model_config = ConfigDict(extra="forbid")


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Root log level")
    json_output: bool = Field(
        default=False,
        description="Render structured events as JSON instead of console text",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lowercase level names."""
        if isinstance(v, str):
            return v.upper()
        return v

    model_config = ConfigDict(extra="forbid")


class SynthConfig(BaseModel):
    """Root configuration for a synthesis run."""

    output_dir: Path = Field(
        default=Path("."),
        description="Directory the document is written to",
    )
    filename: str = Field(
        default="main.tf.json",
        description="Name of the emitted document",
    )
    indent: Annotated[int, Field(ge=0, le=8)] = Field(
        default=2,
        description="JSON indentation (0 renders compact output)",
    )
    terraform: TerraformSettings = Field(
        default_factory=TerraformSettings,
        description="Terraform block settings",
    )
    providers: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Provider blocks keyed by provider name",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging settings",
    )

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """Filename must be a bare JSON file name."""
        if "/" in v or "\\" in v:
            raise ValueError("filename must not contain path separators")
        if not v.endswith(".json"):
            raise ValueError("filename must end with .json")
        return v

    model_config = ConfigDict(extra="forbid")
