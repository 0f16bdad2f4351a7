"""Configuration models and loader."""

from .loader import ConfigLoader, load_config
from .models import LoggingSettings, LogLevel, ProviderRequirement, SynthConfig, TerraformSettings

__all__ = [
    "ConfigLoader",
    "load_config",
    "LoggingSettings",
    "LogLevel",
    "ProviderRequirement",
    "SynthConfig",
    "TerraformSettings",
]
