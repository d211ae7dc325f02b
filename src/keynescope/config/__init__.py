"""Configuration module for keynescope."""

from keynescope.config.schema import EngineConfig, LoggingConfig, NarratorConfig
from keynescope.config.validator import ConfigValidator

__all__ = ["EngineConfig", "LoggingConfig", "NarratorConfig", "ConfigValidator"]
