"""Schedule configuration loading and validation."""

from tubedrop.configs.loader import (
    ConfigError,
    LoggingConfig,
    ResampleConfig,
    SegmentsConfig,
    TubeConfig,
    load_config,
)

__all__ = [
    "ConfigError",
    "LoggingConfig",
    "ResampleConfig",
    "SegmentsConfig",
    "TubeConfig",
    "load_config",
]
