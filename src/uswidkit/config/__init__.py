"""uswidkit configuration loading."""

from uswidkit.config.settings import (
    ConfigError,
    GeneratorSettings,
    OutputSettings,
    StreamSettings,
    UswidConfig,
    default_config_file,
    load_config,
)

__all__ = [
    "ConfigError",
    "GeneratorSettings",
    "OutputSettings",
    "StreamSettings",
    "UswidConfig",
    "default_config_file",
    "load_config",
]
