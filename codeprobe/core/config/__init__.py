"""Configuration loading."""

from .config_loader import (
    CONFIG_DIR_ENV,
    AnalysisConfig,
    CodeProbeConfig,
    get_config_path,
    load_config,
)

__all__ = [
    "CONFIG_DIR_ENV",
    "AnalysisConfig",
    "CodeProbeConfig",
    "get_config_path",
    "load_config",
]
