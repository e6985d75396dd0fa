"""Load codeprobe settings from config/codeprobe.yaml.

The file has two sections::

    extraction:
      verbose: false
    analysis:
      max_source_chars: 1000000
      include_metrics: true
      complexity_threshold: 10

A missing file yields defaults (with a warning); a malformed one raises
``ConfigError``. Unknown keys are ignored with a warning.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import yaml

from ..structure.errors import ConfigError
from ..structure.models import ExtractionOptions

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "CODEPROBE_CONFIG_DIR"
CONFIG_FILE_NAME = "codeprobe.yaml"

T = TypeVar("T")


@dataclass(frozen=True)
class AnalysisConfig:
    """Limits and switches for the analysis service."""

    max_source_chars: int = 1_000_000
    include_metrics: bool = True
    complexity_threshold: int = 10


@dataclass(frozen=True)
class CodeProbeConfig:
    extraction: ExtractionOptions = field(default_factory=ExtractionOptions)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)


def get_config_path() -> Path:
    """Path of the config file: ``$CODEPROBE_CONFIG_DIR`` or the project's config/ directory."""
    config_dir = os.environ.get(CONFIG_DIR_ENV)
    if config_dir:
        return Path(config_dir) / CONFIG_FILE_NAME
    return Path(__file__).parent.parent.parent.parent / "config" / CONFIG_FILE_NAME


def _build_section(cls: Type[T], section: str, data: Any) -> T:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{section}' must be a mapping, got {type(data).__name__}")

    known = {f.name: f for f in fields(cls)}
    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {section}.{key}")
            continue
        default = getattr(cls(), key)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ConfigError(f"{section}.{key} must be true or false, got {value!r}")
        elif isinstance(default, int):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{section}.{key} must be a positive integer, got {value!r}")
        values[key] = value
    return cls(**values)


def load_config(path: Optional[Union[str, Path]] = None) -> CodeProbeConfig:
    """Load configuration.

    Args:
        path: Explicit config file; defaults to ``get_config_path()``

    Returns:
        CodeProbeConfig (defaults when the file does not exist)

    Raises:
        ConfigError: If the file cannot be read or is not valid YAML
    """
    config_path = Path(path) if path is not None else get_config_path()

    if not config_path.exists():
        logger.warning(f"{config_path.name} not found at {config_path}, using defaults")
        return CodeProbeConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    if data is None:
        return CodeProbeConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping at the top level")

    config = CodeProbeConfig(
        extraction=_build_section(ExtractionOptions, "extraction", data.get("extraction")),
        analysis=_build_section(AnalysisConfig, "analysis", data.get("analysis")),
    )
    logger.debug(f"Loaded config from {config_path}: {config}")
    return config
