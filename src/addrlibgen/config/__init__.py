"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .generator import (
    DEFAULT_MODIFIED_MIN_CONFIDENCE,
    DEFAULT_WORKERS,
    MODIFIED_MIN_CONFIDENCE_ENV,
    ROOT_DIR_ENV,
    WORKERS_ENV,
    GeneratorConfig,
    get_generator_config,
    get_root_dir,
)
from .logging import configure_logging

__all__ = [
    "DEFAULT_MODIFIED_MIN_CONFIDENCE",
    "DEFAULT_WORKERS",
    "MODIFIED_MIN_CONFIDENCE_ENV",
    "ROOT_DIR_ENV",
    "WORKERS_ENV",
    "ConfigurationError",
    "GeneratorConfig",
    "MissingConfigurationError",
    "configure_logging",
    "env_float",
    "env_int",
    "get_generator_config",
    "get_root_dir",
    "optional_env_var",
    "require_env_vars",
]
