"""Application configuration helpers."""

from __future__ import annotations

from .database import DatabaseConfig, build_database_url, get_database_config
from .env import env_flag, env_int, env_str, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .run import RunConfig, get_run_config, resolve_thread_count

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RunConfig",
    "build_database_url",
    "configure_logging",
    "env_flag",
    "env_int",
    "env_str",
    "get_database_config",
    "get_run_config",
    "require_env_var",
    "require_env_vars",
    "resolve_thread_count",
]
