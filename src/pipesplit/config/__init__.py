"""Project file loading."""

from .errors import ConfigError, IncludeCycleError
from .loader import LoadedConfig, load_config

__all__ = [
    'ConfigError',
    'IncludeCycleError',
    'LoadedConfig',
    'load_config',
]
