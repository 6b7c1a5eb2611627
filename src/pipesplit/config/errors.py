# src/pipesplit/config/errors.py

class ConfigError(Exception):
    """Base class for project file errors."""
    pass


class IncludeCycleError(ConfigError):
    """Raised when project file includes form a cycle."""
    pass
