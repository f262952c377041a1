"""
Config Adapters - Configuration providers.
"""

from .environment import EnvironmentConfigProvider
from .file_config import FileConfigProvider


__all__ = ["EnvironmentConfigProvider", "FileConfigProvider"]
