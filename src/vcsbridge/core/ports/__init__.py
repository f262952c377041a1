"""
Ports - Abstract interfaces for external dependencies.

Ports define the contracts that adapters must implement.
This enables dependency inversion and easy testing.
"""

from .config_provider import AppConfig, ConfigProviderPort, VcsInfo
from .vcs_client import VcsClientPort


__all__ = [
    "AppConfig",
    "ConfigProviderPort",
    "VcsClientPort",
    "VcsInfo",
]
