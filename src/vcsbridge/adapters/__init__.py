"""
Adapters - Concrete implementations of the core ports.

- azure_repos: VcsClientPort for Azure Repos
- config: ConfigProviderPort implementations
- archive: download extraction helpers
"""

from .azure_repos import AzureReposApiClient, AzureReposClient
from .config import EnvironmentConfigProvider, FileConfigProvider


__all__ = [
    "AzureReposApiClient",
    "AzureReposClient",
    "EnvironmentConfigProvider",
    "FileConfigProvider",
]
