"""
Azure Repos Adapter - Integration with Azure DevOps Git repositories.

This module provides the AzureReposClient (the VcsClientPort implementation)
and the low-level AzureReposApiClient it drives.
"""

from vcsbridge.adapters.azure_repos.adapter import AzureReposClient
from vcsbridge.adapters.azure_repos.client import AzureReposApiClient


__all__ = ["AzureReposApiClient", "AzureReposClient"]
