"""
Service factories.

Maps a configured provider to the backend implementing VcsClientPort.

Usage:
    client = create_vcs_client(VcsProvider.AZURE_REPOS, vcs_info)
    with client:
        repos = client.list_repositories(CallContext.background())
"""

import logging
from typing import Any

from .domain.enums import VcsProvider
from .exceptions import ConfigError, ConfigValidationError
from .ports.config_provider import AppConfig, VcsInfo
from .ports.vcs_client import VcsClientPort


def create_vcs_client(
    provider: VcsProvider | str,
    vcs_info: VcsInfo,
    logger: logging.Logger | Any | None = None,
    timeout: float | None = None,
) -> VcsClientPort:
    """
    Create the VCS backend for a provider.

    Args:
        provider: Provider enum or alias ('azure', 'github', ...)
        vcs_info: Connection descriptor
        logger: Optional logger for the backend; logging never aborts a call
        timeout: Default HTTP timeout in seconds

    Returns:
        A ready backend

    Raises:
        ConfigValidationError: If the descriptor is incomplete
        ConfigError: If no backend exists for the provider
    """
    if isinstance(provider, str):
        try:
            provider = VcsProvider.from_string(provider)
        except ValueError as e:
            raise ConfigError(str(e), cause=e) from e

    if not vcs_info.is_valid():
        raise ConfigValidationError(["VCS info requires an API endpoint and a token"])

    if provider is VcsProvider.AZURE_REPOS:
        from vcsbridge.adapters.azure_repos import AzureReposApiClient, AzureReposClient

        if not vcs_info.project:
            raise ConfigValidationError(["Azure Repos requires a project"])

        logging.getLogger("Services").debug(
            f"Creating {provider.display_name} client for {vcs_info.api_endpoint}"
        )
        return AzureReposClient(
            vcs_info,
            logger=logger,
            timeout=timeout if timeout is not None else AzureReposApiClient.DEFAULT_TIMEOUT,
        )

    raise ConfigError(f"No VCS backend available for {provider.display_name}")


def create_vcs_client_from_config(
    config: AppConfig, logger: logging.Logger | None = None
) -> VcsClientPort:
    """Create the backend described by a loaded AppConfig."""
    return create_vcs_client(config.provider, config.vcs, logger=logger, timeout=config.timeout)
