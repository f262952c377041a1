"""
Tests for the VCS client factory.
"""

import pytest

from vcsbridge.adapters.azure_repos import AzureReposClient
from vcsbridge.core.domain.enums import VcsProvider
from vcsbridge.core.exceptions import ConfigError, ConfigValidationError
from vcsbridge.core.ports.config_provider import AppConfig, VcsInfo
from vcsbridge.core.ports.vcs_client import VcsClientPort
from vcsbridge.core.services import create_vcs_client, create_vcs_client_from_config


class TestCreateVcsClient:
    """Tests for create_vcs_client."""

    def test_azure_repos(self, mock_session, vcs_info):
        """Should build the Azure Repos backend."""
        client = create_vcs_client(VcsProvider.AZURE_REPOS, vcs_info)

        assert isinstance(client, AzureReposClient)
        assert isinstance(client, VcsClientPort)
        assert client.name == "Azure Repos"
        client.close()

    def test_provider_alias(self, mock_session, vcs_info):
        """Should accept provider spellings."""
        client = create_vcs_client("azure", vcs_info)
        assert isinstance(client, AzureReposClient)
        client.close()

    def test_timeout_passed_through(self, mock_session, vcs_info):
        client = create_vcs_client(VcsProvider.AZURE_REPOS, vcs_info, timeout=5.0)
        assert client._client.timeout == 5.0
        client.close()

    @pytest.mark.parametrize(
        "provider",
        [
            VcsProvider.GITHUB,
            VcsProvider.GITLAB,
            VcsProvider.BITBUCKET_SERVER,
            VcsProvider.BITBUCKET_CLOUD,
        ],
    )
    def test_unavailable_provider(self, vcs_info, provider):
        """Should refuse providers without a backend."""
        with pytest.raises(ConfigError, match=provider.display_name):
            create_vcs_client(provider, vcs_info)

    def test_unknown_provider_string(self, vcs_info):
        with pytest.raises(ConfigError, match="Unknown VCS provider"):
            create_vcs_client("svn", vcs_info)

    def test_invalid_vcs_info(self):
        """Should reject a descriptor without token."""
        with pytest.raises(ConfigValidationError):
            create_vcs_client(VcsProvider.AZURE_REPOS, VcsInfo(api_endpoint="https://x", token=""))

    def test_azure_requires_project(self):
        with pytest.raises(ConfigValidationError, match="project"):
            create_vcs_client(
                VcsProvider.AZURE_REPOS, VcsInfo(api_endpoint="https://x", token="t")
            )

    def test_from_config(self, mock_session, vcs_info):
        config = AppConfig(vcs=vcs_info, timeout=12.0)
        client = create_vcs_client_from_config(config)
        assert client._client.timeout == 12.0
        client.close()
