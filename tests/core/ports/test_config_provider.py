"""
Tests for VcsInfo and AppConfig.
"""

import dataclasses

import pytest

from vcsbridge.core.domain.enums import VcsProvider
from vcsbridge.core.ports.config_provider import AppConfig, VcsInfo


class TestVcsInfo:
    """Tests for the connection descriptor."""

    def test_is_valid(self):
        assert VcsInfo(api_endpoint="https://dev.azure.com/o", token="t").is_valid()
        assert not VcsInfo(api_endpoint="", token="t").is_valid()
        assert not VcsInfo(api_endpoint="https://dev.azure.com/o", token="").is_valid()

    def test_repr_masks_token(self):
        """Should never show the token."""
        info = VcsInfo(api_endpoint="https://dev.azure.com/o", token="super-secret")
        assert "super-secret" not in repr(info)
        assert "***" in repr(info)

    def test_frozen(self):
        info = VcsInfo(api_endpoint="https://dev.azure.com/o", token="t")
        with pytest.raises(dataclasses.FrozenInstanceError):
            info.token = "other"  # type: ignore[misc]


class TestAppConfigValidate:
    """Tests for AppConfig.validate."""

    def test_valid(self, vcs_info):
        assert AppConfig(vcs=vcs_info).validate() == []

    def test_missing_fields(self):
        errors = AppConfig(vcs=VcsInfo(api_endpoint="", token="")).validate()
        assert any("VCS_API_ENDPOINT" in e for e in errors)
        assert any("VCS_TOKEN" in e for e in errors)
        assert any("VCS_PROJECT" in e for e in errors)

    def test_project_only_required_for_azure(self):
        config = AppConfig(
            vcs=VcsInfo(api_endpoint="https://api.github.com", token="t"),
            provider=VcsProvider.GITHUB,
        )
        assert config.validate() == []

    def test_invalid_log_format(self, vcs_info):
        errors = AppConfig(vcs=vcs_info, log_format="xml").validate()
        assert errors == ["Invalid log format 'xml' (expected 'text' or 'json')"]

    def test_non_positive_timeout(self, vcs_info):
        errors = AppConfig(vcs=vcs_info, timeout=0).validate()
        assert errors == ["Timeout must be a positive number of seconds"]
