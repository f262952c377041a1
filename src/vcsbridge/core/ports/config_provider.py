"""
Configuration Provider Port - Abstract interface for configuration.

Implementations:
- EnvironmentConfigProvider: Load from env vars, .env and an optional file
- FileConfigProvider: Load from YAML/TOML config files
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from vcsbridge.core.domain.enums import VcsProvider


@dataclass(frozen=True)
class VcsInfo:
    """
    Connection descriptor for a VCS backend.

    Immutable: a backend keeps no other shared state, so one instance can
    serve concurrent callers.
    """

    api_endpoint: str
    token: str
    project: str = ""
    username: str = ""
    repository: str = ""

    def is_valid(self) -> bool:
        """Check if the descriptor has what every backend needs."""
        return bool(self.api_endpoint and self.token)

    def __repr__(self) -> str:
        return (
            f"VcsInfo(api_endpoint={self.api_endpoint!r}, token='***', "
            f"project={self.project!r}, username={self.username!r}, "
            f"repository={self.repository!r})"
        )


@dataclass
class AppConfig:
    """Complete application configuration."""

    vcs: VcsInfo
    provider: VcsProvider = VcsProvider.AZURE_REPOS

    # Logging
    log_level: int = logging.INFO
    log_format: str = "text"

    # Per-call timeout in seconds (None = no deadline)
    timeout: float | None = None

    extra: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.vcs.api_endpoint:
            errors.append("Missing API endpoint (VCS_API_ENDPOINT)")
        if not self.vcs.token:
            errors.append("Missing access token (VCS_TOKEN)")
        if self.provider is VcsProvider.AZURE_REPOS and not self.vcs.project:
            errors.append("Missing project (VCS_PROJECT), required for Azure Repos")
        if self.log_format not in ("text", "json"):
            errors.append(f"Invalid log format {self.log_format!r} (expected 'text' or 'json')")
        if self.timeout is not None and self.timeout <= 0:
            errors.append("Timeout must be a positive number of seconds")

        return errors


class ConfigProviderPort(ABC):
    """
    Abstract interface for configuration providers.

    Configuration can come from various sources:
    - Environment variables
    - .env files
    - YAML/TOML config files
    - Command line arguments
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """
        Load configuration from source.

        Returns:
            Complete application configuration
        """
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a specific configuration value.

        Args:
            key: Configuration key (dot notation supported)
            default: Default value if not found
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """
        Validate loaded configuration.

        Returns:
            List of validation errors
        """
        ...
