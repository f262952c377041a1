"""
Domain enums - providers, commit statuses, permissions and webhook events.
"""

from __future__ import annotations

from enum import Enum


class VcsProvider(Enum):
    """Supported VCS hosting providers."""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET_SERVER = "bitbucket_server"
    BITBUCKET_CLOUD = "bitbucket_cloud"
    AZURE_REPOS = "azure_repos"

    @classmethod
    def from_string(cls, value: str) -> VcsProvider:
        """
        Parse a provider from common spellings.

        Raises:
            ValueError: If the value names no known provider.
        """
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")

        aliases = {
            "github": cls.GITHUB,
            "gh": cls.GITHUB,
            "gitlab": cls.GITLAB,
            "gl": cls.GITLAB,
            "bitbucket": cls.BITBUCKET_SERVER,
            "bitbucket_server": cls.BITBUCKET_SERVER,
            "bitbucket_cloud": cls.BITBUCKET_CLOUD,
            "azure": cls.AZURE_REPOS,
            "azure_repos": cls.AZURE_REPOS,
            "azure_devops": cls.AZURE_REPOS,
            "azurerepos": cls.AZURE_REPOS,
        }

        if normalized not in aliases:
            raise ValueError(f"Unknown VCS provider: {value!r}")
        return aliases[normalized]

    @property
    def display_name(self) -> str:
        return {
            VcsProvider.GITHUB: "GitHub",
            VcsProvider.GITLAB: "GitLab",
            VcsProvider.BITBUCKET_SERVER: "Bitbucket Server",
            VcsProvider.BITBUCKET_CLOUD: "Bitbucket Cloud",
            VcsProvider.AZURE_REPOS: "Azure Repos",
        }[self]


class CommitStatus(Enum):
    """State reported against a commit by CI or scanners."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    ERROR = "error"


class Permission(Enum):
    """Access level granted to a deploy key."""

    READ = "read"
    READ_WRITE = "read_write"


class RepositoryVisibility(Enum):
    """Who can see a repository."""

    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"


class WebhookEvent(Enum):
    """Events a webhook can subscribe to."""

    PR_OPENED = "PrOpened"
    PR_EDITED = "PrEdited"
    PR_REJECTED = "PrRejected"
    PR_MERGED = "PrMerged"
    PUSH = "Push"
    TAG_PUSHED = "TagPushed"
    TAG_REMOVED = "TagRemoved"
