"""
VCS Client Port - Abstract interface for version-control hosting providers.

Implementations:
- AzureReposClient: Azure Repos (Azure DevOps Git)

Every method is abstract: a backend must implement the whole surface. When
its provider cannot perform an operation, the backend raises
UnsupportedOperationError naming the operation and the provider, so callers
can detect missing capabilities by error kind instead of by backend type.

Every method takes a CallContext as its first argument. Errors are always
one of the kinds in vcsbridge.core.exceptions; provider-native errors never
cross this boundary.
"""

from abc import ABC, abstractmethod
from typing import Any

from vcsbridge.core.context import CallContext
from vcsbridge.core.domain.entities import (
    CommentInfo,
    CommitInfo,
    LabelInfo,
    PullRequestInfo,
    RepositoryInfo,
)
from vcsbridge.core.domain.enums import CommitStatus, Permission, WebhookEvent
from vcsbridge.core.exceptions import (
    AuthenticationError,
    CanceledError,
    ConnectionError,
    NotFoundError,
    RateLimitError,
    TransientError,
    UnsupportedOperationError,
    ValidationError,
    VcsError,
)


__all__ = [
    "AuthenticationError",
    "CanceledError",
    "ConnectionError",
    "NotFoundError",
    "RateLimitError",
    "TransientError",
    "UnsupportedOperationError",
    "ValidationError",
    "VcsClientPort",
    "VcsError",
]


class VcsClientPort(ABC):
    """
    Abstract interface for VCS providers.

    All backends must implement this interface. Callers depend on this
    surface only, never on a specific backend's types.
    """

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name (e.g., 'Azure Repos')."""
        ...

    @abstractmethod
    def test_connection(self, ctx: CallContext) -> None:
        """
        Verify the endpoint is reachable and the credential is accepted.

        Raises:
            ConnectionError: If the endpoint cannot be reached
            AuthenticationError: If the credential is rejected
        """
        ...

    # -------------------------------------------------------------------------
    # Repositories & Branches
    # -------------------------------------------------------------------------

    @abstractmethod
    def list_repositories(
        self, ctx: CallContext, project: str | None = None
    ) -> dict[str, list[str]]:
        """
        List repository names grouped by project/owner.

        Args:
            ctx: Call context
            project: Project to list; the configured project when omitted

        Returns:
            Mapping of project/owner to repository names. Empty (not an
            error) when the project has no repositories.
        """
        ...

    @abstractmethod
    def list_branches(self, ctx: CallContext, owner: str, repository: str) -> list[str]:
        """
        List branch names of a repository.

        Returns:
            Branch names; empty when the repository has none

        Raises:
            NotFoundError: If the repository does not exist
        """
        ...

    @abstractmethod
    def download_repository(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        branch: str,
        local_path: str,
    ) -> None:
        """
        Materialize a snapshot of ``branch`` into ``local_path``.

        ``local_path`` must exist and be writable. On success it holds the
        repository contents and no archive artifacts. On failure nothing
        from this call remains in ``local_path`` and the process working
        directory is unchanged.

        Raises:
            ValidationError: If ``local_path`` is unusable
            NotFoundError: If the repository or branch does not exist
        """
        ...

    @abstractmethod
    def get_repository_info(
        self, ctx: CallContext, owner: str, repository: str
    ) -> RepositoryInfo:
        """Get clone URLs and visibility of a repository."""
        ...

    @abstractmethod
    def add_ssh_key_to_repository(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        key_name: str,
        public_key: str,
        permission: Permission,
    ) -> None:
        """Register a deploy key on a repository."""
        ...

    # -------------------------------------------------------------------------
    # Pull Requests
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_pull_request(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        source_branch: str,
        target_branch: str,
        title: str,
        description: str,
    ) -> None:
        """
        Open a pull request from ``source_branch`` into ``target_branch``.

        Not idempotent: calling twice may open two pull requests.

        Raises:
            ValidationError: If a branch is blank or both are the same
            NotFoundError: If the repository does not exist
        """
        ...

    @abstractmethod
    def add_pull_request_comment(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        content: str,
        pull_request_id: int,
    ) -> None:
        """
        Append a comment to a pull request.

        Raises:
            NotFoundError: If the pull request does not exist
        """
        ...

    @abstractmethod
    def list_pull_request_comments(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        pull_request_id: int,
    ) -> list[CommentInfo]:
        """
        List comments on a pull request, oldest first.

        Returns:
            Comments in creation order; empty when there are none
        """
        ...

    @abstractmethod
    def list_open_pull_requests(
        self, ctx: CallContext, owner: str, repository: str
    ) -> list[PullRequestInfo]:
        """List pull requests in the provider's open/active state."""
        ...

    @abstractmethod
    def list_pull_request_labels(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        pull_request_id: int,
    ) -> list[str]:
        """List label names attached to a pull request."""
        ...

    @abstractmethod
    def unlabel_pull_request(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        name: str,
        pull_request_id: int,
    ) -> None:
        """Remove a label from a pull request."""
        ...

    # -------------------------------------------------------------------------
    # Commits
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_latest_commit(
        self, ctx: CallContext, owner: str, repository: str, branch: str
    ) -> CommitInfo:
        """
        Get the head commit of a branch.

        Returns:
            The head commit, or ``CommitInfo()`` if the branch has no commits

        Raises:
            NotFoundError: If the branch does not exist
        """
        ...

    @abstractmethod
    def get_commit_by_sha(
        self, ctx: CallContext, owner: str, repository: str, sha: str
    ) -> CommitInfo:
        """Get a commit by its hash."""
        ...

    @abstractmethod
    def set_commit_status(
        self,
        ctx: CallContext,
        commit_status: CommitStatus,
        owner: str,
        repository: str,
        ref: str,
        title: str,
        description: str,
        details_url: str,
    ) -> None:
        """Attach a status to a commit."""
        ...

    # -------------------------------------------------------------------------
    # Labels
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_label(
        self, ctx: CallContext, owner: str, repository: str, label_info: LabelInfo
    ) -> None:
        """Create a repository label."""
        ...

    @abstractmethod
    def get_label(
        self, ctx: CallContext, owner: str, repository: str, name: str
    ) -> LabelInfo | None:
        """Get a repository label, or None if it does not exist."""
        ...

    # -------------------------------------------------------------------------
    # Webhooks & Code Scanning
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_webhook(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        branch: str,
        payload_url: str,
        *webhook_events: WebhookEvent,
    ) -> tuple[str, str]:
        """
        Create a webhook.

        Returns:
            Tuple of (webhook id, secret token)
        """
        ...

    @abstractmethod
    def update_webhook(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        branch: str,
        payload_url: str,
        token: str,
        webhook_id: str,
        *webhook_events: WebhookEvent,
    ) -> None:
        """Update an existing webhook."""
        ...

    @abstractmethod
    def delete_webhook(
        self, ctx: CallContext, owner: str, repository: str, webhook_id: str
    ) -> None:
        """Delete a webhook."""
        ...

    @abstractmethod
    def upload_code_scanning(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        branch: str,
        scan_results: str,
    ) -> str:
        """
        Upload code-scanning results (SARIF).

        Returns:
            Provider identifier of the upload
        """
        ...

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:  # noqa: B027
        """Release pooled connections; backends holding none keep this no-op."""

    def __enter__(self) -> "VcsClientPort":
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        self.close()
