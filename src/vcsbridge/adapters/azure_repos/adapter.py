"""
Azure Repos Adapter - Implements VcsClientPort for Azure DevOps Git repositories.

This is the main entry point for Azure Repos integration.
Maps the uniform VcsClientPort interface onto the Azure DevOps Git REST API.

Key mappings:
- Repository -> Git repository inside the configured project
- Branch -> refs/heads/<name> (prefix stripped on output, added on input)
- Pull request comment -> comment thread holding one comment
- Commit timestamp -> committer date

Azure Repos has no equivalent for labels, webhooks, commit statuses,
code-scanning uploads or deploy keys through this API; those operations
raise UnsupportedOperationError. Commit and repository lookups are reported
as unsupported as well.
"""

import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from vcsbridge.adapters.archive import ensure_writable_directory, extract_zip, install_staged
from vcsbridge.core.context import CallContext
from vcsbridge.core.domain.entities import (
    BranchInfo,
    CommentInfo,
    CommitInfo,
    LabelInfo,
    PullRequestInfo,
    RepositoryInfo,
    add_branch_prefix,
    remove_branch_prefix,
)
from vcsbridge.core.domain.enums import CommitStatus, Permission, WebhookEvent
from vcsbridge.core.exceptions import ValidationError, unsupported
from vcsbridge.core.log import SafeLogger
from vcsbridge.core.ports.config_provider import VcsInfo
from vcsbridge.core.ports.vcs_client import VcsClientPort

from .client import AzureReposApiClient


_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_azure_datetime(value: str | None) -> datetime | None:
    """
    Parse an Azure DevOps ISO 8601 timestamp into an aware datetime.

    Azure emits up to seven fractional digits; the excess is truncated.
    Returns None for a missing or unparseable value.
    """
    if not value:
        return None
    text = _EXCESS_FRACTION.sub(r"\1", value.strip())
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AzureReposClient(VcsClientPort):
    """
    Azure Repos implementation of the VcsClientPort.

    Translates between the uniform result types and the Azure DevOps Git
    REST API (version 6.0).

    Azure concepts:
    - Organization: addressed by the API endpoint (https://dev.azure.com/<org>)
    - Project: container for repositories, taken from VcsInfo.project
    - Repository: addressed by name or ID inside the project; the ``owner``
      argument of the interface is not used
    - Thread: a group of comments at one location of a pull request
    """

    PROVIDER_NAME = "Azure Repos"

    def __init__(
        self,
        vcs_info: VcsInfo,
        logger: Any | None = None,
        timeout: float = AzureReposApiClient.DEFAULT_TIMEOUT,
    ):
        """
        Initialize the Azure Repos adapter. Performs no network I/O.

        Args:
            vcs_info: Connection descriptor (endpoint, token, project)
            logger: Optional logger collaborator
            timeout: Per-request timeout in seconds
        """
        self.vcs_info = vcs_info
        self.logger = SafeLogger(logger, name="AzureReposClient")

        # API client
        self._client = AzureReposApiClient(
            base_url=vcs_info.api_endpoint,
            token=vcs_info.token,
            project=vcs_info.project,
            timeout=timeout,
            logger=self.logger,
        )

    # -------------------------------------------------------------------------
    # VcsClientPort Implementation - Properties
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.PROVIDER_NAME

    @property
    def project(self) -> str:
        return self.vcs_info.project

    def test_connection(self, ctx: CallContext) -> None:
        self._client.get_resource_areas(ctx)
        self.logger.debug(f"Connected to {self._client.base_url}")

    # -------------------------------------------------------------------------
    # VcsClientPort Implementation - Repositories & Branches
    # -------------------------------------------------------------------------

    def list_repositories(
        self, ctx: CallContext, project: str | None = None
    ) -> dict[str, list[str]]:
        """List repository names of a project (the configured one by default)."""
        project = project or self.project
        repositories: dict[str, list[str]] = {}
        for repo in self._client.get_repositories(ctx, project=project):
            repositories.setdefault(project, []).append(repo.get("name", ""))
        return repositories

    def list_branches(self, ctx: CallContext, owner: str, repository: str) -> list[str]:
        self._require(repository=repository)
        stats = self._client.get_branch_stats(ctx, repository)
        return [stat.get("name", "") for stat in stats]

    def download_repository(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        branch: str,
        local_path: str,
    ) -> None:
        """
        Download a ZIP snapshot of ``branch`` and extract it into ``local_path``.

        The archive is streamed into an anonymous temporary file and
        extracted into a hidden staging directory inside ``local_path``;
        only a complete extraction is moved into place. Both temporaries are
        removed on every exit path, and the working directory is never
        changed, so concurrent downloads to different paths are independent.
        """
        self._require(repository=repository, branch=branch)
        destination = ensure_writable_directory(local_path)

        with tempfile.TemporaryFile(prefix="vcsbridge-", suffix=".zip") as archive:
            size = self._client.download_archive(ctx, repository, branch, archive)
            self.logger.debug(f"Downloaded {size} bytes for {repository}@{branch}")
            archive.seek(0)

            with tempfile.TemporaryDirectory(
                prefix=".vcsbridge-", dir=destination, ignore_cleanup_errors=True
            ) as staging:
                staging_path = Path(staging)
                extract_zip(archive, staging_path, ctx)
                ctx.raise_if_cancelled()
                install_staged(staging_path, destination)

        self.logger.info("extracted repository successfully")

    def get_repository_info(
        self, ctx: CallContext, owner: str, repository: str
    ) -> RepositoryInfo:
        raise unsupported("get repository info", self.PROVIDER_NAME)

    def add_ssh_key_to_repository(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        key_name: str,
        public_key: str,
        permission: Permission,
    ) -> None:
        raise unsupported("add ssh key to repository", self.PROVIDER_NAME)

    # -------------------------------------------------------------------------
    # VcsClientPort Implementation - Pull Requests
    # -------------------------------------------------------------------------

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
        self._require(
            repository=repository, source_branch=source_branch, target_branch=target_branch
        )
        source_ref = add_branch_prefix(source_branch.strip())
        target_ref = add_branch_prefix(target_branch.strip())
        if source_ref == target_ref:
            raise ValidationError(
                f"Source and target branch are the same: {remove_branch_prefix(source_ref)}"
            )

        self.logger.debug(f"creating new pull request: {title}")
        self._client.create_pull_request(
            ctx,
            repository,
            source_ref=source_ref,
            target_ref=target_ref,
            title=title,
            description=description,
        )

    def add_pull_request_comment(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        content: str,
        pull_request_id: int,
    ) -> None:
        """Add a comment by opening a new active thread that holds it."""
        self._require(repository=repository, content=content)
        self._client.create_thread(ctx, repository, pull_request_id, content)

    def list_pull_request_comments(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        pull_request_id: int,
    ) -> list[CommentInfo]:
        """
        List pull request comments, one CommentInfo per thread.

        Azure groups comments into threads, so each returned CommentInfo
        stands for a whole thread: ``id`` is the thread ID, ``created`` the
        thread's published date, and ``content`` concatenates every comment
        of the thread in order, one line each:

            Author: <display name>, Id: <comment id>, Content:<text>

        Threads are returned oldest first. This normalization is specific to
        Azure Repos; other backends return one CommentInfo per comment.
        """
        self._require(repository=repository)
        threads = self._client.get_threads(ctx, repository, pull_request_id)

        comments = [self._thread_to_comment(thread) for thread in threads]
        comments.sort(key=lambda c: (c.created.timestamp() if c.created else 0.0, c.id))
        return comments

    def list_open_pull_requests(
        self, ctx: CallContext, owner: str, repository: str
    ) -> list[PullRequestInfo]:
        self._require(repository=repository)
        self.logger.debug(f"fetching open pull requests in {repository}")
        pull_requests = self._client.get_pull_requests(ctx, repository, status="active")
        return [self._parse_pull_request(pr, repository) for pr in pull_requests]

    def list_pull_request_labels(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        pull_request_id: int,
    ) -> list[str]:
        raise unsupported("list pull request labels", self.PROVIDER_NAME)

    def unlabel_pull_request(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        name: str,
        pull_request_id: int,
    ) -> None:
        raise unsupported("unlabel pull request", self.PROVIDER_NAME)

    # -------------------------------------------------------------------------
    # VcsClientPort Implementation - Commits
    # -------------------------------------------------------------------------

    def get_latest_commit(
        self, ctx: CallContext, owner: str, repository: str, branch: str
    ) -> CommitInfo:
        self._require(repository=repository, branch=branch)
        commits = self._client.get_commits(ctx, repository, remove_branch_prefix(branch), top=1)
        if not commits:
            return CommitInfo()
        # The latest commit is the first in the list
        return self._parse_commit(commits[0])

    def get_commit_by_sha(
        self, ctx: CallContext, owner: str, repository: str, sha: str
    ) -> CommitInfo:
        raise unsupported("get commit by sha", self.PROVIDER_NAME)

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
        raise unsupported("set commit status", self.PROVIDER_NAME)

    # -------------------------------------------------------------------------
    # VcsClientPort Implementation - Labels, Webhooks, Code Scanning
    # -------------------------------------------------------------------------

    def create_label(
        self, ctx: CallContext, owner: str, repository: str, label_info: LabelInfo
    ) -> None:
        raise unsupported("create label", self.PROVIDER_NAME)

    def get_label(
        self, ctx: CallContext, owner: str, repository: str, name: str
    ) -> LabelInfo | None:
        raise unsupported("get label", self.PROVIDER_NAME)

    def create_webhook(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        branch: str,
        payload_url: str,
        *webhook_events: WebhookEvent,
    ) -> tuple[str, str]:
        raise unsupported("create webhook", self.PROVIDER_NAME)

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
        raise unsupported("update webhook", self.PROVIDER_NAME)

    def delete_webhook(
        self, ctx: CallContext, owner: str, repository: str, webhook_id: str
    ) -> None:
        raise unsupported("delete webhook", self.PROVIDER_NAME)

    def upload_code_scanning(
        self,
        ctx: CallContext,
        owner: str,
        repository: str,
        branch: str,
        scan_results: str,
    ) -> str:
        raise unsupported("upload code scanning", self.PROVIDER_NAME)

    # -------------------------------------------------------------------------
    # Resource Cleanup
    # -------------------------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "AzureReposClient":
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _require(**arguments: str) -> None:
        """Raise ValidationError for the first blank argument."""
        for name, value in arguments.items():
            if not value or not str(value).strip():
                raise ValidationError(f"{name.replace('_', ' ')} must not be empty")

    @staticmethod
    def _thread_to_comment(thread: dict[str, Any]) -> CommentInfo:
        lines = []
        for comment in thread.get("comments") or []:
            author = (comment.get("author") or {}).get("displayName", "")
            lines.append(
                f"Author: {author}, Id: {comment.get('id', 0)}, "
                f"Content:{comment.get('content', '')}\n"
            )
        return CommentInfo(
            id=int(thread.get("id", 0)),
            created=parse_azure_datetime(thread.get("publishedDate")),
            content="".join(lines),
        )

    @staticmethod
    def _parse_pull_request(data: dict[str, Any], repository: str) -> PullRequestInfo:
        return PullRequestInfo(
            id=int(data.get("pullRequestId", 0)),
            source=BranchInfo(
                name=remove_branch_prefix(data.get("sourceRefName") or ""),
                repository=repository,
            ),
            target=BranchInfo(
                name=remove_branch_prefix(data.get("targetRefName") or ""),
                repository=repository,
            ),
            title=data.get("title") or "",
            description=data.get("description") or "",
            status=data.get("status") or "",
        )

    @staticmethod
    def _parse_commit(data: dict[str, Any]) -> CommitInfo:
        author = data.get("author") or {}
        committer = data.get("committer") or {}
        committed_at = parse_azure_datetime(committer.get("date"))
        return CommitInfo(
            hash=data.get("commitId") or "",
            author_name=author.get("name") or "",
            committer_name=committer.get("name") or "",
            url=data.get("url") or "",
            timestamp=int(committed_at.timestamp()) if committed_at else 0,
            message=data.get("comment") or "",
            parent_hashes=tuple(data.get("parents") or ()),
        )
