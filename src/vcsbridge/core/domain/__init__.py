"""
Domain layer - result types and enums shared by every backend.
"""

from .entities import (
    BRANCH_REF_PREFIX,
    BranchInfo,
    CloneInfo,
    CommentInfo,
    CommitInfo,
    LabelInfo,
    PullRequestInfo,
    RepositoryInfo,
    add_branch_prefix,
    remove_branch_prefix,
)
from .enums import CommitStatus, Permission, RepositoryVisibility, VcsProvider, WebhookEvent


__all__ = [
    "BRANCH_REF_PREFIX",
    "BranchInfo",
    "CloneInfo",
    "CommentInfo",
    "CommitInfo",
    "CommitStatus",
    "LabelInfo",
    "Permission",
    "PullRequestInfo",
    "RepositoryInfo",
    "RepositoryVisibility",
    "VcsProvider",
    "WebhookEvent",
    "add_branch_prefix",
    "remove_branch_prefix",
]
