"""
Domain Entities - provider-agnostic result types.

Every backend populates these the same way so callers never depend on a
provider's native shapes. They are request-scoped snapshots: frozen, with
tuples for ordered sequences. A field the provider does not supply keeps its
zero value ("" / 0 / () / None); nothing is fabricated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .enums import RepositoryVisibility


BRANCH_REF_PREFIX = "refs/heads/"


def add_branch_prefix(branch: str) -> str:
    """Return the full ref name for a branch (``main`` -> ``refs/heads/main``)."""
    if branch.startswith(BRANCH_REF_PREFIX):
        return branch
    return BRANCH_REF_PREFIX + branch


def remove_branch_prefix(branch: str) -> str:
    """Return the short name for a branch ref (``refs/heads/main`` -> ``main``)."""
    if branch.startswith(BRANCH_REF_PREFIX):
        return branch[len(BRANCH_REF_PREFIX) :]
    return branch


@dataclass(frozen=True)
class CloneInfo:
    """Clone URLs of a repository."""

    http: str = ""
    ssh: str = ""


@dataclass(frozen=True)
class RepositoryInfo:
    """Descriptive information about a repository."""

    clone_info: CloneInfo = field(default_factory=CloneInfo)
    visibility: RepositoryVisibility | None = None


@dataclass(frozen=True)
class BranchInfo:
    """A branch, by short name, within a repository."""

    name: str = ""
    repository: str = ""


@dataclass(frozen=True)
class CommitInfo:
    """
    A single commit.

    ``timestamp`` is the committer date in unix seconds, never the author
    date, so values line up across providers.
    """

    hash: str = ""
    author_name: str = ""
    committer_name: str = ""
    url: str = ""
    timestamp: int = 0
    message: str = ""
    parent_hashes: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        """True for the zero value returned for a branch with no commits."""
        return self == CommitInfo()

    def __bool__(self) -> bool:
        return not self.is_empty


@dataclass(frozen=True)
class PullRequestInfo:
    """
    A pull request.

    ``id`` is the provider's own identifier: stable and unique within the
    provider, not globally.
    """

    id: int
    source: BranchInfo
    target: BranchInfo
    title: str = ""
    description: str = ""
    status: str = ""


@dataclass(frozen=True)
class CommentInfo:
    """A pull request comment (or, for thread-based providers, a whole thread)."""

    id: int
    created: datetime | None = None
    content: str = ""


@dataclass(frozen=True)
class LabelInfo:
    """A label with optional metadata."""

    name: str
    description: str = ""
    color: str = ""
