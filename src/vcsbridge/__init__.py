"""
vcsbridge - A provider-neutral client for hosted version control systems.

One interface (VcsClientPort) covers repositories, branches, pull requests,
comments, commits and source archive download; backends translate it to a
provider's REST API. Azure Repos is the first backend.

Example:
    from vcsbridge import CallContext, VcsInfo, VcsProvider, create_vcs_client

    info = VcsInfo(api_endpoint="https://dev.azure.com/my-org", token="...", project="web")
    with create_vcs_client(VcsProvider.AZURE_REPOS, info) as client:
        print(client.list_branches(CallContext.with_timeout(30), "", "frontend"))
"""

__version__ = "0.1.0"

from .core.context import CallContext
from .core.domain import (
    BranchInfo,
    CloneInfo,
    CommentInfo,
    CommitInfo,
    CommitStatus,
    LabelInfo,
    Permission,
    PullRequestInfo,
    RepositoryInfo,
    VcsProvider,
    WebhookEvent,
)
from .core.exceptions import (
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
from .core.ports import VcsClientPort, VcsInfo
from .core.services import create_vcs_client


__all__ = [
    "AuthenticationError",
    "BranchInfo",
    "CallContext",
    "CanceledError",
    "CloneInfo",
    "CommentInfo",
    "CommitInfo",
    "CommitStatus",
    "ConnectionError",
    "LabelInfo",
    "NotFoundError",
    "Permission",
    "PullRequestInfo",
    "RateLimitError",
    "RepositoryInfo",
    "TransientError",
    "UnsupportedOperationError",
    "ValidationError",
    "VcsClientPort",
    "VcsError",
    "VcsInfo",
    "VcsProvider",
    "WebhookEvent",
    "__version__",
    "create_vcs_client",
]
