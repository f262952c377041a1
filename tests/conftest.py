"""
Shared pytest fixtures for the vcsbridge test suite.

Fixture Categories:
- Configuration: VcsInfo
- HTTP: mocked requests.Session and response factory
- Clients: AzureReposApiClient / AzureReposClient on the mocked session
- Data: ZIP archives and Azure API payloads
"""

from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest

from vcsbridge.core.context import CallContext
from vcsbridge.core.ports.config_provider import VcsInfo


SESSION_PATH = "vcsbridge.adapters.azure_repos.client.requests.Session"


# =============================================================================
# Helpers
# =============================================================================


def build_response(
    status_code: int = 200,
    json_data: object | None = None,
    text: str | None = None,
    headers: dict[str, str] | None = None,
    chunks: list[bytes] | None = None,
) -> MagicMock:
    """Build a MagicMock shaped like a requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.reason = "Reason"
    if json_data is not None:
        response.json.return_value = json_data
        response.text = text if text is not None else "json"
    else:
        response.json.side_effect = ValueError("No JSON")
        response.text = text if text is not None else ""
    response.iter_content.return_value = iter(chunks or [])
    return response


def build_zip(files: dict[str, bytes | str]) -> bytes:
    """Build an in-memory ZIP archive from name -> content."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def vcs_info() -> VcsInfo:
    """A complete Azure Repos connection descriptor."""
    return VcsInfo(
        api_endpoint="https://dev.azure.com/test-org/",
        token="test-pat",
        project="Test Project",
    )


@pytest.fixture
def ctx() -> CallContext:
    """A context without deadline."""
    return CallContext.background()


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def mock_session() -> Iterator[MagicMock]:
    """Patch requests.Session where the API client creates it."""
    with patch(SESSION_PATH) as session_cls:
        session = MagicMock()
        session_cls.return_value = session
        yield session


@pytest.fixture
def api_client(mock_session):
    """AzureReposApiClient bound to the mocked session."""
    from vcsbridge.adapters.azure_repos.client import AzureReposApiClient

    client = AzureReposApiClient(
        base_url="https://dev.azure.com/test-org",
        token="test-pat",
        project="Test Project",
    )
    yield client
    client.close()


@pytest.fixture
def azure_client(mock_session, vcs_info):
    """AzureReposClient bound to the mocked session."""
    from vcsbridge.adapters.azure_repos import AzureReposClient

    client = AzureReposClient(vcs_info)
    yield client
    client.close()


# =============================================================================
# Sample Azure payloads
# =============================================================================


@pytest.fixture
def sample_pull_request() -> dict:
    return {
        "pullRequestId": 42,
        "status": "active",
        "title": "Add feature",
        "description": "Implements the feature",
        "sourceRefName": "refs/heads/feature/x",
        "targetRefName": "refs/heads/main",
    }


@pytest.fixture
def sample_commit() -> dict:
    return {
        "commitId": "a1b2c3d4",
        "author": {"name": "Alice", "date": "2024-01-15T09:00:00Z"},
        "committer": {"name": "Bob", "date": "2024-01-15T10:30:00.1234567Z"},
        "comment": "Fix the build",
        "url": "https://dev.azure.com/test-org/_apis/git/repositories/r/commits/a1b2c3d4",
        "parents": ["p1", "p2"],
    }


@pytest.fixture
def make_response():
    """Factory for mocked requests.Response objects."""
    return build_response


@pytest.fixture
def make_zip():
    """Factory for in-memory ZIP archives."""
    return build_zip


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after setup_logging()."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
