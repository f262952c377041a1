"""
Tests for AzureReposClient (the VcsClientPort implementation).

HTTP is mocked at requests.Session; archive extraction runs for real
against tmp_path.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest
import requests

from vcsbridge.adapters.azure_repos.adapter import AzureReposClient, parse_azure_datetime
from vcsbridge.core.context import CallContext
from vcsbridge.core.domain import BranchInfo, CommitInfo, LabelInfo, PullRequestInfo
from vcsbridge.core.domain.enums import CommitStatus, Permission, WebhookEvent
from vcsbridge.core.exceptions import (
    AuthenticationError,
    CanceledError,
    NotFoundError,
    TransientError,
    UnsupportedOperationError,
    ValidationError,
)
from vcsbridge.core.ports.vcs_client import VcsClientPort


class TestParseAzureDatetime:
    """Tests for Azure timestamp parsing."""

    def test_seven_fraction_digits(self):
        parsed = parse_azure_datetime("2024-01-15T10:30:00.1234567Z")
        assert parsed == datetime(2024, 1, 15, 10, 30, 0, 123456, tzinfo=timezone.utc)

    def test_offset(self):
        parsed = parse_azure_datetime("2024-01-15T12:30:00+02:00")
        assert parsed.astimezone(timezone.utc).hour == 10

    def test_naive_is_utc(self):
        assert parse_azure_datetime("2024-01-15T10:30:00").tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_invalid(self, value):
        assert parse_azure_datetime(value) is None


class TestAzureReposClientBasics:
    """Tests for construction and connection checks."""

    def test_implements_port(self, azure_client):
        assert isinstance(azure_client, VcsClientPort)
        assert azure_client.name == "Azure Repos"
        assert azure_client.project == "Test Project"

    def test_no_network_on_init(self, azure_client, mock_session):
        mock_session.request.assert_not_called()

    def test_test_connection(self, azure_client, mock_session, make_response, ctx):
        mock_session.request.return_value = make_response(200, {"count": 1, "value": [{}]})

        azure_client.test_connection(ctx)

        args, _ = mock_session.request.call_args
        assert args[1] == "https://dev.azure.com/test-org/_apis/ResourceAreas"

    def test_test_connection_bad_pat(self, azure_client, mock_session, make_response, ctx):
        mock_session.request.return_value = make_response(203, text="<html>Sign In</html>")

        with pytest.raises(AuthenticationError):
            azure_client.test_connection(ctx)

    def test_injected_logger_failure_does_not_abort(
        self, mock_session, vcs_info, make_response, ctx
    ):
        class BrokenLogger:
            def debug(self, msg):
                raise RuntimeError("broken sink")

            info = warning = debug

        client = AzureReposClient(vcs_info, logger=BrokenLogger())
        mock_session.request.return_value = make_response(200, {"value": []})

        client.test_connection(ctx)
        client.close()


class TestRepositoriesAndBranches:
    """Tests for repository and branch listing."""

    def test_list_repositories(self, azure_client, mock_session, make_response, ctx):
        mock_session.request.return_value = make_response(
            200, {"count": 2, "value": [{"name": "web"}, {"name": "api"}]}
        )

        result = azure_client.list_repositories(ctx)

        assert result == {"Test Project": ["web", "api"]}
        args, _ = mock_session.request.call_args
        assert args[1].endswith("/Test%20Project/_apis/git/repositories")

    def test_list_repositories_other_project(self, azure_client, mock_session, make_response, ctx):
        mock_session.request.return_value = make_response(200, {"value": [{"name": "tools"}]})

        assert azure_client.list_repositories(ctx, project="Infra") == {"Infra": ["tools"]}

    def test_list_repositories_empty(self, azure_client, mock_session, make_response, ctx):
        """Should return an empty mapping, not an error."""
        mock_session.request.return_value = make_response(200, {"count": 0, "value": []})

        assert azure_client.list_repositories(ctx) == {}

    def test_list_branches(self, azure_client, mock_session, make_response, ctx):
        mock_session.request.return_value = make_response(
            200, {"value": [{"name": "main", "aheadCount": 0}, {"name": "feature/x"}]}
        )

        assert azure_client.list_branches(ctx, "", "web") == ["main", "feature/x"]
        args, _ = mock_session.request.call_args
        assert args[1].endswith("/repositories/web/stats/branches")

    def test_list_branches_empty(self, azure_client, mock_session, make_response, ctx):
        mock_session.request.return_value = make_response(200, {"value": []})

        assert azure_client.list_branches(ctx, "", "web") == []

    def test_list_branches_missing_repository(
        self, azure_client, mock_session, make_response, ctx
    ):
        mock_session.request.return_value = make_response(404, {"message": "TF401019"})

        with pytest.raises(NotFoundError):
            azure_client.list_branches(ctx, "", "missing")

    def test_list_branches_requires_repository(self, azure_client, ctx):
        with pytest.raises(ValidationError, match="repository must not be empty"):
            azure_client.list_branches(ctx, "", " ")


class TestPullRequests:
    """Tests for pull request operations."""

    def test_create_pull_request(self, azure_client, mock_session, make_response, ctx):
        mock_session.request.return_value = make_response(201, {"pullRequestId": 1})

        azure_client.create_pull_request(
            ctx, "", "web", "feature/x", "main", "Add x", "Adds x"
        )

        args, kwargs = mock_session.request.call_args
        assert args[0] == "POST"
        assert args[1].endswith("/repositories/web/pullrequests")
        assert kwargs["json"] == {
            "sourceRefName": "refs/heads/feature/x",
            "targetRefName": "refs/heads/main",
            "title": "Add x",
            "description": "Adds x",
        }

    def test_create_pull_request_full_refs(self, azure_client, mock_session, make_response, ctx):
        """Should not double the refs/heads/ prefix."""
        mock_session.request.return_value = make_response(201, {"pullRequestId": 1})

        azure_client.create_pull_request(
            ctx, "", "web", "refs/heads/feature/x", "main", "t", ""
        )

        _, kwargs = mock_session.request.call_args
        assert kwargs["json"]["sourceRefName"] == "refs/heads/feature/x"

    def test_create_pull_request_same_branch(self, azure_client, mock_session, ctx):
        with pytest.raises(ValidationError, match="same"):
            azure_client.create_pull_request(
                ctx, "", "web", "main", "refs/heads/main", "t", ""
            )

        mock_session.request.assert_not_called()

    @pytest.mark.parametrize(("source", "target"), [("", "main"), ("feature", "  ")])
    def test_create_pull_request_blank_branch(self, azure_client, ctx, source, target):
        with pytest.raises(ValidationError):
            azure_client.create_pull_request(ctx, "", "web", source, target, "t", "")

    def test_create_pull_request_conflict(self, azure_client, mock_session, make_response, ctx):
        mock_session.request.return_value = make_response(
            409, {"message": "An active pull request already exists"}
        )

        with pytest.raises(ValidationError, match="already exists"):
            azure_client.create_pull_request(ctx, "", "web", "feature", "main", "t", "")

    def test_add_pull_request_comment(self, azure_client, mock_session, make_response, ctx):
        mock_session.request.return_value = make_response(200, {"id": 9})

        azure_client.add_pull_request_comment(ctx, "", "web", "Nice work", 42)

        args, kwargs = mock_session.request.call_args
        assert args[1].endswith("/repositories/web/pullRequests/42/threads")
        assert kwargs["json"]["comments"][0]["content"] == "Nice work"
        assert kwargs["json"]["status"] == "active"

    def test_add_pull_request_comment_blank(self, azure_client, mock_session, ctx):
        with pytest.raises(ValidationError, match="content"):
            azure_client.add_pull_request_comment(ctx, "", "web", "", 42)

        mock_session.request.assert_not_called()

    def test_add_comment_unknown_pull_request(
        self, azure_client, mock_session, make_response, ctx
    ):
        mock_session.request.return_value = make_response(404, {"message": "TF401180"})

        with pytest.raises(NotFoundError):
            azure_client.add_pull_request_comment(ctx, "", "web", "hi", 999)

    def test_list_pull_request_comments_flattens_threads(
        self, azure_client, mock_session, make_response, ctx
    ):
        """Should return one CommentInfo per thread, oldest thread first."""
        threads = {
            "value": [
                {
                    "id": 2,
                    "publishedDate": "2024-01-16T08:00:00.000Z",
                    "comments": [
                        {"id": 1, "author": {"displayName": "Carol"}, "content": "Later"},
                    ],
                },
                {
                    "id": 1,
                    "publishedDate": "2024-01-15T08:00:00.000Z",
                    "comments": [
                        {"id": 1, "author": {"displayName": "Alice"}, "content": "First"},
                        {"id": 2, "author": {"displayName": "Bob"}, "content": "Reply"},
                    ],
                },
            ]
        }
        mock_session.request.return_value = make_response(200, threads)

        comments = azure_client.list_pull_request_comments(ctx, "", "web", 42)

        assert [c.id for c in comments] == [1, 2]
        assert comments[0].created == datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)
        assert comments[0].content == (
            "Author: Alice, Id: 1, Content:First\n" "Author: Bob, Id: 2, Content:Reply\n"
        )
        assert comments[1].content == "Author: Carol, Id: 1, Content:Later\n"

    def test_list_pull_request_comments_empty(
        self, azure_client, mock_session, make_response, ctx
    ):
        mock_session.request.return_value = make_response(200, {"value": []})

        assert azure_client.list_pull_request_comments(ctx, "", "web", 42) == []

    def test_list_open_pull_requests(
        self, azure_client, mock_session, make_response, ctx, sample_pull_request
    ):
        mock_session.request.return_value = make_response(200, {"value": [sample_pull_request]})

        result = azure_client.list_open_pull_requests(ctx, "", "web")

        assert result == [
            PullRequestInfo(
                id=42,
                source=BranchInfo(name="feature/x", repository="web"),
                target=BranchInfo(name="main", repository="web"),
                title="Add feature",
                description="Implements the feature",
                status="active",
            )
        ]

    def test_list_open_pull_requests_paginates(
        self, azure_client, mock_session, make_response, ctx, sample_pull_request
    ):
        first_page = [dict(sample_pull_request, pullRequestId=i) for i in range(100)]
        second_page = [dict(sample_pull_request, pullRequestId=100)]
        mock_session.request.side_effect = [
            make_response(200, {"value": first_page}),
            make_response(200, {"value": second_page}),
        ]

        result = azure_client.list_open_pull_requests(ctx, "", "web")

        assert [pr.id for pr in result] == list(range(101))
        assert mock_session.request.call_count == 2


class TestCommits:
    """Tests for commit lookups."""

    def test_get_latest_commit(
        self, azure_client, mock_session, make_response, ctx, sample_commit
    ):
        mock_session.request.return_value = make_response(200, {"value": [sample_commit]})

        commit = azure_client.get_latest_commit(ctx, "", "web", "refs/heads/main")

        assert commit == CommitInfo(
            hash="a1b2c3d4",
            author_name="Alice",
            committer_name="Bob",
            url=sample_commit["url"],
            timestamp=int(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc).timestamp()),
            message="Fix the build",
            parent_hashes=("p1", "p2"),
        )
        _, kwargs = mock_session.request.call_args
        assert kwargs["params"]["searchCriteria.itemVersion.version"] == "main"

    def test_get_latest_commit_empty_branch(
        self, azure_client, mock_session, make_response, ctx
    ):
        """Should return the zero CommitInfo, not an error."""
        mock_session.request.return_value = make_response(200, {"count": 0, "value": []})

        commit = azure_client.get_latest_commit(ctx, "", "web", "empty")

        assert commit == CommitInfo()
        assert commit.is_empty

    def test_get_latest_commit_missing_branch(
        self, azure_client, mock_session, make_response, ctx
    ):
        mock_session.request.return_value = make_response(
            404, {"message": "TF401175: The version descriptor could not be resolved"}
        )

        with pytest.raises(NotFoundError):
            azure_client.get_latest_commit(ctx, "", "web", "missing")


UNSUPPORTED_CALLS = [
    ("get repository info", "get_repository_info", ("", "web")),
    (
        "add ssh key to repository",
        "add_ssh_key_to_repository",
        ("", "web", "deploy", "ssh-ed25519 AAAA", Permission.READ),
    ),
    ("list pull request labels", "list_pull_request_labels", ("", "web", 1)),
    ("unlabel pull request", "unlabel_pull_request", ("", "web", "bug", 1)),
    ("get commit by sha", "get_commit_by_sha", ("", "web", "abc")),
    (
        "set commit status",
        "set_commit_status",
        (CommitStatus.SUCCESS, "", "web", "abc", "ci", "passed", "https://ci"),
    ),
    ("create label", "create_label", ("", "web", LabelInfo(name="bug"))),
    ("get label", "get_label", ("", "web", "bug")),
    (
        "create webhook",
        "create_webhook",
        ("", "web", "main", "https://hook", WebhookEvent.PUSH, WebhookEvent.PR_OPENED),
    ),
    (
        "update webhook",
        "update_webhook",
        ("", "web", "main", "https://hook", "secret", "7", WebhookEvent.PUSH),
    ),
    ("delete webhook", "delete_webhook", ("", "web", "7")),
    ("upload code scanning", "upload_code_scanning", ("", "web", "main", "{}")),
]


class TestUnsupportedOperations:
    """Tests for capabilities Azure Repos does not offer."""

    @pytest.mark.parametrize(("operation", "method", "args"), UNSUPPORTED_CALLS)
    def test_raises_unsupported(self, azure_client, mock_session, ctx, operation, method, args):
        with pytest.raises(UnsupportedOperationError) as exc_info:
            getattr(azure_client, method)(ctx, *args)

        assert str(exc_info.value) == f"{operation} is currently not supported for Azure Repos"
        mock_session.request.assert_not_called()

    def test_all_twelve_covered(self):
        assert len({method for _, method, _ in UNSUPPORTED_CALLS}) == 12


class TestDownloadRepository:
    """Tests for download_repository."""

    def _serve_zip(self, mock_session, make_response, data: bytes):
        chunks = [data[i : i + 7] for i in range(0, len(data), 7)]
        mock_session.request.return_value = make_response(200, chunks=chunks)

    def test_download_extracts_into_destination(
        self, azure_client, mock_session, make_response, make_zip, ctx, tmp_path, monkeypatch
    ):
        """Should extract the snapshot and leave the working directory alone."""
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        destination = tmp_path / "checkout"
        destination.mkdir()
        monkeypatch.chdir(elsewhere)
        self._serve_zip(
            mock_session,
            make_response,
            make_zip({"README.md": "hello", "src/main.py": "print('hi')", "docs/": ""}),
        )

        azure_client.download_repository(ctx, "", "web", "main", str(destination))

        assert os.getcwd() == str(elsewhere)
        assert sorted(p.name for p in destination.iterdir()) == ["README.md", "docs", "src"]
        assert (destination / "README.md").read_text() == "hello"
        assert (destination / "src" / "main.py").read_text() == "print('hi')"
        assert list(elsewhere.iterdir()) == []

    def test_download_missing_destination(self, azure_client, mock_session, ctx, tmp_path):
        with pytest.raises(ValidationError, match="does not exist"):
            azure_client.download_repository(ctx, "", "web", "main", str(tmp_path / "nope"))

        mock_session.request.assert_not_called()

    def test_download_destination_is_file(self, azure_client, ctx, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")

        with pytest.raises(ValidationError, match="not a directory"):
            azure_client.download_repository(ctx, "", "web", "main", str(target))

    def test_download_not_found_leaves_destination_empty(
        self, azure_client, mock_session, make_response, ctx, tmp_path
    ):
        mock_session.request.return_value = make_response(404, {"message": "no branch"})

        with pytest.raises(NotFoundError):
            azure_client.download_repository(ctx, "", "web", "gone", str(tmp_path))

        assert list(tmp_path.iterdir()) == []

    def test_download_corrupt_archive(
        self, azure_client, mock_session, make_response, ctx, tmp_path
    ):
        self._serve_zip(mock_session, make_response, b"this is not a zip file at all")

        with pytest.raises(TransientError, match="corrupt"):
            azure_client.download_repository(ctx, "", "web", "main", str(tmp_path))

        assert list(tmp_path.iterdir()) == []

    def test_download_rejects_path_traversal(
        self, azure_client, mock_session, make_response, make_zip, ctx, tmp_path
    ):
        destination = tmp_path / "checkout"
        destination.mkdir()
        self._serve_zip(
            mock_session, make_response, make_zip({"ok.txt": "fine", "../evil.txt": "bad"})
        )

        with pytest.raises(ValidationError, match="Illegal file path"):
            azure_client.download_repository(ctx, "", "web", "main", str(destination))

        assert list(destination.iterdir()) == []
        assert not (tmp_path / "evil.txt").exists()

    def test_download_conflict_keeps_existing_files(
        self, azure_client, mock_session, make_response, make_zip, ctx, tmp_path
    ):
        (tmp_path / "README.md").write_text("mine")
        self._serve_zip(
            mock_session, make_response, make_zip({"README.md": "theirs", "new.txt": "n"})
        )

        with pytest.raises(ValidationError, match="already contains"):
            azure_client.download_repository(ctx, "", "web", "main", str(tmp_path))

        assert (tmp_path / "README.md").read_text() == "mine"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["README.md"]

    def test_download_cancelled_mid_stream(
        self, azure_client, mock_session, make_response, make_zip, tmp_path
    ):
        """Should report cancellation, not a corrupt archive, for a cut-off stream."""
        ctx = CallContext.background()
        archive = make_zip({"README.md": "hello" * 100})

        def chunks(chunk_size):
            yield archive[:50]
            ctx.cancel()

        response = make_response(200)
        response.iter_content.side_effect = chunks
        mock_session.request.return_value = response

        with pytest.raises(CanceledError):
            azure_client.download_repository(ctx, "", "web", "main", str(tmp_path))

        response.close.assert_called()
        assert list(tmp_path.iterdir()) == []

    def test_download_interrupted_keeps_cwd_and_destination(
        self, azure_client, mock_session, make_response, ctx, tmp_path, monkeypatch
    ):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        destination = tmp_path / "checkout"
        destination.mkdir()
        (destination / "keep.txt").write_text("mine")
        monkeypatch.chdir(elsewhere)

        def chunks(chunk_size):
            yield b"PK\x03\x04"
            raise requests.exceptions.ChunkedEncodingError("connection reset")

        response = make_response(200)
        response.iter_content.side_effect = chunks
        mock_session.request.return_value = response

        with pytest.raises(TransientError, match="interrupted"):
            azure_client.download_repository(ctx, "", "web", "main", str(destination))

        assert os.getcwd() == str(elsewhere)
        assert sorted(p.name for p in destination.iterdir()) == ["keep.txt"]
        assert (destination / "keep.txt").read_text() == "mine"
        assert list(elsewhere.iterdir()) == []

    def test_download_cancelled(self, azure_client, mock_session, tmp_path):
        ctx = CallContext.background()
        ctx.cancel()

        with pytest.raises(CanceledError):
            azure_client.download_repository(ctx, "", "web", "main", str(tmp_path))

        assert list(tmp_path.iterdir()) == []

    def test_concurrent_downloads_are_independent(
        self, azure_client, mock_session, make_response, make_zip, tmp_path
    ):
        archive = make_zip({"file.txt": "content"})
        mock_session.request.side_effect = lambda *a, **kw: make_response(200, chunks=[archive])
        targets = [tmp_path / f"dest{i}" for i in range(4)]
        for target in targets:
            target.mkdir()

        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [
                pool.submit(
                    azure_client.download_repository,
                    CallContext.background(),
                    "",
                    "web",
                    "main",
                    str(target),
                )
                for target in targets
            ]
            for future in futures:
                future.result()

        for target in targets:
            assert (target / "file.txt").read_text() == "content"
