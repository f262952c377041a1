"""
CLI Application - Command line interface for vcsbridge.

Runs single VCS operations against the configured backend:

    vcsbridge check
    vcsbridge repos
    vcsbridge branches my-repo
    vcsbridge download my-repo main ./checkout
"""

import argparse
import logging
import sys
from pathlib import Path

from vcsbridge.adapters.config import EnvironmentConfigProvider
from vcsbridge.core.context import CallContext
from vcsbridge.core.exceptions import ConfigError, VcsError
from vcsbridge.core.ports.config_provider import AppConfig
from vcsbridge.core.services import create_vcs_client_from_config

from .exit_codes import ExitCode
from .logging import get_logger, setup_logging
from .output import Console


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser with the global options and one
        subcommand per operation.
    """
    parser = argparse.ArgumentParser(
        prog="vcsbridge",
        description="Run version control operations against a hosted VCS provider",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Verify endpoint and credentials
  vcsbridge check

  # List repositories of the configured project
  vcsbridge repos --json

  # Open a pull request
  vcsbridge create-pr my-repo feature/x main --title "Add x"

  # Download a branch snapshot into an empty directory
  vcsbridge download my-repo main ./checkout

Environment Variables:
  VCS_PROVIDER          Provider (default: azure_repos)
  VCS_API_ENDPOINT      API endpoint, e.g. https://dev.azure.com/my-org
  VCS_TOKEN             Personal access token
  VCS_PROJECT           Project name
        """,
    )

    # Global options
    parser.add_argument("--config", "-c", type=str, help="Path to a YAML/TOML config file")
    parser.add_argument("--provider", type=str, help="VCS provider (azure_repos, github, ...)")
    parser.add_argument("--endpoint", type=str, help="API endpoint URL")
    parser.add_argument("--token", type=str, help="Access token (prefer VCS_TOKEN)")
    parser.add_argument("--project", type=str, help="Project name")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose debug logging")
    parser.add_argument(
        "--log-format",
        type=str,
        choices=["text", "json"],
        default=None,
        help="Log output format (default: text)",
    )
    parser.add_argument("--json", action="store_true", help="Print command results as JSON")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--timeout", type=float, help="Deadline for the whole command in seconds")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    subparsers.add_parser("check", help="Test the connection and credentials")
    subparsers.add_parser("repos", help="List repositories of the project")

    branches = subparsers.add_parser("branches", help="List branches of a repository")
    branches.add_argument("repository")

    prs = subparsers.add_parser("prs", help="List open pull requests")
    prs.add_argument("repository")

    comments = subparsers.add_parser("comments", help="List comments of a pull request")
    comments.add_argument("repository")
    comments.add_argument("pull_request_id", type=int)

    comment = subparsers.add_parser("comment", help="Add a comment to a pull request")
    comment.add_argument("repository")
    comment.add_argument("pull_request_id", type=int)
    comment.add_argument("text")

    create_pr = subparsers.add_parser("create-pr", help="Create a pull request")
    create_pr.add_argument("repository")
    create_pr.add_argument("source_branch")
    create_pr.add_argument("target_branch")
    create_pr.add_argument("--title", required=True)
    create_pr.add_argument("--description", default="")

    latest = subparsers.add_parser("latest-commit", help="Show the newest commit of a branch")
    latest.add_argument("repository")
    latest.add_argument("branch")

    download = subparsers.add_parser("download", help="Download a branch snapshot")
    download.add_argument("repository")
    download.add_argument("branch")
    download.add_argument("destination", type=Path)

    return parser


# =============================================================================
# Commands
# =============================================================================


def run_check(client, ctx, args, console) -> int:
    client.test_connection(ctx)
    console.success(f"Connected to {client.name}")
    console.emit_json({"ok": True, "provider": client.name})
    return ExitCode.SUCCESS


def run_repos(client, ctx, args, console) -> int:
    repositories = client.list_repositories(ctx)
    console.emit_json(repositories)
    if not repositories:
        console.info("No repositories found")
        return ExitCode.SUCCESS
    rows = [[project, name] for project, names in repositories.items() for name in names]
    console.table(["Project", "Repository"], rows)
    return ExitCode.SUCCESS


def run_branches(client, ctx, args, console) -> int:
    branches = client.list_branches(ctx, _owner(args), args.repository)
    console.emit_json(branches)
    for branch in branches:
        console.item(branch)
    return ExitCode.SUCCESS


def run_prs(client, ctx, args, console) -> int:
    pull_requests = client.list_open_pull_requests(ctx, _owner(args), args.repository)
    console.emit_json(pull_requests)
    if not pull_requests:
        console.info("No open pull requests")
        return ExitCode.SUCCESS
    rows = [[str(pr.id), pr.source.name, pr.target.name, pr.title] for pr in pull_requests]
    console.table(["ID", "Source", "Target", "Title"], rows)
    return ExitCode.SUCCESS


def run_comments(client, ctx, args, console) -> int:
    comments = client.list_pull_request_comments(
        ctx, _owner(args), args.repository, args.pull_request_id
    )
    console.emit_json(comments)
    for item in comments:
        created = item.created.isoformat() if item.created else "-"
        console.section(f"Thread {item.id} ({created})")
        for line in item.content.splitlines():
            console.detail(line)
    return ExitCode.SUCCESS


def run_comment(client, ctx, args, console) -> int:
    client.add_pull_request_comment(
        ctx, _owner(args), args.repository, args.text, args.pull_request_id
    )
    console.success(f"Comment added to pull request {args.pull_request_id}")
    console.emit_json({"ok": True, "pull_request_id": args.pull_request_id})
    return ExitCode.SUCCESS


def run_create_pr(client, ctx, args, console) -> int:
    client.create_pull_request(
        ctx,
        _owner(args),
        args.repository,
        args.source_branch,
        args.target_branch,
        args.title,
        args.description,
    )
    console.success(f"Pull request created: {args.source_branch} -> {args.target_branch}")
    console.emit_json({"ok": True, "source": args.source_branch, "target": args.target_branch})
    return ExitCode.SUCCESS


def run_latest_commit(client, ctx, args, console) -> int:
    commit = client.get_latest_commit(ctx, _owner(args), args.repository, args.branch)
    console.emit_json(None if commit.is_empty else commit)
    if commit.is_empty:
        console.warning(f"Branch {args.branch} has no commits")
        return ExitCode.SUCCESS
    console.print(f"commit {commit.hash}")
    console.print(f"Author: {commit.author_name}")
    console.print(f"Committer: {commit.committer_name}")
    if commit.url:
        console.print(f"URL: {commit.url}")
    console.print()
    for line in commit.message.splitlines():
        console.print(f"    {line}")
    return ExitCode.SUCCESS


def run_download(client, ctx, args, console) -> int:
    destination = args.destination.resolve()
    client.download_repository(ctx, _owner(args), args.repository, args.branch, str(destination))
    console.success(f"Downloaded {args.repository}@{args.branch} into {destination}")
    console.emit_json({"ok": True, "path": str(destination)})
    return ExitCode.SUCCESS


COMMANDS = {
    "check": run_check,
    "repos": run_repos,
    "branches": run_branches,
    "prs": run_prs,
    "comments": run_comments,
    "comment": run_comment,
    "create-pr": run_create_pr,
    "latest-commit": run_latest_commit,
    "download": run_download,
}


def _owner(args: argparse.Namespace) -> str:
    return getattr(args, "owner", "") or ""


# =============================================================================
# Entry points
# =============================================================================


def load_config(args: argparse.Namespace) -> tuple[AppConfig | None, list[str]]:
    """
    Load configuration with CLI arguments taking precedence.

    Returns:
        (config, errors); config is None when errors is not empty
    """
    config_file = Path(args.config) if getattr(args, "config", None) else None
    provider = EnvironmentConfigProvider(config_file=config_file, cli_overrides=vars(args))
    errors = provider.validate()
    if errors:
        return None, errors
    try:
        return provider.load(), []
    except ConfigError as e:
        return None, [e.message]


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the vcsbridge CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    console = Console(
        color=not args.no_color,
        verbose=args.verbose,
        json_mode=args.json,
    )

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_format=args.log_format or "text",
    )

    config, errors = load_config(args)
    if config is None:
        console.config_errors(errors)
        return ExitCode.CONFIG_ERROR

    setup_logging(level=config.log_level, log_format=config.log_format)
    log = get_logger("vcsbridge.cli", command=args.command)
    args.owner = config.vcs.username

    ctx = CallContext.with_timeout(config.timeout) if config.timeout else CallContext.background()

    try:
        client = create_vcs_client_from_config(config)
    except ConfigError as e:
        console.error(e.message)
        return ExitCode.CONFIG_ERROR

    try:
        with client:
            log.debug(f"Running {args.command} against {config.vcs.api_endpoint}")
            return COMMANDS[args.command](client, ctx, args, console)
    except KeyboardInterrupt:
        ctx.cancel("interrupted")
        console.error("Interrupted")
        return ExitCode.CANCELLED
    except VcsError as e:
        log.debug(f"{args.command} failed: {e}")
        console.error(str(e))
        return ExitCode.from_exception(e)


def run() -> None:
    """
    Entry point for the console script.

    Calls main() and exits with its return code.
    """
    sys.exit(main())


if __name__ == "__main__":
    run()
