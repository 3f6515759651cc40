#!/usr/bin/env python3
"""Command line argument parsing and configuration building."""

from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional, Sequence

from config import (DEFAULT_HOSTNAME, DEFAULT_POLL_INTERVAL_S, ArchiveConfig,
                    Config, GitHubConfig, MigrationOptions, PollConfig)
from errors import EXIT_AUTH_ERROR, EXIT_CONFIG_ERROR
from logging_utils import Logger
from security import SecurityValidator
from utils import api_url_for_hostname, read_repository_file

# Migration option flags, in the order they appear in the request body
OPTION_FLAGS = (
    ("--lock-repositories", "lock_repositories",
     "Lock the repositories for the duration of the migration"),
    ("--exclude-attachments", "exclude_attachments",
     "Do not export attachments such as uploaded images"),
    ("--exclude-git-data", "exclude_git_data",
     "Do not export git data (metadata only)"),
    ("--exclude-metadata", "exclude_metadata",
     "Do not export issues, pull requests and other metadata"),
    ("--exclude-owner-projects", "exclude_owner_projects",
     "Do not export projects owned by the organization"),
    ("--exclude-releases", "exclude_releases",
     "Do not export releases"),
)


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Export GitHub organization repositories via the migrations API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s acme api web
  %(prog)s acme --repos-file repos.txt --archive-per-repo
  %(prog)s acme api web --archive-name acme-backup --exclude-releases
  %(prog)s acme --repos-file repos.txt --hostname github.acme.com --debug
        """,
    )
    return parser


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    """Add organization and repository arguments to parser."""
    parser.add_argument(
        "org",
        help="GitHub organization that owns the repositories",
    )
    parser.add_argument(
        "repositories",
        nargs="*",
        metavar="REPO",
        help="Repositories to export",
    )
    parser.add_argument(
        "-f",
        "--repos-file",
        dest="repos_file",
        help="File with one repository per line (instead of inline REPO arguments)",
    )
    parser.add_argument(
        "--hostname",
        dest="hostname",
        help=f"GitHub hostname (or set GH_HOST env var, default: {DEFAULT_HOSTNAME})",
    )
    parser.add_argument(
        "--token",
        dest="token",
        help="GitHub API token (or set GH_TOKEN / GITHUB_TOKEN env var)",
    )


def _add_migration_arguments(parser: argparse.ArgumentParser) -> None:
    """Add migration option flags to parser."""
    for flag, dest, help_text in OPTION_FLAGS:
        parser.add_argument(flag, action="store_true", dest=dest, help=help_text)


def _add_archive_arguments(parser: argparse.ArgumentParser) -> None:
    """Add archive naming arguments to parser."""
    parser.add_argument(
        "-n",
        "--archive-name",
        dest="archive_name",
        help="Base name of the archive file(s) (default: migration-archive-<id>)",
    )
    parser.add_argument(
        "--archive-per-repo",
        action="store_true",
        dest="archive_per_repo",
        help="Create one migration and one archive per repository",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        dest="output_dir",
        default=".",
        help="Directory the archives are written to (default: current directory)",
    )


def _add_behavior_arguments(parser: argparse.ArgumentParser) -> None:
    """Add polling and diagnostics arguments to parser."""
    parser.add_argument(
        "--poll-interval",
        dest="poll_interval_s",
        type=float,
        default=DEFAULT_POLL_INTERVAL_S,
        help=f"Seconds between polling rounds (default: {DEFAULT_POLL_INTERVAL_S:g})",
    )
    parser.add_argument(
        "--max-poll-rounds",
        dest="max_poll_rounds",
        type=int,
        help="Give up after this many polling rounds (default: unlimited)",
    )
    parser.add_argument(
        "--poll-timeout",
        dest="poll_timeout_s",
        type=float,
        help="Give up after polling for this many seconds (default: unlimited)",
    )
    parser.add_argument(
        "--status-retries",
        dest="status_retries",
        type=int,
        default=0,
        help="Extra attempts for a failed status query before aborting (default: 0)",
    )
    parser.add_argument(
        "--retry-delay",
        dest="retry_delay_s",
        type=float,
        default=5.0,
        help="Seconds to wait between status query retries (default: 5.0)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        dest="debug",
        help="Trace API requests and per-round polling details",
    )


def _collect_repositories(args) -> List[str]:
    """Return the repository list from inline arguments or --repos-file."""
    if args.repositories and args.repos_file:
        raise ValueError("pass repositories inline or with --repos-file, not both")
    if args.repos_file:
        path = SecurityValidator.validate_file_path(args.repos_file)
        try:
            repositories = read_repository_file(path)
        except OSError as e:
            raise ValueError(f"cannot read repository file '{path}': {e}") from e
    else:
        repositories = list(args.repositories)

    if not repositories:
        raise ValueError("no repositories given (use REPO arguments or --repos-file)")
    return [SecurityValidator.validate_repo_reference(repo) for repo in repositories]


def _build_poll_config(args) -> PollConfig:
    if args.poll_interval_s < 0 or args.poll_interval_s > 3600:
        raise ValueError("poll interval must be between 0 and 3600 seconds")
    if args.max_poll_rounds is not None and args.max_poll_rounds < 1:
        raise ValueError("max poll rounds must be at least 1")
    if args.poll_timeout_s is not None and args.poll_timeout_s <= 0:
        raise ValueError("poll timeout must be positive")
    if args.status_retries < 0 or args.status_retries > 20:
        raise ValueError("status retries must be between 0 and 20")
    if args.retry_delay_s < 0 or args.retry_delay_s > 300:
        raise ValueError("retry delay must be between 0 and 300 seconds")
    return PollConfig(
        interval_s=float(args.poll_interval_s),
        max_rounds=args.max_poll_rounds,
        timeout_s=args.poll_timeout_s,
        status_retries=args.status_retries,
        retry_delay_s=float(args.retry_delay_s),
    )


def _get_token(args) -> str:
    """Get the API token from the command line or the environment."""
    token = args.token or os.getenv("GH_TOKEN") or os.getenv("GITHUB_TOKEN")
    if not token:
        Logger.error(
            "no GitHub credentials found (use --token, GITHUB_TOKEN/GH_TOKEN)"
        )
        sys.exit(EXIT_AUTH_ERROR)
    return token


def parse_arguments(argv: Optional[Sequence[str]] = None) -> Config:
    """Parse command line arguments and return configuration object."""
    parser = _create_argument_parser()
    _add_source_arguments(parser)
    _add_migration_arguments(parser)
    _add_archive_arguments(parser)
    _add_behavior_arguments(parser)

    args = parser.parse_args(argv)

    try:
        org = SecurityValidator.validate_org_name(args.org)
        hostname = SecurityValidator.validate_hostname(
            args.hostname or os.getenv("GH_HOST") or DEFAULT_HOSTNAME
        )
        repositories = _collect_repositories(args)
        archive_name = (
            SecurityValidator.validate_archive_name(args.archive_name)
            if args.archive_name
            else None
        )
        output_dir = SecurityValidator.validate_file_path(args.output_dir)
        poll = _build_poll_config(args)
        Logger.security_event(
            "CONFIG_VALIDATION", "successfully validated all configuration inputs"
        )
    except ValueError as e:
        Logger.security_event(
            "CONFIG_VALIDATION_FAILED", f"configuration validation failed: {e}"
        )
        Logger.error(f"configuration validation error: {e}")
        sys.exit(EXIT_CONFIG_ERROR)

    token = _get_token(args)

    return Config(
        github=GitHubConfig(
            hostname=hostname,
            api_url=api_url_for_hostname(hostname),
            token=token,
            org=org,
        ),
        repositories=repositories,
        options=MigrationOptions(
            **{dest: getattr(args, dest) for _flag, dest, _help in OPTION_FLAGS}
        ),
        archive=ArchiveConfig(
            base_name=archive_name,
            per_repository=args.archive_per_repo,
            output_dir=output_dir,
        ),
        poll=poll,
        debug=args.debug,
    )
