#!/usr/bin/env python3
"""Error types for github-org-export.

Fatal errors abort the whole run and are turned into exit codes by the
orchestrator. DownloadError is per-job and never leaves the downloader.
"""

from __future__ import annotations

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_LAUNCH_ERROR = 31
EXIT_POLL_ERROR = 32
EXIT_POLL_TIMEOUT = 33
EXIT_DOWNLOAD_ERROR = 34
EXIT_AUTH_ERROR = 40
EXIT_INTERRUPTED = 130


class ExportError(Exception):
    """Base class for all github-org-export errors."""

    exit_code = EXIT_EXECUTION_ERROR


class AuthenticationError(ExportError):
    exit_code = EXIT_AUTH_ERROR


class LaunchError(ExportError):
    """A migration could not be created; no partial set of jobs is monitored."""

    exit_code = EXIT_LAUNCH_ERROR


class PollError(ExportError):
    """The state of a migration could not be observed."""

    exit_code = EXIT_POLL_ERROR


class PollTimeoutError(PollError):
    exit_code = EXIT_POLL_TIMEOUT


class DownloadError(ExportError):
    exit_code = EXIT_DOWNLOAD_ERROR
