#!/usr/bin/env python3
"""Utility functions for github-org-export."""

import threading
import time
from typing import Iterable, List, Optional

from config import DEFAULT_HOSTNAME
from logging_utils import Logger

DEFAULT_ARCHIVE_BASE = "migration-archive"
ARCHIVE_SUFFIX = ".tar.gz"


class RateLimiter:
    """Rate limiter to prevent abuse and respect API limits."""

    def __init__(self, max_requests_per_minute: int = 60):
        self.max_requests = max_requests_per_minute
        self.requests: List[float] = []
        self.lock = threading.Lock()

    def wait_if_needed(self, operation_type: str = "API") -> None:
        """Wait if necessary to respect rate limits."""
        current_time = time.time()

        with self.lock:
            self._clean_old_requests(current_time)
            if len(self.requests) >= self.max_requests:
                wait_time = 60 - (current_time - self.requests[0])
                if wait_time > 0:
                    Logger.security_event(
                        "RATE_LIMIT_HIT",
                        f"rate limit reached for {operation_type}, "
                        f"waiting {wait_time:.2f}s",
                    )
                    time.sleep(wait_time)
                    current_time = time.time()
                    self._clean_old_requests(current_time)
            self.requests.append(current_time)

    def _clean_old_requests(self, current_time: float) -> None:
        """Remove requests older than 1 minute."""
        cutoff_time = current_time - 60
        self.requests = [
            req_time for req_time in self.requests if req_time > cutoff_time
        ]


def batch_repositories(
    repositories: Iterable[str], per_repository: bool
) -> List[List[str]]:
    """Split repositories into the batches submitted as one migration each.

    Either every repository lands in a single batch, or each repository gets
    its own singleton batch. Input order is preserved and duplicates are kept.
    """
    repos = list(repositories)
    if per_repository:
        return [[repo] for repo in repos]
    return [repos]


def archive_filename(
    job_id: str, base_name: Optional[str], per_repository: bool
) -> str:
    """Return the output file name for the archive of a migration.

    Without a base name every archive is ``migration-archive-<id>.tar.gz``.
    With one, a single combined archive is ``<base>.tar.gz`` and per-repository
    archives are ``<base>-<id>.tar.gz``.
    """
    if not base_name:
        return f"{DEFAULT_ARCHIVE_BASE}-{job_id}{ARCHIVE_SUFFIX}"
    if per_repository:
        return f"{base_name}-{job_id}{ARCHIVE_SUFFIX}"
    return f"{base_name}{ARCHIVE_SUFFIX}"


def api_url_for_hostname(hostname: str) -> str:
    """Map a GitHub hostname to its REST API root."""
    host = (hostname or DEFAULT_HOSTNAME).strip().lower().rstrip("/")
    if host in (DEFAULT_HOSTNAME, "api.github.com"):
        return "https://api.github.com"
    return f"https://{host}/api/v3"


def read_repository_file(path: str) -> List[str]:
    """Read a line-delimited repository list, skipping blanks and # comments."""
    repositories: List[str] = []
    with open(path, "r", encoding="utf-8") as handle:
        for line in handle:
            entry = line.split("#", 1)[0].strip()
            if entry:
                repositories.append(entry)
    return repositories
