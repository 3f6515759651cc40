"""Shared fixtures for github-org-export tests."""

from __future__ import annotations

from typing import Dict, List

import pytest

from config import GitHubConfig
from errors import DownloadError, LaunchError, PollError


class FakeMigrationClient:
    """Scripted stand-in for MigrationClient.

    ``states`` maps a migration id to the sequence of states returned by
    successive status queries; the last state repeats once exhausted.
    """

    def __init__(self, states: Dict[str, List[str]] = None) -> None:
        self.states = {key: list(value) for key, value in (states or {}).items()}
        self.created: List[List[str]] = []
        self.status_calls: List[str] = []
        self.downloads: List[tuple] = []
        self.fail_create_on = None
        self.poll_failures: Dict[str, int] = {}
        self.download_failures = set()
        self._next_ids = list(self.states)
        self.connected = False

    def connect(self):
        self.connected = True

    def create_migration(self, repositories, options):
        if self.fail_create_on is not None and len(self.created) == self.fail_create_on:
            raise LaunchError("failed to create migration: 403 Forbidden")
        self.created.append(list(repositories))
        return self._next_ids[len(self.created) - 1]

    def get_migration_state(self, job_id):
        self.status_calls.append(job_id)
        if self.poll_failures.get(job_id, 0) > 0:
            self.poll_failures[job_id] -= 1
            raise PollError(f"failed to query migration {job_id}: 502 Bad Gateway")
        sequence = self.states[job_id]
        if len(sequence) > 1:
            return sequence.pop(0)
        return sequence[0]

    def download_archive(self, job_id, path):
        self.downloads.append((job_id, path))
        if job_id in self.download_failures:
            raise DownloadError(f"failed to download archive for migration {job_id}: 500")
        with open(path, "wb") as handle:
            handle.write(b"archive-" + job_id.encode())
        return 8 + len(job_id)


@pytest.fixture
def github_config() -> GitHubConfig:
    return GitHubConfig(
        hostname="github.com",
        api_url="https://api.github.com",
        token="gh-token",
        org="example-org",
    )


@pytest.fixture
def make_client():
    """Factory for scripted migration clients."""
    return FakeMigrationClient
