#!/usr/bin/env python3
"""Configuration dataclasses for github-org-export."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_HOSTNAME = "github.com"
DEFAULT_POLL_INTERVAL_S = 15.0


@dataclass
class GitHubConfig:
    """GitHub-specific configuration."""
    hostname: str
    api_url: str
    token: str
    org: str


@dataclass(frozen=True)
class MigrationOptions:
    """Options snapshot shared by every migration of one invocation."""
    lock_repositories: bool = False
    exclude_attachments: bool = False
    exclude_git_data: bool = False
    exclude_metadata: bool = False
    exclude_owner_projects: bool = False
    exclude_releases: bool = False

    def to_payload(self, repositories: List[str]) -> Dict[str, Any]:
        """Build the body of a migration creation request."""
        return {
            "lock_repositories": self.lock_repositories,
            "exclude_attachments": self.exclude_attachments,
            "exclude_git_data": self.exclude_git_data,
            "exclude_metadata": self.exclude_metadata,
            "exclude_owner_projects": self.exclude_owner_projects,
            "exclude_releases": self.exclude_releases,
            "repositories": list(repositories),
        }


@dataclass
class ArchiveConfig:
    """Archive naming and placement configuration."""
    base_name: Optional[str] = None
    per_repository: bool = False
    output_dir: str = "."


@dataclass
class PollConfig:
    """Polling behavior configuration.

    ``max_rounds`` and ``timeout_s`` default to ``None`` which means poll until
    every migration is terminal. ``status_retries`` is the number of extra
    attempts for a single failed status query before the run is aborted.
    """
    interval_s: float = DEFAULT_POLL_INTERVAL_S
    max_rounds: Optional[int] = None
    timeout_s: Optional[float] = None
    status_retries: int = 0
    retry_delay_s: float = 5.0


@dataclass
class Config:
    """Main configuration for an organization export."""
    github: GitHubConfig
    repositories: List[str]
    options: MigrationOptions = field(default_factory=MigrationOptions)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    poll: PollConfig = field(default_factory=PollConfig)
    debug: bool = False
