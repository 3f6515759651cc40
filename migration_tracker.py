#!/usr/bin/env python3
"""In-memory registry of migration jobs and their lifecycle states."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from config import MigrationOptions
from logging_utils import Logger


class MigrationState(Enum):
    """States reported by the GitHub migrations API."""
    PENDING = "pending"
    EXPORTING = "exporting"
    EXPORTED = "exported"
    FAILED = "failed"


class StateClass(Enum):
    """What the orchestrator needs to know about a provider state."""
    WAITING = "waiting"
    SUCCESS = "success"
    OTHER_TERMINAL = "other-terminal"


WAITING_STATES = frozenset(
    {MigrationState.PENDING.value, MigrationState.EXPORTING.value}
)
SUCCESS_STATE = MigrationState.EXPORTED.value


def classify_state(state: str) -> StateClass:
    """Map a raw provider state onto waiting, success or other-terminal.

    Unknown values are terminal: a job must not be polled forever because the
    provider introduced a state this tool does not know about.
    """
    normalized = (state or "").strip().lower()
    if normalized in WAITING_STATES:
        return StateClass.WAITING
    if normalized == SUCCESS_STATE:
        return StateClass.SUCCESS
    return StateClass.OTHER_TERMINAL


@dataclass
class MigrationJob:
    """One migration created for one batch of repositories."""
    id: str
    repositories: List[str]
    options: MigrationOptions
    state: str = MigrationState.PENDING.value
    polls: int = 0

    @property
    def state_class(self) -> StateClass:
        return classify_state(self.state)

    @property
    def is_waiting(self) -> bool:
        return self.state_class is StateClass.WAITING

    @property
    def is_terminal(self) -> bool:
        return not self.is_waiting

    @property
    def is_successful(self) -> bool:
        return self.state_class is StateClass.SUCCESS


@dataclass
class MigrationTracker:
    """Mapping of migration id to job; the single source of truth for states.

    Once a job is terminal its state is never overwritten again.
    """
    _jobs: Dict[str, MigrationJob] = field(default_factory=dict)

    def register(self, job: MigrationJob) -> None:
        if job.id in self._jobs:
            raise ValueError(f"migration {job.id} is already tracked")
        self._jobs[job.id] = job

    def get(self, job_id: str) -> Optional[MigrationJob]:
        return self._jobs.get(job_id)

    def set_state(self, job_id: str, state: str) -> bool:
        """Record a newly observed state. Returns False if the job is terminal."""
        job = self._jobs.get(job_id)
        if job is None:
            raise KeyError(job_id)
        if job.is_terminal:
            Logger.debug(
                f"ignoring state '{state}' for migration {job_id}: "
                f"already terminal ({job.state})"
            )
            return False
        job.state = state
        return True

    def ids(self) -> List[str]:
        return list(self._jobs)

    def jobs(self) -> List[MigrationJob]:
        return list(self._jobs.values())

    def waiting_ids(self) -> List[str]:
        return [job.id for job in self._jobs.values() if job.is_waiting]

    def has_waiting(self) -> bool:
        return any(job.is_waiting for job in self._jobs.values())

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs
