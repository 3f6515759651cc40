#!/usr/bin/env python3
"""Polls running migrations until every one of them is terminal."""

from __future__ import annotations

import time
from typing import List

from config import PollConfig
from errors import PollError, PollTimeoutError
from github_client import MigrationClient
from logging_utils import Logger
from migration_tracker import MigrationTracker


class MigrationPoller:
    """Sequentially polls waiting migrations, sleeping between rounds.

    Status queries are never issued concurrently; the provider's export time
    dominates, so pacing requests matters more than polling throughput.
    """

    def __init__(
        self, client: MigrationClient, tracker: MigrationTracker, config: PollConfig
    ) -> None:
        self.client = client
        self.tracker = tracker
        self.config = config

    def poll_until_done(self) -> int:
        """Poll until no migration is waiting. Returns the number of rounds."""
        started = time.monotonic()
        rounds = 0
        while self.tracker.has_waiting():
            rounds += 1
            self.poll_round(rounds)
            if not self.tracker.has_waiting():
                break
            self._check_limits(rounds, started)
            waiting = len(self.tracker.waiting_ids())
            Logger.info(
                f"{waiting}/{len(self.tracker)} migrations still running, "
                f"checking again in {self.config.interval_s:g}s"
            )
            time.sleep(self.config.interval_s)

        Logger.info(f"all {len(self.tracker)} migrations finished after {rounds} rounds")
        return rounds

    def poll_round(self, round_number: int = 0) -> List[str]:
        """Query every waiting migration once; returns the ids that changed state."""
        changed: List[str] = []
        for job_id in self.tracker.waiting_ids():
            job = self.tracker.get(job_id)
            previous = job.state
            state = self._query_state(job_id)
            job.polls += 1
            self.tracker.set_state(job_id, state)
            if state != previous:
                changed.append(job_id)
                Logger.info(f"migration {job_id}: {previous} -> {state}")
            else:
                Logger.debug(f"round {round_number}: migration {job_id} still {state}")
        return changed

    def _query_state(self, job_id: str) -> str:
        """Query one migration, retrying up to ``status_retries`` extra times."""
        attempts = max(0, self.config.status_retries) + 1
        attempt = 1
        while True:
            try:
                return self.client.get_migration_state(job_id)
            except PollError as e:
                if attempt >= attempts:
                    raise
                Logger.warn(
                    f"status query for migration {job_id} failed "
                    f"(attempt {attempt}/{attempts}): {e}; "
                    f"retrying in {self.config.retry_delay_s:g}s"
                )
            time.sleep(self.config.retry_delay_s)
            attempt += 1

    def _check_limits(self, rounds: int, started: float) -> None:
        max_rounds = self.config.max_rounds
        if max_rounds is not None and rounds >= max_rounds:
            raise PollTimeoutError(
                f"migrations still running after {rounds} polling rounds: "
                f"{', '.join(sorted(self.tracker.waiting_ids()))}"
            )
        timeout_s = self.config.timeout_s
        if timeout_s is not None and time.monotonic() - started >= timeout_s:
            raise PollTimeoutError(
                f"migrations still running after {timeout_s:g}s: "
                f"{', '.join(sorted(self.tracker.waiting_ids()))}"
            )
