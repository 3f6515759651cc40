"""Tests for MigrationPoller."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from config import MigrationOptions, PollConfig
from errors import PollError, PollTimeoutError
from migration_poller import MigrationPoller
from migration_tracker import MigrationJob, MigrationTracker


def _tracker(*job_ids: str) -> MigrationTracker:
    tracker = MigrationTracker()
    for job_id in job_ids:
        tracker.register(MigrationJob(id=job_id, repositories=[job_id],
                                      options=MigrationOptions()))
    return tracker


@patch("migration_poller.time.sleep")
def test_polls_until_exported(mock_sleep, make_client) -> None:
    client = make_client({"7": ["pending", "exporting", "exported"]})
    tracker = _tracker("7")

    rounds = MigrationPoller(client, tracker, PollConfig(interval_s=15)).poll_until_done()

    assert rounds == 3
    assert tracker.get("7").state == "exported"
    assert client.status_calls == ["7", "7", "7"]
    assert mock_sleep.call_count == 2
    mock_sleep.assert_called_with(15)


@patch("migration_poller.time.sleep")
def test_terminal_jobs_are_not_polled_again(mock_sleep, make_client) -> None:
    client = make_client({
        "1": ["failed"],
        "2": ["exporting", "exporting", "exported"],
    })
    tracker = _tracker("1", "2")

    MigrationPoller(client, tracker, PollConfig()).poll_until_done()

    assert client.status_calls.count("1") == 1
    assert client.status_calls.count("2") == 3
    assert tracker.get("1").state == "failed"
    assert tracker.get("2").state == "exported"


@patch("migration_poller.time.sleep")
def test_no_sleep_when_done_after_first_round(mock_sleep, make_client) -> None:
    client = make_client({"1": ["exported"], "2": ["failed"]})
    tracker = _tracker("1", "2")

    assert MigrationPoller(client, tracker, PollConfig()).poll_until_done() == 1
    mock_sleep.assert_not_called()


@patch("migration_poller.time.sleep")
def test_poll_error_is_fatal_by_default(mock_sleep, make_client) -> None:
    client = make_client({"1": ["exported"]})
    client.poll_failures["1"] = 1
    tracker = _tracker("1")

    with pytest.raises(PollError):
        MigrationPoller(client, tracker, PollConfig()).poll_until_done()
    assert tracker.get("1").state == "pending"


@patch("migration_poller.time.sleep")
def test_status_retries_recover_transient_failure(mock_sleep, make_client) -> None:
    client = make_client({"1": ["exported"]})
    client.poll_failures["1"] = 2
    tracker = _tracker("1")
    config = PollConfig(status_retries=2, retry_delay_s=1.5)

    rounds = MigrationPoller(client, tracker, config).poll_until_done()

    assert rounds == 1
    assert tracker.get("1").state == "exported"
    assert client.status_calls == ["1", "1", "1"]
    mock_sleep.assert_called_with(1.5)


@patch("migration_poller.time.sleep")
def test_status_retries_exhausted_raise(mock_sleep, make_client) -> None:
    client = make_client({"1": ["exported"]})
    client.poll_failures["1"] = 3
    tracker = _tracker("1")

    with pytest.raises(PollError):
        MigrationPoller(client, tracker, PollConfig(status_retries=2)).poll_until_done()
    assert len(client.status_calls) == 3


@patch("migration_poller.time.sleep")
def test_max_rounds_raises_timeout(mock_sleep, make_client) -> None:
    client = make_client({"1": ["exporting"]})
    tracker = _tracker("1")

    with pytest.raises(PollTimeoutError) as excinfo:
        MigrationPoller(client, tracker, PollConfig(max_rounds=3)).poll_until_done()

    assert len(client.status_calls) == 3
    assert "1" in str(excinfo.value)
    assert tracker.get("1").is_waiting
    assert mock_sleep.call_count == 2


@patch("migration_poller.time.sleep")
def test_timeout_raises_after_deadline(mock_sleep, make_client) -> None:
    client = make_client({"1": ["exporting"]})
    tracker = _tracker("1")
    clock = iter([0.0, 4.0, 11.0])

    with patch("migration_poller.time.monotonic", side_effect=lambda: next(clock)):
        with pytest.raises(PollTimeoutError):
            MigrationPoller(client, tracker, PollConfig(timeout_s=10)).poll_until_done()

    assert len(client.status_calls) == 2
    assert mock_sleep.call_count == 1


@patch("migration_poller.time.sleep")
def test_poll_round_reports_changed_jobs(mock_sleep, make_client) -> None:
    client = make_client({"1": ["pending", "exporting"], "2": ["exporting"]})
    tracker = _tracker("1", "2")
    poller = MigrationPoller(client, tracker, PollConfig())

    assert set(poller.poll_round(1)) == {"2"}
    assert set(poller.poll_round(2)) == {"1"}
    assert tracker.get("1").polls == 2


@patch("migration_poller.time.sleep")
def test_round_limit_raises_without_a_final_sleep(mock_sleep, make_client) -> None:
    client = make_client({"1": ["exporting"]})
    tracker = _tracker("1")

    with pytest.raises(PollTimeoutError):
        MigrationPoller(client, tracker, PollConfig(max_rounds=1)).poll_until_done()

    assert client.status_calls == ["1"]
    mock_sleep.assert_not_called()


@patch("migration_poller.time.sleep")
def test_last_status_failure_is_reraised_unchanged(mock_sleep, make_client) -> None:
    client = make_client({"1": ["exported"]})
    client.poll_failures["1"] = 5
    tracker = _tracker("1")

    with pytest.raises(PollError, match="502 Bad Gateway"):
        MigrationPoller(client, tracker, PollConfig(status_retries=1)).poll_until_done()

    assert client.status_calls == ["1", "1"]
    assert mock_sleep.call_count == 1
