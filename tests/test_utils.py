"""Tests for batching, archive naming and other helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from utils import (api_url_for_hostname, archive_filename, batch_repositories,
                   read_repository_file)


@pytest.mark.parametrize("repos", [["a"], ["a", "b"], ["c", "a", "b", "a"]])
def test_single_batch_keeps_all_repositories_in_order(repos) -> None:
    batches = batch_repositories(repos, per_repository=False)
    assert batches == [repos]


@pytest.mark.parametrize("repos", [["a"], ["a", "b"], ["c", "a", "b", "a"]])
def test_per_repository_batches_are_singletons_in_order(repos) -> None:
    batches = batch_repositories(repos, per_repository=True)
    assert len(batches) == len(repos)
    assert [batch[0] for batch in batches] == repos
    assert all(len(batch) == 1 for batch in batches)


def test_batches_do_not_alias_input() -> None:
    repos = ["a", "b"]
    batches = batch_repositories(repos, per_repository=False)
    batches[0].append("c")
    assert repos == ["a", "b"]


def test_archive_filename_with_base_in_single_mode() -> None:
    assert archive_filename("42", "foo", per_repository=False) == "foo.tar.gz"


def test_archive_filename_with_base_in_per_repo_mode() -> None:
    assert archive_filename("42", "foo", per_repository=True) == "foo-42.tar.gz"


def test_archive_filename_defaults_include_job_id() -> None:
    assert archive_filename("m1", None, per_repository=True) == "migration-archive-m1.tar.gz"
    assert archive_filename("m2", None, per_repository=True) == "migration-archive-m2.tar.gz"
    assert archive_filename("m1", None, per_repository=False) == "migration-archive-m1.tar.gz"


def test_api_url_for_hostname() -> None:
    assert api_url_for_hostname("github.com") == "https://api.github.com"
    assert api_url_for_hostname("GitHub.com") == "https://api.github.com"
    assert api_url_for_hostname("github.acme.com") == "https://github.acme.com/api/v3"


def test_read_repository_file_skips_blanks_and_comments(tmp_path: Path) -> None:
    repo_file = tmp_path / "repos.txt"
    repo_file.write_text("api\n\n# archived\nweb  # frontend\n  tools \n", encoding="utf-8")

    assert read_repository_file(str(repo_file)) == ["api", "web", "tools"]
