from __future__ import annotations

import threading
from pathlib import Path

import pytest

from resume_stats.models import CommitFileChange


def files(*pairs: tuple[str, int]) -> list[CommitFileChange]:
    return [CommitFileChange(filename=name, additions=additions) for name, additions in pairs]


# In-memory stand-in for GitHubService keyed by "owner/name".
class FakeGitHubClient:

    def __init__(self, repositories: dict | None = None, failures: dict | None = None) -> None:
        # "owner/name" -> list of (sha, files or None)
        self.repositories = repositories or {}
        # "owner/name" -> exception raised when the commit list is requested
        self.failures = failures or {}
        self.calls: list[tuple] = []
        self.closed = False
        self._lock = threading.Lock()

    def __enter__(self) -> "FakeGitHubClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    def _record(self, *call) -> None:
        with self._lock:
            self.calls.append(call)

    def list_commit_shas(self, repository, author):
        self._record("list", str(repository), author)
        key = str(repository)
        if key in self.failures:
            raise self.failures[key]
        for sha, _ in self.repositories.get(key, []):
            yield sha

    def fetch_commit_files(self, repository, sha):
        self._record("get", str(repository), sha)
        for candidate, changes in self.repositories.get(str(repository), []):
            if candidate == sha:
                return changes
        raise AssertionError(f"unknown commit {sha} in {repository}")


@pytest.fixture
def write_stats(tmp_path: Path):
    def _write(body: str, name: str = "Stats.toml") -> Path:
        path = tmp_path / name
        path.write_text(body, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in ("STATS_CONFIG_PATH", "GITHUB_TOKEN", "GITHUB_API_URL", "RESUME_STATS_PROGRESS"):
        monkeypatch.delenv(name, raising=False)
