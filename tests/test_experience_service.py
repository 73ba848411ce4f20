from __future__ import annotations

import threading
import time
from concurrent.futures import FIRST_EXCEPTION

import pytest
from conftest import FakeGitHubClient, files

from resume_stats.errors import GitHubError, ScanAborted
from resume_stats.models import BucketStats, Experience, RepositoryPath, StatsConfig
from resume_stats.services import experience_service
from resume_stats.services.experience_service import ExperienceWorker, compile_experience_stats
from resume_stats.services.stats_service import StatsAggregator


def _config(experience: dict[str, list[str]], languages=("go",), author: str = "alice") -> StatsConfig:
    return StatsConfig(
        author=author,
        languages=frozenset(languages),
        experience={
            name: Experience(repositories=tuple(RepositoryPath(*path.split("/", 1)) for path in paths))
            for name, paths in experience.items()
        },
    )


class RecordingProgress:
    def __init__(self) -> None:
        self.lines: list[str] = []
        self.done = 0

    class _Bar:
        def set_postfix_str(self, s: str = "", refresh: bool = True) -> None:
            pass

        def update(self, n: int = 1) -> None:
            pass

        def close(self) -> None:
            pass

    def repositories(self, experience, total):
        return self._Bar()

    def commits(self, repository, total):
        return self._Bar()

    def experience_done(self) -> None:
        self.done += 1

    def write(self, line) -> None:
        self.lines.append(str(line).strip())


def test_single_experience_with_missing_commit_details() -> None:
    client = FakeGitHubClient(
        {"acme/api": [("c1", files(("main.go", 10), ("README", 2))), ("c2", None)]},
    )
    progress = RecordingProgress()

    table = compile_experience_stats(_config({"backend": ["acme/api"]}), client, progress)

    assert table == {"backend": BucketStats(languages={"go"}, commits=2, lines=12)}
    assert ("list", "acme/api", "alice") in client.calls
    assert "WARNING: no file details for c2 in acme/api" in progress.lines
    assert "Fetched acme/api" in progress.lines
    assert progress.done == 1


def test_disjoint_experiences_do_not_mix() -> None:
    client = FakeGitHubClient(
        {
            "acme/api": [("a1", files(("main.go", 5))), ("a2", files(("db.go", 1)))],
            "acme/cli": [("b1", files(("lib.rs", 7), ("notes.md", 3)))],
        }
    )
    config = _config({"backend": ["acme/api"], "tooling": ["acme/cli"]}, languages=("go", "rs"))

    table = compile_experience_stats(config, client)

    assert list(table) == ["backend", "tooling"]
    assert table["backend"] == BucketStats(languages={"go"}, commits=2, lines=6)
    assert table["tooling"] == BucketStats(languages={"rs"}, commits=1, lines=10)


def test_repositories_are_scanned_in_configured_order() -> None:
    client = FakeGitHubClient(
        {
            "acme/one": [("x1", files(("a.go", 1)))],
            "acme/two": [("y1", files(("b.go", 1)))],
        }
    )

    compile_experience_stats(_config({"backend": ["acme/one", "acme/two"]}), client)

    assert client.calls == [
        ("list", "acme/one", "alice"),
        ("get", "acme/one", "x1"),
        ("list", "acme/two", "alice"),
        ("get", "acme/two", "y1"),
    ]


def test_duplicate_shas_are_counted_once() -> None:
    client = FakeGitHubClient({"acme/api": [("c1", files(("a.go", 4))), ("c1", files(("a.go", 4)))]})

    table = compile_experience_stats(_config({"backend": ["acme/api"]}), client)

    assert table["backend"].commits == 1
    assert table["backend"].lines == 4


def test_experience_without_commits_has_no_entry() -> None:
    client = FakeGitHubClient({"acme/api": [("c1", files(("a.go", 4)))], "acme/empty": []})

    table = compile_experience_stats(_config({"backend": ["acme/api"], "idle": ["acme/empty"]}), client)

    assert list(table) == ["backend"]


def test_no_experience_makes_no_requests() -> None:
    client = FakeGitHubClient()
    assert compile_experience_stats(_config({}), client) == {}
    assert client.calls == []


def test_provider_error_fails_the_whole_run() -> None:
    client = FakeGitHubClient(
        {"acme/api": [("c1", files(("a.go", 4)))]},
        failures={"acme/gone": GitHubError("repository acme/gone not found on GitHub (404)", status=404)},
    )
    config = _config({"backend": ["acme/api"], "broken": ["acme/gone"]})

    with pytest.raises(GitHubError, match="acme/gone") as excinfo:
        compile_experience_stats(config, client)
    assert excinfo.value.status == 404


def test_worker_stops_once_another_experience_failed() -> None:
    client = FakeGitHubClient({"acme/api": [("c1", files(("a.go", 4)))]})
    config = _config({"backend": ["acme/api"]})
    aborted = threading.Event()
    aborted.set()
    aggregator = StatsAggregator()

    worker = ExperienceWorker("backend", config.experience["backend"], config, client, aggregator, abort_event=aborted)

    with pytest.raises(ScanAborted):
        worker.run()
    assert client.calls == []
    assert aggregator.snapshot() == {}


class SlowClient(FakeGitHubClient):
    def __init__(self, repositories: dict) -> None:
        super().__init__(repositories)
        self.fetching = threading.Event()

    def fetch_commit_files(self, repository, sha):
        self.fetching.set()
        time.sleep(0.02)
        return super().fetch_commit_files(repository, sha)


def test_interrupt_while_waiting_stops_the_workers(monkeypatch) -> None:
    client = SlowClient({"acme/api": [(f"c{n}", files(("a.go", 1))) for n in range(40)]})
    real_wait = experience_service.wait

    def interrupted_wait(futures, timeout=None, return_when=FIRST_EXCEPTION):
        if return_when == FIRST_EXCEPTION:
            client.fetching.wait(5)
            raise KeyboardInterrupt
        return real_wait(futures, timeout=timeout, return_when=return_when)

    monkeypatch.setattr(experience_service, "wait", interrupted_wait)

    with pytest.raises(KeyboardInterrupt):
        compile_experience_stats(_config({"backend": ["acme/api"]}), client)

    fetched = [call for call in client.calls if call[0] == "get"]
    assert 1 <= len(fetched) < 5


def test_many_concurrent_experiences_keep_exact_totals() -> None:
    repositories = {
        f"org/repo{i}": [(f"sha{i}-{n}", files((f"f{n}.go", i + 1), ("doc.txt", 1))) for n in range(25)]
        for i in range(8)
    }
    client = FakeGitHubClient(repositories)
    config = _config({f"exp{i}": [f"org/repo{i}"] for i in range(8)})

    table = compile_experience_stats(config, client)

    assert len(table) == 8
    for i in range(8):
        assert table[f"exp{i}"] == BucketStats(languages={"go"}, commits=25, lines=25 * (i + 2))
