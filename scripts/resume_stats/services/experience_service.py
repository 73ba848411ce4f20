#------------------------------------------------------------
#                   experience_service.py
#        Scans every experience's repositories for the
#         author's commits, one thread per experience.

import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Dict, Iterable, List, Optional

from ..config import FETCHED_STATUS, MISSING_FILES_WARNING_TEMPLATE
from ..errors import ScanAborted
from ..models import BucketStats, Experience, RepositoryPath, StatsConfig
from ..views.console_view import NullProgress, status_line, warning_line
from .classifier_service import classify_commit
from .stats_service import StatsAggregator

ABORTED_TEMPLATE = "scan of {experience!r} stopped early"


# Scans one experience's repositories in order and merges every commit.
class ExperienceWorker:

    def __init__(
        self,
        name: str,
        experience: Experience,
        config: StatsConfig,
        client,
        aggregator: StatsAggregator,
        progress=None,
        abort_event: Optional[threading.Event] = None,
    ):
        self.name = name
        self.experience = experience
        self.config = config
        self.client = client
        self.aggregator = aggregator
        self.progress = progress or NullProgress()
        self.abort_event = abort_event or threading.Event()

    def _check_aborted(self) -> None:
        if self.abort_event.is_set():
            raise ScanAborted(ABORTED_TEMPLATE.format(experience=self.name))

    def _commit_shas(self, repository: RepositoryPath) -> List[str]:
        shas: List[str] = []
        seen = set()
        for sha in self.client.list_commit_shas(repository, self.config.author):
            if sha in seen:
                continue
            seen.add(sha)
            shas.append(sha)
        return shas

    def scan_repository(self, repository: RepositoryPath) -> None:
        self._check_aborted()
        shas = self._commit_shas(repository)

        commits_bar = self.progress.commits(str(repository), len(shas))
        try:
            for sha in shas:
                self._check_aborted()
                commits_bar.set_postfix_str(f"{sha[:6]} ({repository})")

                files = self.client.fetch_commit_files(repository, sha)
                if files is None:
                    self.progress.write(warning_line(MISSING_FILES_WARNING_TEMPLATE.format(sha=sha[:7], repository=repository)))

                # The merge happens after the request has returned.
                self.aggregator.merge(self.name, classify_commit(files, self.config.languages))
                commits_bar.update(1)
        finally:
            commits_bar.close()

        self.progress.write(status_line(FETCHED_STATUS, str(repository)))

    def run(self) -> None:
        repositories_bar = self.progress.repositories(self.name, len(self.experience.repositories))
        try:
            for repository in self.experience.repositories:
                repositories_bar.set_postfix_str(f"{repository} ({self.name})")
                self.scan_repository(repository)
                repositories_bar.update(1)
        finally:
            repositories_bar.close()
        self.progress.experience_done()


def _stop(futures: Iterable, abort_event: threading.Event) -> None:
    abort_event.set()
    for future in futures:
        future.cancel()


# This function does run one worker per experience and wait for all of them.
# The first failure stops the other workers and is re-raised unchanged.
def compile_experience_stats(config: StatsConfig, client, progress=None) -> Dict[str, BucketStats]:
    aggregator = StatsAggregator()
    if not config.experience:
        return aggregator.snapshot()

    progress = progress or NullProgress()
    abort_event = threading.Event()
    workers = [
        ExperienceWorker(name, experience, config, client, aggregator, progress, abort_event)
        for name, experience in config.experience.items()
    ]

    with ThreadPoolExecutor(max_workers=len(workers), thread_name_prefix="experience") as executor:
        futures = [executor.submit(worker.run) for worker in workers]
        try:
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        except BaseException:
            # Ctrl-C lands here; the workers stop at their next request boundary.
            _stop(futures, abort_event)
            raise

        failed = [future for future in futures if future in done and future.exception() is not None]
        if failed:
            _stop(pending, abort_event)
            wait(pending)
            # Prefer the error that caused the abort over follow-up ScanAborted errors.
            for future in failed:
                if not isinstance(future.exception(), ScanAborted):
                    raise future.exception()
            raise failed[0].exception()

    table = aggregator.snapshot()
    return {name: table[name] for name in config.experience if name in table}
