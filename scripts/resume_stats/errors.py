#------------------------------------------------------------
#                          errors.py
#        Exception types surfaced to the command line.

from typing import Optional


# Base class for every fatal condition of a stats run.
class ResumeStatsError(Exception):
    pass


class ConfigError(ResumeStatsError):
    pass


class CredentialError(ResumeStatsError):
    pass


# A GitHub API call failed; the whole run is aborted.
class GitHubError(ResumeStatsError):

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


# Raised inside an experience worker once another worker has failed.
class ScanAborted(ResumeStatsError):
    pass
