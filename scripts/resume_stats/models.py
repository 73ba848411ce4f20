#------------------------------------------------------------
#                          models.py
#     Defines dataclasses shared by the stats pipeline.

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Set, Tuple


@dataclass(frozen=True)
class RepositoryPath:
    owner: str
    name: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class Experience:
    repositories: Tuple[RepositoryPath, ...]


@dataclass(frozen=True)
class StatsConfig:
    author: str
    languages: FrozenSet[str]
    experience: Dict[str, Experience]


@dataclass(frozen=True)
class CommitFileChange:
    filename: str
    additions: int


@dataclass(frozen=True)
class ClassifiedCommit:
    languages: FrozenSet[str] = frozenset()
    lines: int = 0


@dataclass
class BucketStats:
    languages: Set[str] = field(default_factory=set)
    commits: int = 0
    lines: int = 0
