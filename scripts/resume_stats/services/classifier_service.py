#------------------------------------------------------------
#                   classifier_service.py
#        Reduces one commit's file list to languages
#                     and added lines.

from pathlib import PurePosixPath
from typing import AbstractSet, Iterable, Optional

from ..models import ClassifiedCommit, CommitFileChange


def file_extension(filename: str) -> str:
    return PurePosixPath(filename or "").suffix[1:]


# This function does classify a commit by the extensions it touches.
# Only extensions in `languages` are attributed, but every file's
# additions are counted.
def classify_commit(files: Optional[Iterable[CommitFileChange]], languages: AbstractSet[str]) -> ClassifiedCommit:
    if files is None:
        return ClassifiedCommit()

    matched = set()
    lines = 0
    for change in files:
        extension = file_extension(change.filename)
        if extension and extension in languages:
            matched.add(extension)
        lines += change.additions

    return ClassifiedCommit(languages=frozenset(matched), lines=lines)
