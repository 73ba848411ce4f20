#------------------------------------------------------------
#                      console_view.py
#          Renders the stats report, status lines and
#                   the live progress bars.

import sys
from typing import Dict, Union

from rich.console import Console
from rich.text import Text
from tqdm import tqdm

from ..config import EMPTY_REPORT_MESSAGE
from ..models import BucketStats

LABEL_WIDTH = 10
STATUS_WIDTH = 12
EXPERIENCE_HEADING_TEMPLATE = "{experience}:"
STAT_INDENT = "    "
ERROR_TAG = "error"

HEADING_STYLE = "bold green"
LABEL_STYLE = "bold cyan"
STATUS_STYLE = "bold green"
WARNING_STYLE = "yellow"
ERROR_STYLE = "bold red"

COMPILING_DESCRIPTION = "Compiling"
FETCHING_DESCRIPTION = "Fetching"
BAR_FORMAT = "{desc:>12} [{bar:25}] {n_fmt}/{total_fmt}{postfix}"


# This function does build a console bound to one stream.
# Colours are only used when the stream is a terminal.
def make_console(stream=None) -> Console:
    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    colour = bool(isatty and isatty())
    return Console(
        file=stream,
        color_system="auto" if colour else None,
        highlight=False,
        emoji=False,
        soft_wrap=True,
    )


def status_line(status: str, message: str) -> Text:
    return Text.assemble((f"{status:>{STATUS_WIDTH}}", STATUS_STYLE), " ", message)


def warning_line(message: str) -> Text:
    return Text(message, style=WARNING_STYLE)


# This function does render one experience block.
# Languages are sorted so reports are stable between runs.
def render_experience_block(experience: str, stats: BucketStats) -> Text:
    rows = [
        ("Languages:", ", ".join(sorted(stats.languages))),
        ("Commits:", str(stats.commits)),
        ("Lines:", str(stats.lines)),
    ]
    text = Text()
    text.append(EXPERIENCE_HEADING_TEMPLATE.format(experience=experience), style=HEADING_STYLE)
    for label, value in rows:
        text.append("\n" + STAT_INDENT)
        text.append(f"{label:<{LABEL_WIDTH}}", style=LABEL_STYLE)
        if value:
            text.append(" " + value)
    return text


def stats_report_text(table: Dict[str, BucketStats]) -> Text:
    if not table:
        return Text(EMPTY_REPORT_MESSAGE)
    return Text("\n\n").join(render_experience_block(experience, stats) for experience, stats in table.items())


def render_stats_report(table: Dict[str, BucketStats]) -> str:
    return stats_report_text(table).plain


def render_error(error: BaseException) -> Text:
    return Text.assemble((ERROR_TAG, ERROR_STYLE), f": {error}")


def _as_text(line: Union[str, Text]) -> Text:
    return line if isinstance(line, Text) else Text(line)


def print_status(status: str, message: str, stream=None) -> None:
    make_console(stream).print(status_line(status, message))


def print_report(table: Dict[str, BucketStats], stream=None) -> None:
    make_console(stream).print(stats_report_text(table))


def print_error(error: BaseException, stream=None) -> None:
    make_console(stream or sys.stderr).print(render_error(error))


class _NullBar:

    def set_postfix_str(self, s: str = "", refresh: bool = True) -> None:
        pass

    def update(self, n: int = 1) -> None:
        pass

    def close(self) -> None:
        pass


# Progress sink used when bars are disabled; status lines still print.
class NullProgress:

    def __init__(self, stream=None):
        self.stream = stream

    def repositories(self, experience: str, total: int):
        return _NullBar()

    def commits(self, repository: str, total: int):
        return _NullBar()

    def experience_done(self) -> None:
        pass

    def write(self, line: Union[str, Text]) -> None:
        make_console(self.stream or sys.stderr).print(_as_text(line))

    def close(self) -> None:
        pass


# tqdm bars: one overall bar, one per experience and one per repository.
# Status lines are rendered by rich first and handed to tqdm.write so the
# bars are redrawn below them.
class ProgressDisplay:

    def __init__(self, experience_count: int, stream=None):
        self.stream = stream or sys.stderr
        self.console = make_console(self.stream)
        self.overall = tqdm(
            total=experience_count,
            desc=COMPILING_DESCRIPTION,
            bar_format=BAR_FORMAT,
            ascii=" >=",
            file=self.stream,
            leave=False,
        )

    def _bar(self, total: int, postfix: str = ""):
        bar = tqdm(
            total=total,
            desc=FETCHING_DESCRIPTION,
            bar_format=BAR_FORMAT,
            ascii=" >=",
            file=self.stream,
            leave=False,
        )
        if postfix:
            bar.set_postfix_str(postfix)
        return bar

    def repositories(self, experience: str, total: int):
        return self._bar(total, experience)

    def commits(self, repository: str, total: int):
        return self._bar(total, repository)

    def experience_done(self) -> None:
        self.overall.update(1)

    def write(self, line: Union[str, Text]) -> None:
        with self.console.capture() as capture:
            self.console.print(_as_text(line), end="")
        tqdm.write(capture.get(), file=self.stream)

    def close(self) -> None:
        self.overall.close()


def make_progress(experience_count: int, enabled: bool, stream=None):
    if enabled:
        return ProgressDisplay(experience_count, stream=stream)
    return NullProgress(stream=stream)
