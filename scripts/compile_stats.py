#!/usr/bin/env python3
"""
Compile per-experience commit stats for one author from GitHub.

Reads Stats.toml (or $STATS_CONFIG_PATH / --config), authenticates with a
GitHub personal access token kept in the OS keyring (or $GITHUB_TOKEN), scans
every configured repository for the author's commits and prints, for each
experience, the languages touched, the number of commits and the lines added.

Example Stats.toml:

    author = "alice"
    languages = ["go", "rs"]

    [experience."Backend Engineer"]
    repositories = ["acme/api", "acme/worker"]
"""

import argparse
import sys

from resume_stats.controller import RunOptions, run_compile
from resume_stats.errors import ResumeStatsError
from resume_stats.views.console_view import print_error


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resume-stats",
        description="Compile per-experience commit stats from GitHub.",
    )
    parser.add_argument("--config", default="", help="path to Stats.toml (default: ./Stats.toml)")
    parser.add_argument("--no-progress", action="store_true", help="do not draw progress bars")
    parser.add_argument(
        "--forget-token",
        action="store_true",
        help="remove the stored GitHub PAT before running, so a new one is requested",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    options = RunOptions(config_path=args.config, no_progress=args.no_progress, forget_token=args.forget_token)
    try:
        run_compile(options)
    except ResumeStatsError as exc:
        print_error(exc)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
