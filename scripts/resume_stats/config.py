#------------------------------------------------------------
#                          config.py
#   Centralizes runtime constants, file paths and Stats.toml
#                     loading helpers.

import os
from typing import Dict, List

import tomli

from .errors import ConfigError
from .models import Experience, RepositoryPath, StatsConfig

# Environment variable names for configuration
ENV_STATS_CONFIG_PATH = "STATS_CONFIG_PATH"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_GITHUB_API_URL = "GITHUB_API_URL"
ENV_PROGRESS = "RESUME_STATS_PROGRESS"

# Default values for configuration parameters
DEFAULT_STATS_FILENAME = "Stats.toml"
FALSE_ENV_VALUES = ("0", "false", "no", "off")

# Constants for GitHub API interaction
GITHUB_API_ACCEPT_HEADER = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_COMMITS_PER_PAGE = 100
GITHUB_REQUEST_TIMEOUT_SECONDS = 30
GITHUB_USER_AGENT = "resume-stats"

# Credential store identifiers.
KEYRING_SERVICE_NAME = "resume_stats"
TOKEN_PROMPT = "Please provide a GitHub PAT: "

# Messages shown on the console.
# Status lines are printed as "<STATUS> <message>" with the status right-aligned.
FINISHED_STATUS = "Finished"
FINISHED_MESSAGE = "compiling stats"
FETCHED_STATUS = "Fetched"
FORGOTTEN_STATUS = "Removed"
MISSING_FILES_WARNING_TEMPLATE = "WARNING: no file details for {sha} in {repository}"
EMPTY_REPORT_MESSAGE = "No commits found for the configured author."
TOKEN_FORGOTTEN_MESSAGE = "stored GitHub PAT"

REPOSITORY_PATH_FORMAT_ERROR = "expected repository path to be in the format owner/repository, got {value!r}"


def resolve_stats_path(configured: str = "") -> str:
    configured = (configured or os.environ.get(ENV_STATS_CONFIG_PATH, "")).strip()
    if not configured:
        return os.path.join(os.getcwd(), DEFAULT_STATS_FILENAME)
    if os.path.isabs(configured):
        return configured
    return os.path.join(os.getcwd(), configured)


def resolve_api_url() -> str:
    configured = os.environ.get(ENV_GITHUB_API_URL, "").strip()
    return (configured or GITHUB_API_BASE_URL).rstrip("/")


# This function does decide whether progress bars should be drawn.
# An explicit flag wins over the environment.
def progress_enabled(disabled_by_flag: bool = False) -> bool:
    if disabled_by_flag:
        return False
    value = os.environ.get(ENV_PROGRESS, "").strip().lower()
    return value not in FALSE_ENV_VALUES


def parse_repository_path(value) -> RepositoryPath:
    if not isinstance(value, str):
        raise ConfigError(REPOSITORY_PATH_FORMAT_ERROR.format(value=value))
    owner, separator, name = value.strip().partition("/")
    owner, name = owner.strip(), name.strip()
    if not separator or not owner or not name:
        raise ConfigError(REPOSITORY_PATH_FORMAT_ERROR.format(value=value))
    return RepositoryPath(owner=owner, name=name)


def _require(data: dict, key: str, expected_type: type, where: str):
    if key not in data:
        raise ConfigError(f"missing key {key!r} in {where}")
    value = data[key]
    if not isinstance(value, expected_type):
        raise ConfigError(f"key {key!r} in {where} must be a {expected_type.__name__}")
    return value


def _parse_experience(name: str, table) -> Experience:
    where = f"experience {name!r}"
    if not isinstance(table, dict):
        raise ConfigError(f"{where} must be a table")
    entries: List = _require(table, "repositories", list, where)
    return Experience(repositories=tuple(parse_repository_path(entry) for entry in entries))


# This function does convert a parsed TOML document into StatsConfig.
# Every repository path is validated before anything touches the network.
def parse_stats_config(data: dict) -> StatsConfig:
    author = _require(data, "author", str, "Stats.toml").strip()
    if not author:
        raise ConfigError("key 'author' in Stats.toml must not be empty")

    languages = _require(data, "languages", list, "Stats.toml")
    if not all(isinstance(language, str) for language in languages):
        raise ConfigError("key 'languages' in Stats.toml must be a list of strings")

    experience_table = data.get("experience", {})
    if not isinstance(experience_table, dict):
        raise ConfigError("key 'experience' in Stats.toml must be a table")

    experience: Dict[str, Experience] = {
        name: _parse_experience(name, table) for name, table in experience_table.items()
    }
    return StatsConfig(
        author=author,
        languages=frozenset(language.strip().lstrip(".") for language in languages if language.strip()),
        experience=experience,
    )


def load_stats_config(path: str) -> StatsConfig:
    try:
        with open(path, "rb") as file_handle:
            data = tomli.load(file_handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {path}") from exc
    except OSError as exc:
        raise ConfigError(f"could not read {path}: {exc}") from exc
    except tomli.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    return parse_stats_config(data)
