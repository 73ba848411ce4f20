#------------------------------------------------------------
#                        controller.py
#         Coordinates config loading, authentication,
#            the experience scan and the report.

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .config import (
    FINISHED_MESSAGE,
    FINISHED_STATUS,
    FORGOTTEN_STATUS,
    TOKEN_FORGOTTEN_MESSAGE,
    load_stats_config,
    progress_enabled,
    resolve_stats_path,
)
from .models import BucketStats
from .services.credential_service import forget_token, resolve_token
from .services.experience_service import compile_experience_stats
from .services.github_service import GitHubService
from .views.console_view import make_progress, print_report, print_status


@dataclass
class RunOptions:
    config_path: str = ""
    no_progress: bool = False
    forget_token: bool = False


# This function does execute the full stats workflow end-to-end.
# The config is validated before the stored token is touched or any request is made.
def run_compile(
    options: Optional[RunOptions] = None,
    token_provider: Callable[[], str] = resolve_token,
    client_factory: Optional[Callable[[str], GitHubService]] = None,
) -> Dict[str, BucketStats]:
    options = options or RunOptions()
    config = load_stats_config(resolve_stats_path(options.config_path))

    if options.forget_token and forget_token():
        print_status(FORGOTTEN_STATUS, TOKEN_FORGOTTEN_MESSAGE)

    token = token_provider()
    client_factory = client_factory or GitHubService

    progress = make_progress(len(config.experience), progress_enabled(options.no_progress))
    try:
        with client_factory(token) as client:
            table = compile_experience_stats(config, client, progress)
    finally:
        progress.close()

    print_status(FINISHED_STATUS, FINISHED_MESSAGE)
    print_report(table)
    return table
