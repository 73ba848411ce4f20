#------------------------------------------------------------
#                      github_service.py
#               Handles GitHub API requests and
#                      response shaping.

import threading
from typing import Callable, Dict, Iterator, List, Optional

import requests

from ..config import (
    GITHUB_API_ACCEPT_HEADER,
    GITHUB_API_VERSION,
    GITHUB_COMMITS_PER_PAGE,
    GITHUB_REQUEST_TIMEOUT_SECONDS,
    GITHUB_USER_AGENT,
    resolve_api_url,
)
from ..errors import GitHubError
from ..models import CommitFileChange, RepositoryPath

COMMITS_ENDPOINT_TEMPLATE = "/repos/{owner}/{name}/commits"
COMMIT_ENDPOINT_TEMPLATE = "/repos/{owner}/{name}/commits/{sha}"

AUTH_FAILED_MESSAGE = "GitHub rejected the token (401); run with --forget-token to enter a new one"
NOT_FOUND_TEMPLATE = "{what} not found on GitHub (404)"
HTTP_ERROR_TEMPLATE = "GitHub API error {status} for {url}: {message}"
NETWORK_ERROR_TEMPLATE = "network error talking to GitHub ({url}): {error}"
INVALID_JSON_TEMPLATE = "GitHub returned a non-JSON response for {url}"


class GitHubService:

    # This function does keep the auth headers and a session factory.
    # Each worker thread gets its own session, since requests.Session is not thread-safe.
    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.base_url = (base_url or resolve_api_url()).rstrip("/")
        self._headers = self.headers(token)
        self._session_factory = session_factory
        self._local = threading.local()
        self._sessions_lock = threading.Lock()
        self._sessions: List[requests.Session] = []

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            session.headers.update(self._headers)
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    @staticmethod
    def headers(token: str) -> Dict[str, str]:
        headers = {
            "Accept": GITHUB_API_ACCEPT_HEADER,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": GITHUB_USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def __enter__(self) -> "GitHubService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def _get(self, url: str, what: str, params: Optional[dict] = None) -> requests.Response:
        try:
            response = self.session.get(url, params=params, timeout=GITHUB_REQUEST_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            raise GitHubError(NETWORK_ERROR_TEMPLATE.format(url=url, error=exc)) from exc

        if response.status_code == 401:
            raise GitHubError(AUTH_FAILED_MESSAGE, status=401)
        if response.status_code == 404:
            raise GitHubError(NOT_FOUND_TEMPLATE.format(what=what), status=404)
        if not response.ok:
            raise GitHubError(
                HTTP_ERROR_TEMPLATE.format(
                    status=response.status_code,
                    url=url,
                    message=self._error_message(response),
                ),
                status=response.status_code,
            )
        return response

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text.strip() or response.reason or ""
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return response.reason or ""

    @staticmethod
    def _json(response: requests.Response):
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubError(INVALID_JSON_TEMPLATE.format(url=response.url), status=response.status_code) from exc

    # This function does stream the SHAs of commits authored by `author`.
    # It follows Link rel="next" headers until the last page.
    def list_commit_shas(self, repository: RepositoryPath, author: str) -> Iterator[str]:
        url = self.base_url + COMMITS_ENDPOINT_TEMPLATE.format(owner=repository.owner, name=repository.name)
        params: Optional[dict] = {"author": author, "per_page": GITHUB_COMMITS_PER_PAGE}
        what = f"repository {repository}"

        while url:
            response = self._get(url, what, params=params)
            page = self._json(response)
            if not isinstance(page, list):
                raise GitHubError(f"unexpected commit list payload for {repository}", status=response.status_code)
            for commit in page:
                sha = commit.get("sha") if isinstance(commit, dict) else None
                if sha:
                    yield sha

            # The next link already carries the query string.
            url = response.links.get("next", {}).get("url")
            params = None

    # This function does fetch the per-file changes of one commit.
    # It returns None when GitHub sends no file list for the commit.
    def fetch_commit_files(self, repository: RepositoryPath, sha: str) -> Optional[List[CommitFileChange]]:
        url = self.base_url + COMMIT_ENDPOINT_TEMPLATE.format(owner=repository.owner, name=repository.name, sha=sha)
        data = self._json(self._get(url, f"commit {sha[:7]} in {repository}"))

        files = data.get("files") if isinstance(data, dict) else None
        if files is None:
            return None

        return [
            CommitFileChange(filename=item.get("filename") or "", additions=int(item.get("additions") or 0))
            for item in files
            if isinstance(item, dict)
        ]
