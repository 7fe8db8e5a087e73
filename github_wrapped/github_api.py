from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from requests import Response
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import GitHubConfig
from .exceptions import RemoteDataError, RemoteQueryError

logger = logging.getLogger(__name__)

_USER_AGENT = "github-wrapped/0.1"


@dataclass(slots=True)
class GitHubSession:
    http: requests.Session
    config: GitHubConfig = field(default_factory=GitHubConfig)

    @classmethod
    def create(cls, token: str, config: Optional[GitHubConfig] = None) -> "GitHubSession":
        config = config or GitHubConfig()
        session = requests.Session()
        session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "User-Agent": _USER_AGENT,
                "X-GitHub-Api-Version": config.api_version,
            }
        )
        return cls(http=session, config=config)

    def fork(self) -> "GitHubSession":
        """Return a session with the same headers and its own connection pool."""
        http = requests.Session()
        http.headers.update(self.http.headers)
        return GitHubSession(http=http, config=self.config)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "GitHubSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _error_message(response: Response) -> str:
    if response.headers.get("Content-Type", "").startswith("application/json"):
        try:
            return str(response.json().get("message") or response.text)
        except ValueError:
            return response.text
    return response.text


def _raise_for_status(response: Response, label: str) -> None:
    if not response.ok:
        raise RemoteQueryError(
            f"GitHub {label} request failed: {response.status_code} {_error_message(response)}",
            status_code=response.status_code,
        )


@retry(
    retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)
def _send(session: GitHubSession, method: str, url: str, **kwargs: Any) -> Response:
    logger.debug("%s %s", method, url)
    return session.http.request(method, url, timeout=session.config.timeout, **kwargs)


def _request(session: GitHubSession, method: str, url: str, **kwargs: Any) -> Response:
    try:
        return _send(session, method, url, **kwargs)
    except requests.RequestException as error:
        raise RemoteQueryError(f"GitHub request to {url} failed: {error}") from error


def rest_get(session: GitHubSession, path: str) -> Any:
    url = f"{session.config.api_root.rstrip('/')}{path}"
    response = _request(session, "GET", url)
    _raise_for_status(response, "REST")
    try:
        return response.json()
    except ValueError as error:
        raise RemoteDataError(f"GitHub REST response for {path} is not JSON") from error


def graphql(session: GitHubSession, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
    response = _request(session, "POST", session.config.graphql_url, json={"query": query, "variables": variables})
    try:
        body = response.json()
    except ValueError as error:
        _raise_for_status(response, "GraphQL")
        raise RemoteDataError("GitHub GraphQL response is not JSON") from error

    if not response.ok or not isinstance(body, dict) or body.get("errors"):
        details = body.get("errors", body) if isinstance(body, dict) else body
        raise RemoteQueryError(f"GitHub GraphQL error: {details}", status_code=response.status_code)

    data = body.get("data")
    if not isinstance(data, dict):
        raise RemoteDataError("GitHub GraphQL response has no data")
    return data


def as_count(value: Any, where: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as error:
        raise RemoteDataError(f"GitHub response has a non-numeric {where}: {value!r}") from error


def get_viewer(session: GitHubSession) -> Dict[str, Any]:
    body = rest_get(session, "/user")
    if not isinstance(body, dict) or "id" not in body or "login" not in body:
        raise RemoteDataError("GitHub /user response is missing id or login")
    return {
        "id": as_count(body["id"], "user id"),
        "login": str(body["login"]),
        "name": body.get("name"),
        "avatar_url": body.get("avatar_url"),
    }


def get_repo_languages(session: GitHubSession, owner: str, repo: str) -> Dict[str, int]:
    body = rest_get(session, f"/repos/{owner}/{repo}/languages")
    if not isinstance(body, dict):
        raise RemoteDataError(f"Language breakdown for {owner}/{repo} is not a mapping")
    return {
        str(language): as_count(bytes_count, f"language size for {owner}/{repo}")
        for language, bytes_count in body.items()
    }


def split_name_with_owner(name_with_owner: str) -> tuple[str, str]:
    owner, _, repo = name_with_owner.partition("/")
    if not owner or not repo:
        raise RemoteDataError(f"Repository name must look like owner/repo: {name_with_owner!r}")
    return owner, repo
