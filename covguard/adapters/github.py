"""GitHub API adapter."""

from typing import Any, Callable, Dict, List, TypeVar

import requests
from pydantic import ValidationError

from covguard.adapters.base import (
    DecodeError,
    GitPlatformAdapter,
    GitPlatformError,
    NotFoundError,
    RequestBuildError,
)
from covguard.deadline import Deadline, DeadlineExceeded
from covguard.models import Comment, CommitStatus, PullRequest

T = TypeVar("T")

# Raised by the converters when a JSON payload has the wrong shape.
_SHAPE_ERRORS = (KeyError, TypeError, AttributeError, ValidationError)

_INVALID_REQUEST_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
)


def _comment_from_api(data: Dict[str, Any]) -> Comment:
    user = data.get("user") or {}
    created = data.get("created_at") or ""
    return Comment(
        id=data["id"],
        body=data.get("body") or "",
        author=user.get("login", ""),
        created_at=created,
        updated_at=data.get("updated_at") or created,
    )


def _pr_from_api(data: Dict[str, Any]) -> PullRequest:
    head = data.get("head") or {}
    base = data.get("base") or {}
    labels = [lb["name"] for lb in (data.get("labels") or []) if isinstance(lb, dict) and "name" in lb]
    return PullRequest(
        number=data["number"],
        title=data.get("title") or "",
        state=data.get("state", "open"),
        head_sha=head.get("sha", ""),
        base_sha=base.get("sha", ""),
        labels=labels,
    )


class GitHubAdapter(GitPlatformAdapter):
    """GitHub REST API implementation."""

    def __init__(
        self,
        token: str | None,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        user_agent: str = "covguard/0.1",
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["Accept"] = "application/vnd.github.v3+json"
        self._session.headers["User-Agent"] = user_agent
        if token:
            self._session.headers["Authorization"] = f"token {token}"

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
        deadline: Deadline | None = None,
    ) -> requests.Response:
        url = self._url(path)
        timeout = deadline.timeout(self._timeout) if deadline is not None else self._timeout
        try:
            resp = self._session.request(method, url, params=params, json=json, timeout=timeout)
        except _INVALID_REQUEST_ERRORS as e:
            raise RequestBuildError(f"invalid request {method} {url}: {e}") from e
        except requests.exceptions.Timeout as e:
            if deadline is not None and deadline.expired:
                raise DeadlineExceeded(f"{method} {path}: deadline exceeded") from e
            raise GitPlatformError(f"{method} {path}: timed out: {e}") from e
        except requests.RequestException as e:
            raise GitPlatformError(f"{method} {path}: {e}") from e

        if resp.status_code == 404:
            raise NotFoundError(f"Not found: {path}", status_code=404, body=resp.text or "")
        if not 200 <= resp.status_code < 300:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("message", msg)
            except Exception:
                pass
            raise GitPlatformError(f"{resp.status_code}: {msg}", status_code=resp.status_code, body=resp.text or "")
        return resp

    def _json(self, resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(
                f"invalid JSON in response: {e}", status_code=resp.status_code, body=resp.text or ""
            ) from e

    def _decode(self, resp: requests.Response, convert: Callable[[Dict[str, Any]], T], data: Any) -> T:
        """Convert one API object, raising DecodeError when its shape is wrong."""
        if not isinstance(data, dict):
            raise DecodeError(
                f"expected JSON object, got {type(data).__name__}",
                status_code=resp.status_code,
                body=resp.text or "",
            )
        try:
            return convert(data)
        except _SHAPE_ERRORS as e:
            raise DecodeError(
                f"unexpected response shape: {e!r}", status_code=resp.status_code, body=resp.text or ""
            ) from e

    def list_pr_comments(
        self,
        repo: str,
        pr_number: int,
        deadline: Deadline | None = None,
    ) -> List[Comment]:
        path = f"/repos/{repo}/issues/{pr_number}/comments"
        params: Dict[str, Any] | None = {"per_page": 100}
        comments: List[Comment] = []
        while path:
            resp = self._request("GET", path, params=params, deadline=deadline)
            data = self._json(resp)
            if not isinstance(data, list):
                raise DecodeError(f"expected a list of comments from {path}", status_code=resp.status_code)
            comments.extend(self._decode(resp, _comment_from_api, d) for d in data)
            # The next link already carries the query string.
            path = (resp.links.get("next") or {}).get("url")
            params = None
        return comments

    def create_comment(
        self,
        repo: str,
        pr_number: int,
        body: str,
        deadline: Deadline | None = None,
    ) -> Comment:
        path = f"/repos/{repo}/issues/{pr_number}/comments"
        resp = self._request("POST", path, json={"body": body}, deadline=deadline)
        return self._decode(resp, _comment_from_api, self._json(resp))

    def update_comment(
        self,
        repo: str,
        comment_id: int,
        body: str,
        deadline: Deadline | None = None,
    ) -> Comment:
        path = f"/repos/{repo}/issues/comments/{comment_id}"
        resp = self._request("PATCH", path, json={"body": body}, deadline=deadline)
        return self._decode(resp, _comment_from_api, self._json(resp))

    def delete_comment(self, repo: str, comment_id: int, deadline: Deadline | None = None) -> None:
        self._request("DELETE", f"/repos/{repo}/issues/comments/{comment_id}", deadline=deadline)

    def create_status(
        self,
        repo: str,
        sha: str,
        status: CommitStatus,
        deadline: Deadline | None = None,
    ) -> None:
        self._request("POST", f"/repos/{repo}/statuses/{sha}", json=status.model_dump(), deadline=deadline)

    def get_pr(self, repo: str, pr_number: int, deadline: Deadline | None = None) -> PullRequest:
        resp = self._request("GET", f"/repos/{repo}/pulls/{pr_number}", deadline=deadline)
        return self._decode(resp, _pr_from_api, self._json(resp))
