"""Abstract base for Git platform adapters and the errors they raise."""

from abc import ABC, abstractmethod
from typing import List

from covguard.deadline import Deadline
from covguard.models import Comment, CommitStatus, PullRequest


class GitPlatformError(Exception):
    """Raised when a Git platform API call fails.

    ``status_code`` is None for failures that never produced a response
    (connection errors, invalid requests).
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotFoundError(GitPlatformError):
    """The requested resource (PR, comment) does not exist."""

    pass


class DecodeError(GitPlatformError):
    """The response body could not be decoded as JSON."""

    pass


class RequestBuildError(GitPlatformError):
    """The request could not be built (e.g. malformed URL); nothing was sent."""

    pass


class GitPlatformAdapter(ABC):
    """Abstract interface for the Git hosting platform API.

    Every call accepts an optional Deadline; implementations must not
    block past it.
    """

    @abstractmethod
    def list_pr_comments(
        self,
        repo: str,
        pr_number: int,
        deadline: Deadline | None = None,
    ) -> List[Comment]:
        """List all comments on a PR, in API order."""
        ...

    @abstractmethod
    def create_comment(
        self,
        repo: str,
        pr_number: int,
        body: str,
        deadline: Deadline | None = None,
    ) -> Comment:
        """Post a new comment on a PR."""
        ...

    @abstractmethod
    def update_comment(
        self,
        repo: str,
        comment_id: int,
        body: str,
        deadline: Deadline | None = None,
    ) -> Comment:
        """Replace the body of an existing comment."""
        ...

    @abstractmethod
    def create_status(
        self,
        repo: str,
        sha: str,
        status: CommitStatus,
        deadline: Deadline | None = None,
    ) -> None:
        """Create a commit status."""
        ...

    @abstractmethod
    def get_pr(self, repo: str, pr_number: int, deadline: Deadline | None = None) -> PullRequest:
        """Fetch PR by number."""
        ...

    def delete_comment(self, repo: str, comment_id: int, deadline: Deadline | None = None) -> None:
        """Delete a comment. Override if supported."""
        raise NotImplementedError("delete_comment")
