"""Git platform adapters (base and implementations)."""

from covguard.adapters.base import (
    DecodeError,
    GitPlatformAdapter,
    GitPlatformError,
    NotFoundError,
    RequestBuildError,
)
from covguard.adapters.github import GitHubAdapter

__all__ = [
    "DecodeError",
    "GitHubAdapter",
    "GitPlatformAdapter",
    "GitPlatformError",
    "NotFoundError",
    "RequestBuildError",
]
