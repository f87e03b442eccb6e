"""Configuration loading from YAML and environment.

Secrets (tokens) are taken from environment variables or from files
(Docker secrets). Never put real tokens in config files committed to the
repo.

The environment is read here and only here: ``load_config`` builds an
``AppConfig`` once at process start and each component receives the
section it needs.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from covguard.models.gates import QualityGate, default_gates


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so properties can read env/file
_current_env: dict[str, str] = {}


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT or Actions token; use env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    repository: str = Field(default="", description="Target repo e.g. owner/repo")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    user_agent: str = Field(default="covguard/0.1", description="User-Agent header")


class CommentConfig(BaseSettings):
    """Coverage comment lifecycle and anti-spam settings."""

    model_config = SettingsConfigDict(env_prefix="COMMENT_", extra="ignore")

    signature: str = Field(default="covguard-v1", description="Signature written on new comments")
    min_update_interval_minutes: int = Field(default=5, ge=0, description="Minimum minutes between updates")
    max_comments_per_pr: int = Field(default=1, ge=1, description="Coverage comments tolerated per PR")
    discovery_attempts: int = Field(default=3, ge=1, description="Attempts when listing PR comments")


class RetryConfig(BaseSettings):
    """Retry settings for status pushes."""

    model_config = SettingsConfigDict(env_prefix="RETRY_", extra="ignore")

    max_retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    retry_delay: float = Field(default=1.0, ge=0, description="Delay before the first retry (seconds)")
    backoff_factor: float = Field(default=2.0, ge=1.0, description="Exponential backoff factor")


class StatusCheckConfig(BaseSettings):
    """Commit status checks and merge blocking."""

    model_config = SettingsConfigDict(env_prefix="STATUS_", extra="ignore")

    enabled: bool = Field(default=True, description="Create commit status checks")

    context_prefix: str = Field(default="covguard", description="Prefix for all status contexts")
    main_context: str = Field(default="coverage/total", description="Main coverage context")
    additional_contexts: list[str] = Field(
        default_factory=lambda: ["coverage/trend", "coverage/quality"],
        description="Extra contexts (dispatched on trend/quality/comparison)",
    )

    enable_blocking: bool = Field(default=True, description="Report PR as blocked when checks fail")
    block_on_failure: bool = Field(default=True, description="Main status fails below threshold")
    require_all_passing: bool = Field(default=False, description="Block on any failed or errored check")

    coverage_threshold: float = Field(default=80.0, ge=0, le=100, description="Minimum coverage percentage")
    quality_threshold: str = Field(default="C", description="Minimum quality grade")
    allow_label_override: bool = Field(default=False, description="Honor the coverage-override PR label")

    enable_quality_gates: bool = Field(default=True, description="Evaluate quality gates")
    quality_gates: list[QualityGate] = Field(default_factory=list, description="Quality gates")

    include_target_urls: bool = Field(default=True, description="Link statuses to the coverage report")
    timeout: float = Field(default=30.0, gt=0, description="Time budget for all status pushes (seconds)")
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("quality_gates", mode="after")
    @classmethod
    def _unique_gate_contexts(cls, gates: list[QualityGate]) -> list[QualityGate]:
        contexts = [g.context for g in gates]
        duplicates = {c for c in contexts if contexts.count(c) > 1}
        if duplicates:
            raise ValueError(f"duplicate quality gate contexts: {sorted(duplicates)}")
        return gates

    def gates(self) -> list[QualityGate]:
        """Configured gates, or the default pair built from the thresholds."""
        if self.quality_gates:
            return list(self.quality_gates)
        return default_gates(self.coverage_threshold, self.quality_threshold)


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    comment: CommentConfig = Field(default_factory=CommentConfig)
    status: StatusCheckConfig = Field(default_factory=StatusCheckConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from config, env or Docker secret file."""
        t = self.github.token
        if t and not t.startswith("${"):
            return t.strip()
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        # Simple $VAR
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Secrets: GITHUB_TOKEN or GITHUB_TOKEN_FILE. GITHUB_REPOSITORY (set by
    GitHub Actions) fills github.repository when the file leaves it empty.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    raw: dict[str, Any] = {}
    if path.is_file():
        raw = yaml.safe_load(path.read_text()) or {}
        raw = _substitute_env(raw)

    github_raw = raw.get("github") or {}
    if not github_raw.get("repository") and _current_env.get("GITHUB_REPOSITORY"):
        github_raw = {**github_raw, "repository": _current_env["GITHUB_REPOSITORY"]}

    status_raw = dict(raw.get("status") or {})
    retry = RetryConfig(**(status_raw.pop("retry", None) or {}))

    return AppConfig(
        github=GitHubConfig(**github_raw),
        comment=CommentConfig(**(raw.get("comment") or {})),
        status=StatusCheckConfig(**status_raw, retry=retry),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
