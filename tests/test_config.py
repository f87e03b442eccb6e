"""Tests for covguard.config (YAML + env loading)."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from covguard.config import AppConfig, StatusCheckConfig, load_config
from covguard.models import QualityGradeGate, RiskLevelGate


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("GITHUB_TOKEN", "GITHUB_TOKEN_FILE", "GITHUB_REPOSITORY", "COVGUARD_TEST_TOKEN"):
        monkeypatch.delenv(key, raising=False)


class TestDefaults:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "missing.yaml")
        assert isinstance(config, AppConfig)
        assert config.comment.min_update_interval_minutes == 5
        assert config.comment.max_comments_per_pr == 1
        assert config.comment.signature == "covguard-v1"
        assert config.status.context_prefix == "covguard"
        assert config.status.main_context == "coverage/total"
        assert config.status.additional_contexts == ["coverage/trend", "coverage/quality"]
        assert config.status.coverage_threshold == 80.0
        assert config.status.retry.max_retries == 3
        assert config.status.retry.backoff_factor == 2.0

    def test_default_gates_follow_thresholds(self) -> None:
        gates = StatusCheckConfig(coverage_threshold=70.0, quality_threshold="B").gates()
        assert [g.name for g in gates] == ["Coverage Threshold", "Quality Grade"]
        assert gates[0].threshold == 70.0
        assert gates[1].threshold == "B"


class TestLoadYaml:
    def test_sections_and_gates(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            """
github:
  repository: acme/widgets
comment:
  min_update_interval_minutes: 10
status:
  coverage_threshold: 90
  allow_label_override: true
  retry:
    max_retries: 1
    retry_delay: 0.5
  quality_gates:
    - type: quality_grade
      name: Grade
      context: coverage/grade
      threshold: B+
      required: true
    - type: risk_level
      name: Risk
      context: coverage/risk
      threshold: medium
logging:
  level: DEBUG
"""
        )
        config = load_config(path)

        assert config.github.repository == "acme/widgets"
        assert config.comment.min_update_interval_minutes == 10
        assert config.status.coverage_threshold == 90.0
        assert config.status.allow_label_override is True
        assert config.status.retry.max_retries == 1
        assert config.status.retry.retry_delay == 0.5
        gates = config.status.gates()
        assert isinstance(gates[0], QualityGradeGate)
        assert isinstance(gates[1], RiskLevelGate)
        assert gates[0].required is True
        assert config.logging.level == "DEBUG"

    def test_invalid_gate_threshold_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            """
status:
  quality_gates:
    - type: coverage_percentage
      name: Min
      context: coverage/min
      threshold: lots
"""
        )
        with pytest.raises(ValidationError):
            load_config(path)

    def test_duplicate_gate_contexts_rejected(self) -> None:
        gate = {"type": "file_count", "name": "f", "context": "coverage/files", "threshold": 1}
        with pytest.raises(ValidationError):
            StatusCheckConfig(quality_gates=[gate, dict(gate, name="g")])

    def test_env_substitution_and_token(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COVGUARD_TEST_TOKEN", "secret-from-env")
        path = tmp_path / "config.yaml"
        path.write_text("github:\n  token: ${COVGUARD_TEST_TOKEN}\n")
        config = load_config(path)
        assert config.github_token_resolved == "secret-from-env"

    def test_repository_from_actions_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_REPOSITORY", "octo/repo")
        config = load_config(tmp_path / "missing.yaml")
        assert config.github.repository == "octo/repo"


class TestTokenResolution:
    def test_token_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", " env-token \n")
        config = load_config(tmp_path / "missing.yaml")
        assert config.github_token_resolved == "env-token"

    def test_token_from_secret_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        secret = tmp_path / "token"
        secret.write_text("file-token\n")
        monkeypatch.setenv("GITHUB_TOKEN_FILE", str(secret))
        config = load_config(tmp_path / "missing.yaml")
        assert config.github_token_resolved == "file-token"

    def test_no_token(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "missing.yaml").github_token_resolved is None
