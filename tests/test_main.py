"""Tests for covguard.main (CLI)."""

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from covguard.main import EXIT_BLOCKED, EXIT_ERROR, EXIT_OK, main, parse_args
from covguard.models import PRCommentResponse, StatusCheckResponse
from covguard.reporter import ReportResult, build_comparison

NOW = datetime(2024, 6, 1, tzinfo=UTC)


@pytest.fixture(autouse=True)
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run in an empty directory with no GitHub env."""
    monkeypatch.chdir(tmp_path)
    for key in ("GITHUB_TOKEN", "GITHUB_TOKEN_FILE", "GITHUB_REPOSITORY"):
        monkeypatch.delenv(key, raising=False)


def _comment_args(*extra: str) -> list[str]:
    return ["comment", "--pr", "7", "--coverage", "85", "--repo", "acme/widgets", *extra]


class TestParseArgs:
    def test_comment_flags(self) -> None:
        args = parse_args(_comment_args("--base-coverage", "80", "--commit-sha", "abc", "--anti-spam", "--no-status"))
        assert args.subcommand == "comment"
        assert args.pr == 7
        assert args.coverage == 85.0
        assert args.base_coverage == 80.0
        assert args.anti_spam and args.no_status
        assert args.config == Path("config.yaml")

    def test_invalid_trend_rejected(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(_comment_args("--trend", "sideways"))


def test_check_validates_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "covguard.yaml"
    config.write_text("github:\n  repository: acme/widgets\n")
    assert main(["--config", str(config), "--check"]) == EXIT_OK
    assert "Config OK: acme/widgets" in capsys.readouterr().out


def test_no_subcommand_is_error() -> None:
    assert main([]) == EXIT_ERROR


def test_dry_run_prints_body_and_status_request(capsys: pytest.CaptureFixture[str]) -> None:
    code = main(_comment_args("--base-coverage", "80", "--commit-sha", "abc123", "--dry-run", "--anti-spam"))
    out = capsys.readouterr().out

    assert code == EXIT_OK
    assert "## 📊 Coverage Report" in out
    assert "Difference: +5.00%" in out
    assert "Minimum update interval: 15m" in out
    request = json.loads(out[out.index("{") :])
    assert request["commit_sha"] == "abc123"
    assert request["quality"]["grade"] == "B+"


def test_body_file_used(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    body = tmp_path / "body.md"
    body.write_text("custom body from CI")
    assert main(_comment_args("--body-file", str(body), "--dry-run")) == EXIT_OK
    assert "custom body from CI" in capsys.readouterr().out


def test_repo_required() -> None:
    assert main(["comment", "--pr", "7", "--coverage", "85", "--dry-run"]) == EXIT_ERROR


def test_missing_token_is_error() -> None:
    assert main(_comment_args()) == EXIT_ERROR


class TestRun:
    """Exit codes from the reporting cycle."""

    def _run(self, monkeypatch: pytest.MonkeyPatch, result: ReportResult, *extra: str) -> tuple[int, object]:
        monkeypatch.setenv("GITHUB_TOKEN", "test-token")
        with patch("covguard.main.CoverageReporter") as reporter_cls:
            reporter_cls.return_value.report.return_value = result
            code = main(_comment_args(*extra))
        return code, reporter_cls

    def test_success(self, monkeypatch: pytest.MonkeyPatch) -> None:
        comparison = build_comparison(85.0)
        result = ReportResult(
            comment=PRCommentResponse(comment_id=3, action="updated", reason="Coverage data updated", coverage_data=comparison),
            status=StatusCheckResponse(created_at=NOW, updated_at=NOW, all_passing=True),
        )
        code, reporter_cls = self._run(monkeypatch, result, "--commit-sha", "abc")

        assert code == EXIT_OK
        call = reporter_cls.return_value.report.call_args
        assert call[0][:2] == ("acme/widgets", 7)
        assert call[1]["commit_sha"] == "abc"
        assert call[1]["post_status"] is True

    def test_blocked(self, monkeypatch: pytest.MonkeyPatch) -> None:
        result = ReportResult(
            status=StatusCheckResponse(
                created_at=NOW,
                updated_at=NOW,
                blocking_pr=True,
                required_failed=["covguard/coverage/total"],
            )
        )
        code, _ = self._run(monkeypatch, result, "--commit-sha", "abc")
        assert code == EXIT_BLOCKED

    def test_flow_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        code, _ = self._run(monkeypatch, ReportResult(comment_error="403: forbidden"))
        assert code == EXIT_ERROR

    def test_anti_spam_raises_interval(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _, reporter_cls = self._run(monkeypatch, ReportResult(), "--anti-spam")
        config = reporter_cls.call_args[0][1]
        assert config.comment.min_update_interval_minutes == 15

    def test_unexpected_exception_is_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "test-token")
        with patch("covguard.main.CoverageReporter") as reporter_cls:
            reporter_cls.return_value.report.side_effect = RuntimeError("boom")
            assert main(_comment_args()) == EXIT_ERROR
