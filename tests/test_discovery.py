"""Tests for covguard.comments.discovery."""

from unittest.mock import Mock

import pytest

from covguard.adapters.base import GitPlatformAdapter, GitPlatformError, RequestBuildError
from covguard.comments.discovery import LEGACY_MARKERS, CommentDiscovery, signature_marker
from covguard.models import Comment
from covguard.retry import RetryPolicy


def _discovery(adapter: Mock, delays: list[float] | None = None, signature: str = "covguard-v1") -> CommentDiscovery:
    sink = delays if delays is not None else []
    retry = RetryPolicy.linear_attempts(3, step=1.0, no_delay_on=(RequestBuildError,), sleep=sink.append)
    return CommentDiscovery(adapter, signature, retry=retry)


class TestIsCoverageComment:
    """Marker matching on comment bodies."""

    @pytest.fixture
    def discovery(self) -> CommentDiscovery:
        return _discovery(Mock(spec=GitPlatformAdapter))

    def test_signature_matches(self, discovery: CommentDiscovery) -> None:
        assert discovery.is_coverage_comment(f"{signature_marker('covguard-v1')}\nbody")

    @pytest.mark.parametrize("marker", LEGACY_MARKERS)
    def test_every_legacy_marker_matches(self, discovery: CommentDiscovery, marker: str) -> None:
        assert discovery.is_coverage_comment(f"some text\n{marker}\nmore")

    def test_custom_signature_matches(self) -> None:
        discovery = _discovery(Mock(spec=GitPlatformAdapter), signature="team-coverage-bot")
        assert discovery.is_coverage_comment("posted by team-coverage-bot")
        assert discovery.markers[0] == "team-coverage-bot"

    def test_unrelated_and_empty_bodies(self, discovery: CommentDiscovery) -> None:
        assert not discovery.is_coverage_comment("LGTM, thanks!")
        assert not discovery.is_coverage_comment("")

    def test_matching_is_case_sensitive(self, discovery: CommentDiscovery) -> None:
        assert not discovery.is_coverage_comment("overall coverage: 80%")


class TestFindCoverageComments:
    """find_coverage_comments lists, retries and filters."""

    def test_filters_in_api_order(self) -> None:
        adapter = Mock(spec=GitPlatformAdapter)
        adapter.list_pr_comments.return_value = [
            Comment(id=1, body="## 📊 Coverage Report\nold"),
            Comment(id=2, body="nice work"),
            Comment(id=3, body="<!-- covguard-v1 -->\nnew"),
        ]
        found = _discovery(adapter).find_coverage_comments("owner/repo", 5)
        assert [c.id for c in found] == [1, 3]
        adapter.list_pr_comments.assert_called_once_with("owner/repo", 5)

    def test_retries_with_linear_backoff(self) -> None:
        adapter = Mock(spec=GitPlatformAdapter)
        adapter.list_pr_comments.side_effect = [
            GitPlatformError("502"),
            GitPlatformError("502"),
            [Comment(id=9, body="Overall Coverage: 90%")],
        ]
        delays: list[float] = []
        found = _discovery(adapter, delays).find_coverage_comments("owner/repo", 5)
        assert [c.id for c in found] == [9]
        assert delays == [1.0, 2.0]

    def test_all_attempts_fail_raises_with_note(self) -> None:
        adapter = Mock(spec=GitPlatformAdapter)
        adapter.list_pr_comments.side_effect = GitPlatformError("unavailable", status_code=503)
        delays: list[float] = []

        with pytest.raises(GitPlatformError) as exc_info:
            _discovery(adapter, delays).find_coverage_comments("owner/repo", 5)

        assert adapter.list_pr_comments.call_count == 3
        assert delays == [1.0, 2.0]
        assert exc_info.value.status_code == 503
        assert any("owner/repo#5" in note for note in exc_info.value.__notes__)

    def test_request_build_error_not_delayed(self) -> None:
        """A malformed request consumes attempts without sleeping."""
        adapter = Mock(spec=GitPlatformAdapter)
        adapter.list_pr_comments.side_effect = RequestBuildError("bad url")
        delays: list[float] = []

        with pytest.raises(RequestBuildError):
            _discovery(adapter, delays).find_coverage_comments("owner/repo", 5)
        assert adapter.list_pr_comments.call_count == 3
        assert delays == [0.0, 0.0]
