"""covguard entry point.

Usage: covguard comment --pr N --coverage P [options]. Posts or updates
the coverage comment on the PR and creates commit status checks.
Exit code 0 on success, 1 on error, 2 when the PR is blocked.
"""

import argparse
import logging
import sys
from pathlib import Path

from covguard.adapters.github import GitHubAdapter
from covguard.config import AppConfig, load_config
from covguard.logging import CovguardLogging
from covguard.reporter import CoverageReporter, build_comparison, build_status_request, render_summary

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_BLOCKED = 2

# Minimum update interval in anti-spam mode (minutes).
ANTI_SPAM_INTERVAL = 15


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    argv = argv if argv is not None else sys.argv[1:]
    parser = argparse.ArgumentParser(
        prog="covguard",
        description="covguard - coverage comments and status checks for pull requests",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    sub = parser.add_subparsers(dest="subcommand")

    comment = sub.add_parser("comment", help="Post coverage comment and status checks for a PR")
    comment.add_argument("--pr", "-p", type=int, required=True, help="Pull request number")
    comment.add_argument("--coverage", type=float, required=True, help="Head coverage percentage")
    comment.add_argument("--base-coverage", type=float, default=None, help="Base branch coverage percentage")
    comment.add_argument("--commit-sha", default="", help="Head commit SHA for status checks")
    comment.add_argument("--repo", default="", help="Repository as owner/repo (default: from config)")
    comment.add_argument("--body-file", type=Path, default=None, help="Markdown file with the comment body")
    comment.add_argument("--trend", choices=("up", "down", "stable"), default=None, help="Override trend direction")
    comment.add_argument("--no-status", action="store_true", help="Do not create commit status checks")
    comment.add_argument("--skip-blocking", action="store_true", help="Never report the PR as blocked")
    comment.add_argument(
        "--anti-spam",
        action="store_true",
        help=f"Raise the minimum update interval to {ANTI_SPAM_INTERVAL} minutes",
    )
    comment.add_argument("--dry-run", action="store_true", help="Print what would be posted, post nothing")
    return parser.parse_args(argv)


def _resolve_config_path(config_path: Path) -> Path:
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            logging.getLogger("covguard").warning("config.yaml not found, using config.example.yaml")
            return Path("config.example.yaml")
    return config_path


def run_comment(args: argparse.Namespace, config: AppConfig) -> int:
    log = logging.getLogger("covguard.main")
    repo = args.repo or config.github.repository
    if "/" not in repo:
        log.error("Repository must be given as owner/repo (got %r)", repo)
        return EXIT_ERROR

    if args.anti_spam:
        config.comment = config.comment.model_copy(update={"min_update_interval_minutes": ANTI_SPAM_INTERVAL})

    comparison = build_comparison(args.coverage, args.base_coverage, args.commit_sha, args.trend)
    if args.body_file is not None:
        body = args.body_file.read_text()
    else:
        body = render_summary(comparison, config.status.coverage_threshold)

    if args.dry_run:
        print(f"PR: {args.pr}")
        print(f"Repository: {repo}")
        print(f"Coverage: {args.coverage:.2f}%")
        if args.base_coverage is not None:
            print(f"Difference: {comparison.difference:+.2f}%")
        print(f"Minimum update interval: {config.comment.min_update_interval_minutes}m")
        print("=" * 40)
        print(body)
        if not args.no_status and config.status.enabled and args.commit_sha:
            request = build_status_request(repo, args.commit_sha, comparison, args.pr, args.skip_blocking)
            print("=" * 40)
            print(request.model_dump_json(indent=2))
        return EXIT_OK

    token = config.github_token_resolved
    if not token:
        log.error("GitHub token not configured (GITHUB_TOKEN or GITHUB_TOKEN_FILE)")
        return EXIT_ERROR

    adapter = GitHubAdapter(
        token,
        api_url=config.github.api_url,
        timeout=config.github.timeout,
        user_agent=config.github.user_agent,
    )
    reporter = CoverageReporter(adapter, config)
    result = reporter.report(
        repo,
        args.pr,
        comparison,
        body=body,
        commit_sha=args.commit_sha,
        skip_blocking=args.skip_blocking,
        post_status=not args.no_status,
    )

    if result.comment is not None:
        print(f"Coverage comment {result.comment.action}: {result.comment.reason}")
        if result.comment.comment_id is not None:
            print(f"Comment ID: {result.comment.comment_id}")
    if result.status is not None:
        status = result.status
        print(f"Created {status.total_checks} status checks")
        print(f"Passed: {status.passed_checks}, Failed: {status.failed_checks}, Errors: {status.error_checks}")
        if status.required_failed:
            print(f"Failed required checks: {', '.join(status.required_failed)}")

    if not result.ok:
        return EXIT_ERROR
    if result.blocked:
        print("PR merge is blocked due to failed required checks")
        return EXIT_BLOCKED
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Entry point: load config, set up logging and dispatch."""
    args = parse_args(argv)

    config = load_config(_resolve_config_path(args.config))
    CovguardLogging(config.logging, secrets=[config.github_token_resolved]).setup()

    if args.check:
        print("Config OK:", config.github.repository or "(no repository)", config.status.main_context)
        return EXIT_OK

    if args.subcommand != "comment":
        print("usage: covguard comment --pr N --coverage P [options]", file=sys.stderr)
        return EXIT_ERROR

    try:
        return run_comment(args, config)
    except KeyboardInterrupt:
        return EXIT_ERROR
    except Exception as e:
        logging.getLogger("covguard.main").exception("Fatal error: %s", e)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
