"""Post a Slack summary of the latest release(s).

Two sources are supported:

- ``file``: the lines added to the changelog file by the last commit are
  parsed, and git shortstats between the oldest and newest tags are attached.
- ``github``: the GitHub releases between ``previous-version`` and
  ``new-version`` are fetched; a lower new version is announced as a rollback.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Mapping, Optional

from github import Auth, Github

from release_notifier.changelog_parser import parse_releases
from release_notifier.config import ChangelogSource, Settings, load_settings
from release_notifier.errors import NotifierError, ReleaseNotFoundError
from release_notifier.git_stats import get_changelog_diff, get_short_stats
from release_notifier.github_releases import adapt_platform_releases, resolve_release_range
from release_notifier.models import DiffStatistics, Release
from release_notifier.slack_client import post_message
from release_notifier.slack_message import ComposedMessage, compose

logger = logging.getLogger(__name__)

GITHUB_PAGE_SIZE = 100


def _compose(
    settings: Settings,
    releases: List[Release],
    diff_stats: Optional[DiffStatistics],
    is_rollback: bool = False,
) -> ComposedMessage:
    return compose(
        app_name=settings.app_name,
        environment=settings.environment,
        releases=releases,
        diff_stats=diff_stats,
        ticket_base_url=settings.jira_host,
        is_rollback=is_rollback,
        category_char_limit=settings.category_char_limit,
        max_message_chars=settings.max_message_chars,
    )


def build_file_message(settings: Settings) -> ComposedMessage:
    logger.info("Fetching changes for file '%s'...", settings.changelog_file)
    added_content = get_changelog_diff(settings.changelog_file)

    logger.info("Parsing latest release...")
    releases = parse_releases(added_content)
    if not releases:
        raise ReleaseNotFoundError("No release found in changelog file")
    logger.info("Found %d release(s): %s", len(releases), ", ".join(r.version for r in releases))

    # The changelog lists the newest release first.
    from_tag = releases[-1].previous_version_tag
    to_tag = releases[0].version_tag
    diff_stats: Optional[DiffStatistics] = None
    if from_tag and to_tag:
        logger.info("Fetching git shortstats for tags: from_tag=%s, to_tag=%s...", from_tag, to_tag)
        diff_stats = get_short_stats(from_tag, to_tag)
    else:
        logger.warning("Release URLs carry no tag range; skipping diff statistics")

    return _compose(settings, releases, diff_stats)


def build_github_message(settings: Settings, gh: Optional[Github] = None) -> ComposedMessage:
    if gh is None:
        gh = Github(auth=Auth.Token(settings.github_token), per_page=GITHUB_PAGE_SIZE)

    raw_releases, is_rollback = resolve_release_range(
        gh,
        settings.github_repository,
        previous_version=settings.previous_version,
        new_version=settings.new_version,
    )
    logger.info("Found %d release(s): %s", len(raw_releases), ", ".join(r.tag_name for r in raw_releases))

    logger.info("Parsing GitHub releases...")
    releases = adapt_platform_releases(raw_releases)
    return _compose(settings, releases, diff_stats=None, is_rollback=is_rollback)


def build_message(settings: Settings) -> ComposedMessage:
    if settings.changelog_source is ChangelogSource.GITHUB:
        return build_github_message(settings)
    return build_file_message(settings)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Announce new releases from a changelog or GitHub releases on Slack."
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the Slack payload as JSON instead of posting it",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        settings = load_settings(os.environ if environ is None else environ)
        message = build_message(settings)
        if args.dry_run:
            print(json.dumps(message.to_payload(), indent=2, ensure_ascii=False))
            return 0
        logger.info("Posting release info to Slack (%d blocks)...", len(message.blocks))
        post_message(settings.slack_webhook, message)
    except NotifierError as exc:
        logger.error("%s", exc)
        return 1

    logger.info("Release notification sent.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
