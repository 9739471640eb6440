from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

import requests
from github import Github, GithubException

from release_notifier.errors import GitHubApiError, ReleaseNotFoundError
from release_notifier.models import (
    DEFAULT_COMPONENT,
    UNKNOWN_AUTHOR,
    ChangeEntry,
    ChangeType,
    PlatformRelease,
    Release,
)
from release_notifier.tickets import extract_ticket

logger = logging.getLogger(__name__)

CONVENTIONAL_ITEM_RE = re.compile(
    r"(feat|fix)(\((?P<component>[\w-]+)\))?: (?P<message>.+?) by @(?P<author>.*) in (?P<change_url>https://[\w./-]+)"
)
BULLET_MARKERS = ("-", "*")
FULL_CHANGELOG_MARKER = "Full Changelog"


def with_v_prefix(tag: str) -> str:
    tag = tag.strip()
    return tag if tag.startswith("v") else f"v{tag}"


def resolve_release_range(
    gh: Github,
    repo_name: str,
    previous_version: str,
    new_version: str,
) -> Tuple[List[PlatformRelease], bool]:
    """Return the releases between two tags and whether the deploy is a rollback.

    GitHub lists releases newest first; pages are fetched only until both tags
    have been seen. A rollback is a ``new_version`` listed after (older than)
    ``previous_version``.
    """
    new_tag = with_v_prefix(new_version)
    previous_tag = with_v_prefix(previous_version)

    listed: List[PlatformRelease] = []
    new_index: Optional[int] = None
    previous_index: Optional[int] = None
    try:
        repo = gh.get_repo(repo_name)
        for index, release in enumerate(repo.get_releases()):
            listed.append(PlatformRelease.from_github(release))
            if new_index is None and release.tag_name == new_tag:
                new_index = index
            if previous_index is None and release.tag_name == previous_tag:
                previous_index = index
            if new_index is not None and previous_index is not None:
                break
    except GithubException as exc:
        if exc.status == 404:
            raise ReleaseNotFoundError("Repository not found or no releases available") from exc
        message = exc.data.get("message") if isinstance(exc.data, dict) else exc.data
        raise GitHubApiError(f"GitHub API error {exc.status}: {message}") from exc
    except requests.RequestException as exc:
        raise GitHubApiError(f"GitHub API request failed: {exc}") from exc

    if new_index is None:
        raise ReleaseNotFoundError(f"Release with tag {new_tag} not found")
    if previous_index is None:
        raise ReleaseNotFoundError(f"Release with tag {previous_tag} not found")

    is_rollback = new_index > previous_index
    if is_rollback:
        between = listed[previous_index + 1 : new_index + 1]
        logger.info("Detected rollback: rolling back %d release(s) from %s to %s", len(between), previous_tag, new_tag)
    else:
        between = listed[new_index:previous_index]
        logger.info("Found %d release(s) between %s and %s", len(between), previous_tag, new_tag)

    if not between:
        raise ReleaseNotFoundError(f"No releases found between {previous_tag} and {new_tag}")
    return between, is_rollback


def _leading_classification(item_text: str) -> Optional[ChangeType]:
    lowered = item_text.lower()
    if lowered.startswith("feat"):
        return ChangeType.FEATURES
    if lowered.startswith("fix"):
        return ChangeType.BUGFIXES
    return None


def _guess_classification(item_text: str) -> ChangeType:
    # Best effort only: "Quickfix mode" lands in bug fixes.
    lowered = item_text.lower()
    if "fix" in lowered or "bug" in lowered:
        return ChangeType.BUGFIXES
    return ChangeType.FEATURES


def parse_change_item(item_text: str, release_url: str) -> ChangeEntry:
    match = CONVENTIONAL_ITEM_RE.search(item_text)
    groups = match.groupdict() if match else {}
    return ChangeEntry(
        component=groups.get("component") or DEFAULT_COMPONENT,
        message=groups.get("message") or item_text,
        change_url=groups.get("change_url") or release_url,
        author=groups.get("author") or UNKNOWN_AUTHOR,
        ticket_ref=extract_ticket(item_text),
    )


def adapt_platform_release(raw: PlatformRelease) -> Release:
    features: List[ChangeEntry] = []
    bugfixes: List[ChangeEntry] = []
    current_section: Optional[ChangeType] = None

    for line in raw.body.splitlines():
        stripped = line.strip()
        if not stripped.startswith(BULLET_MARKERS):
            continue
        item_text = stripped[1:].strip()
        if not item_text or FULL_CHANGELOG_MARKER in item_text:
            continue

        current_section = _leading_classification(item_text) or current_section
        entry = parse_change_item(item_text, raw.html_url)
        section = current_section or _guess_classification(item_text)
        if section is ChangeType.FEATURES:
            features.append(entry)
        else:
            bugfixes.append(entry)

    return Release(
        version=raw.tag_name,
        version_tag=raw.tag_name,
        release_url=raw.html_url,
        release_date=raw.published_at.date(),
        features=features,
        bugfixes=bugfixes,
    )


def adapt_platform_releases(raw_releases: Sequence[PlatformRelease]) -> List[Release]:
    return [adapt_platform_release(raw) for raw in raw_releases]
