"""Parse release-please style changelog text into ``Release`` records.

The parser is a small line state machine:

* ``NoRelease`` - nothing collected yet, every line but a release header is ignored.
* ``InRelease`` - a release header was seen; section headings switch the active
  classification and bullets are collected into the matching list.

A release is flushed when the next release header is met or at end of input.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple, Union

from release_notifier.errors import ChangelogParseError
from release_notifier.models import DEFAULT_COMPONENT, ChangeEntry, ChangeType, Release
from release_notifier.tickets import extract_ticket

logger = logging.getLogger(__name__)

RELEASE_HEADER_RE = re.compile(
    r"^(?:#+\s+)?\[(?P<version>\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?)\]"
    r"\((?P<release_url>https://[\w./-]+)\)\s+"
    r"\((?P<release_date>\d{4}-\d{2}-\d{2})\)"
)
SECTION_HEADING_RE = re.compile(r"^#+\s+(?P<title>.+?)\s*$")
CHANGE_ITEM_RE = re.compile(
    r"^\* (?:\*\*(?P<component>[\w-]+):\*\* )?(?P<message>.+?)\s*"
    r"\(\[\w{7}\]\((?P<change_url>https://[\w./-]+)\)\)"
)

SECTION_TITLES = {
    "Features": ChangeType.FEATURES,
    "Bug Fixes": ChangeType.BUGFIXES,
}
RANGE_SEPARATOR = "..."


@dataclass(frozen=True)
class NoRelease:
    pass


@dataclass
class InRelease:
    version: str
    release_url: str
    release_date: date
    classification: Optional[ChangeType] = None
    features: List[ChangeEntry] = field(default_factory=list)
    bugfixes: List[ChangeEntry] = field(default_factory=list)

    def active_list(self) -> Optional[List[ChangeEntry]]:
        if self.classification is ChangeType.FEATURES:
            return self.features
        if self.classification is ChangeType.BUGFIXES:
            return self.bugfixes
        return None


ParserState = Union[NoRelease, InRelease]


def split_version_tags(release_url: str) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(previous_tag, tag)`` from a ``.../compare/<previous>...<tag>`` URL."""
    last_segment = release_url.rstrip("/").rsplit("/", 1)[-1]
    if RANGE_SEPARATOR not in last_segment:
        return None, None
    previous_tag, tag = last_segment.split(RANGE_SEPARATOR, 1)
    return previous_tag or None, tag or None


def _finalize(state: InRelease) -> Release:
    previous_tag, tag = split_version_tags(state.release_url)
    return Release(
        version=state.version,
        version_tag=tag,
        previous_version_tag=previous_tag,
        release_url=state.release_url,
        release_date=state.release_date,
        features=state.features,
        bugfixes=state.bugfixes,
    )


def _parse_release_date(raw: str, version: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ChangelogParseError(f"Release {version} has an invalid date: {raw}") from exc


def parse_change_item(line: str) -> Optional[ChangeEntry]:
    """Parse one ``* **component:** message ([abc1234](url))`` bullet, or None if malformed."""
    match = CHANGE_ITEM_RE.match(line)
    if not match:
        return None
    message = match.group("message")
    return ChangeEntry(
        component=match.group("component") or DEFAULT_COMPONENT,
        message=message,
        change_url=match.group("change_url"),
        ticket_ref=extract_ticket(message),
    )


class ChangelogParser:
    def __init__(self) -> None:
        self.dropped_lines = 0

    def parse(self, changelog_text: str) -> List[Release]:
        self.dropped_lines = 0
        releases: List[Release] = []
        state: ParserState = NoRelease()
        for line in changelog_text.splitlines():
            state, flushed = self._transition(state, line)
            if flushed is not None:
                releases.append(flushed)
        if isinstance(state, InRelease):
            releases.append(_finalize(state))
        return releases

    def _transition(self, state: ParserState, line: str) -> Tuple[ParserState, Optional[Release]]:
        header = RELEASE_HEADER_RE.match(line)
        if header:
            version = header.group("version")
            new_state = InRelease(
                version=version,
                release_url=header.group("release_url"),
                release_date=_parse_release_date(header.group("release_date"), version),
            )
            flushed = _finalize(state) if isinstance(state, InRelease) else None
            return new_state, flushed

        if isinstance(state, NoRelease):
            return state, None

        heading = SECTION_HEADING_RE.match(line)
        if heading:
            # Unknown sections (chores, docs, ...) stop collection until a known one starts.
            state.classification = SECTION_TITLES.get(heading.group("title"))
            return state, None

        if line.startswith("* "):
            self._collect(state, line)
        return state, None

    def _collect(self, state: InRelease, line: str) -> None:
        target = state.active_list()
        if target is None:
            return
        entry = parse_change_item(line)
        if entry is None:
            self.dropped_lines += 1
            logger.debug("Dropping malformed changelog line: %s", line)
            return
        # The same change is listed once per squashed commit; keep the first one.
        if any(existing.dedup_key == entry.dedup_key for existing in target):
            return
        target.append(entry)


def parse_releases(changelog_text: str) -> List[Release]:
    parser = ChangelogParser()
    releases = parser.parse(changelog_text)
    if parser.dropped_lines:
        logger.warning("Dropped %d malformed changelog line(s)", parser.dropped_lines)
    return releases
