"""Compose the Slack Block Kit message announcing one or more releases."""
from __future__ import annotations

import json
from itertools import chain
from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field

from release_notifier.models import ChangeEntry, DiffStatistics, Release
from release_notifier.tickets import link_ticket

DEFAULT_CATEGORY_CHAR_LIMIT = 1200
DEFAULT_MAX_MESSAGE_CHARS = 2800
# header, divider and announcement are never dropped
MIN_RETAINED_BLOCKS = 3
# Mandatory blocks plus the truncation notice, with a 150 character ASCII header, stay below this.
MIN_MESSAGE_CHARS = 600
# Leaves room for the "...and N more items" line inside Slack's 3000 character section text.
MAX_CATEGORY_CHAR_LIMIT = 2900

TRUNCATION_NOTICE = (
    ":scissors: _Message truncated to fit Slack limits. "
    "See the release notes for the full list of changes._"
)
NO_CHANGES_TEXT = "*No changes found :man-shrugging:*"


class TextObject(BaseModel):
    type: Literal["plain_text", "mrkdwn"] = "mrkdwn"
    text: str
    emoji: Optional[bool] = None


class HeaderBlock(BaseModel):
    type: Literal["header"] = "header"
    text: TextObject


class DividerBlock(BaseModel):
    type: Literal["divider"] = "divider"


class SectionBlock(BaseModel):
    type: Literal["section"] = "section"
    text: TextObject


class ContextBlock(BaseModel):
    type: Literal["context"] = "context"
    elements: List[TextObject]


Block = Annotated[
    Union[HeaderBlock, DividerBlock, SectionBlock, ContextBlock],
    Field(discriminator="type"),
]


class ComposedMessage(BaseModel):
    blocks: List[Block] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def serialized_size(self) -> int:
        return len(json.dumps(self.to_payload()))


def header(text: str) -> HeaderBlock:
    return HeaderBlock(text=TextObject(type="plain_text", text=text, emoji=True))


def section(text: str) -> SectionBlock:
    return SectionBlock(text=TextObject(text=text))


def context(text: str) -> ContextBlock:
    return ContextBlock(elements=[TextObject(text=text)])


def plural(word: str, count: int) -> str:
    """Pluralize ``word`` when ``count`` is greater than one (zero stays singular)."""
    if count <= 1:
        return word
    if word.lower() == "bugfix":
        return f"{word}es"
    return f"{word}s"


def render_change(entry: ChangeEntry, ticket_base_url: Optional[str]) -> str:
    message = link_ticket(entry.message, entry.ticket_ref, ticket_base_url)
    author = f" (@{entry.author})" if entry.author else ""
    return f"- *{entry.component}:* {message}{author} (<{entry.change_url}|View>)"


def render_change_list(
    entries: Sequence[ChangeEntry],
    ticket_base_url: Optional[str],
    char_limit: int = DEFAULT_CATEGORY_CHAR_LIMIT,
) -> str:
    """Render one line per entry, summarizing whatever does not fit in ``char_limit``."""
    lines: List[str] = []
    length = 0
    for index, entry in enumerate(entries):
        line = render_change(entry, ticket_base_url)
        added = len(line) + (1 if lines else 0)
        if length + added > char_limit:
            remaining = len(entries) - index
            lines.append(f"_...and {remaining} more {plural('item', remaining)}_")
            break
        lines.append(line)
        length += added
    return "\n".join(lines)


def render_release_span(releases: Sequence[Release]) -> str:
    if len(releases) == 1:
        release = releases[0]
        return f"*{release.version}*  |  {release.release_date.isoformat()} (<{release.release_url}|View>)"
    oldest = min(releases, key=lambda r: r.release_date)
    newest = max(releases, key=lambda r: r.release_date)
    return (
        f"*{oldest.version} → {newest.version}*  |  "
        f"{oldest.release_date.isoformat()} → {newest.release_date.isoformat()}"
    )


def render_stats(stats: DiffStatistics) -> str:
    files, insertions, deletions = stats.files_changed, stats.insertions, stats.deletions
    return (
        f":page_facing_up: {files} {plural('file', files)} changed"
        f" | :heavy_plus_sign: {insertions} {plural('insertion', insertions)}"
        f" | :heavy_minus_sign: {deletions} {plural('deletion', deletions)}"
    )


def _sorted_changes(releases: Sequence[Release], attribute: str) -> List[ChangeEntry]:
    entries = chain.from_iterable(getattr(release, attribute) for release in releases)
    return sorted(entries, key=lambda entry: entry.component.lower())


def fit_to_size(message: ComposedMessage, max_chars: int) -> ComposedMessage:
    """Drop trailing blocks until the message and a truncation notice fit ``max_chars``."""
    if message.serialized_size() <= max_chars:
        return message
    notice = context(TRUNCATION_NOTICE)
    blocks = list(message.blocks)
    while len(blocks) > MIN_RETAINED_BLOCKS and ComposedMessage(blocks=blocks + [notice]).serialized_size() > max_chars:
        blocks.pop()
    return ComposedMessage(blocks=blocks + [notice])


def compose(
    app_name: str,
    environment: Optional[str],
    releases: Sequence[Release],
    diff_stats: Optional[DiffStatistics] = None,
    ticket_base_url: Optional[str] = None,
    is_rollback: bool = False,
    category_char_limit: int = DEFAULT_CATEGORY_CHAR_LIMIT,
    max_message_chars: int = DEFAULT_MAX_MESSAGE_CHARS,
) -> ComposedMessage:
    if not releases:
        raise ValueError("At least one release is required to compose a message")

    features = _sorted_changes(releases, "features")
    bugfixes = _sorted_changes(releases, "bugfixes")
    versions = plural("Version", len(releases))

    if is_rollback:
        announcement = f":warning: *Rollback! {versions} rolled back:*"
    else:
        announcement = f":mega: *New release! {versions} included:*"

    blocks: List[Any] = [
        header(f"{environment} | {app_name}" if environment else app_name),
        DividerBlock(),
        section(announcement),
        context(render_release_span(releases)),
    ]
    if is_rollback:
        where = f" in *{environment}*" if environment else ""
        blocks.append(section(f":rewind: The changes below are no longer active{where}."))

    for emoji, noun, entries in ((":sparkles:", "Feature", features), (":bug:", "Bugfix", bugfixes)):
        if not entries:
            continue
        blocks.append(DividerBlock())
        blocks.append(section(f"*{emoji} {len(entries)} {plural(noun, len(entries))}*"))
        blocks.append(section(render_change_list(entries, ticket_base_url, category_char_limit)))

    if not features and not bugfixes:
        blocks.append(section(NO_CHANGES_TEXT))

    if diff_stats is not None:
        blocks.append(DividerBlock())
        blocks.append(context(render_stats(diff_stats)))

    return fit_to_size(ComposedMessage(blocks=blocks), max_message_chars)
