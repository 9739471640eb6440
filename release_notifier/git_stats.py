from __future__ import annotations

import logging
import re
import subprocess
from typing import List, Optional

from release_notifier.errors import GitCommandError
from release_notifier.models import DiffStatistics

logger = logging.getLogger(__name__)

SHORTSTAT_RE = re.compile(
    r"(?P<files_changed>\d+) files? changed"
    r"(?:, (?P<insertions>\d+) insertions?\(\+\))?"
    r"(?:, (?P<deletions>\d+) deletions?\(-\))?"
)


def _run_git(args: List[str]) -> str:
    result = subprocess.run(
        ["git", *args],
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def parse_short_stats(output: str) -> Optional[DiffStatistics]:
    match = SHORTSTAT_RE.search(output)
    if not match:
        return None
    return DiffStatistics(
        files_changed=int(match.group("files_changed")),
        insertions=int(match.group("insertions") or 0),
        deletions=int(match.group("deletions") or 0),
    )


def get_short_stats(from_tag: str, to_tag: str) -> Optional[DiffStatistics]:
    """Line-change totals for ``from_tag...to_tag``, or None when git cannot tell."""
    try:
        output = _run_git(["diff", "--shortstat", f"{from_tag}...{to_tag}"])
    except (subprocess.CalledProcessError, FileNotFoundError) as exc:
        logger.warning("Could not compute diff statistics for %s...%s: %s", from_tag, to_tag, exc)
        return None
    logger.debug("ShortStat: %s", output.strip())
    stats = parse_short_stats(output)
    if stats is None:
        logger.warning("No diff statistics found for %s...%s", from_tag, to_tag)
    return stats


def added_lines(diff_output: str) -> str:
    lines = [
        line[1:]
        for line in diff_output.splitlines()
        if line.startswith("+") and not line.startswith("+++")
    ]
    return "\n".join(lines)


def get_changelog_diff(file_path: str, base_ref: str = "HEAD~1") -> str:
    """Return the lines added to ``file_path`` between ``base_ref`` and HEAD."""
    try:
        output = _run_git(["diff", base_ref, "HEAD", "--", file_path])
    except subprocess.CalledProcessError as exc:
        raise GitCommandError(f"git diff failed for {file_path}: {(exc.stderr or '').strip()}") from exc
    except FileNotFoundError as exc:
        raise GitCommandError("git executable not found") from exc
    return added_lines(output)
