from __future__ import annotations

from enum import Enum
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from release_notifier.errors import ConfigurationError
from release_notifier.slack_message import (
    DEFAULT_CATEGORY_CHAR_LIMIT,
    DEFAULT_MAX_MESSAGE_CHARS,
    MAX_CATEGORY_CHAR_LIMIT,
    MIN_MESSAGE_CHARS,
)

DEFAULT_APP_NAME = "Unknown application"
DEFAULT_CHANGELOG_FILE = "CHANGELOG.md"


class ChangelogSource(str, Enum):
    FILE = "file"
    GITHUB = "github"


class Settings(BaseModel):
    """Inputs of one notification run, read once at startup."""

    model_config = ConfigDict(frozen=True)

    slack_webhook: str = Field(..., min_length=1)
    app_name: str = DEFAULT_APP_NAME
    changelog_file: str = DEFAULT_CHANGELOG_FILE
    environment: Optional[str] = None
    jira_host: Optional[str] = None
    changelog_source: ChangelogSource = ChangelogSource.FILE
    github_token: Optional[str] = None
    github_repository: Optional[str] = None
    new_version: Optional[str] = None
    previous_version: Optional[str] = None
    category_char_limit: int = Field(default=DEFAULT_CATEGORY_CHAR_LIMIT, gt=0, le=MAX_CATEGORY_CHAR_LIMIT)
    max_message_chars: int = Field(default=DEFAULT_MAX_MESSAGE_CHARS, ge=MIN_MESSAGE_CHARS)


def get_input(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Read a GitHub Actions input (``INPUT_SLACK-WEBHOOK`` or ``INPUT_SLACK_WEBHOOK``)."""
    key = f"INPUT_{name.upper()}"
    for candidate in (key, key.replace("-", "_")):
        value = environ.get(candidate)
        if value is not None and value.strip():
            return value.strip()
    return None


def _get_int_input(
    environ: Mapping[str, str],
    name: str,
    default: int,
    minimum: int = 1,
    maximum: Optional[int] = None,
) -> int:
    raw = get_input(environ, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Input {name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"Input {name} must be at least {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigurationError(f"Input {name} must be at most {maximum}, got {value}")
    return value


def load_settings(environ: Mapping[str, str]) -> Settings:
    raw_source = get_input(environ, "changelog-source") or ChangelogSource.FILE.value
    try:
        source = ChangelogSource(raw_source.lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in ChangelogSource)
        raise ConfigurationError(f"Input changelog-source must be one of {allowed}, got {raw_source!r}") from exc

    values = {
        "slack-webhook": get_input(environ, "slack-webhook"),
        "github-token": get_input(environ, "github-token"),
        "new-version": get_input(environ, "new-version"),
        "previous-version": get_input(environ, "previous-version"),
    }
    repository = (environ.get("GITHUB_REPOSITORY") or "").strip() or None

    missing: List[str] = [] if values["slack-webhook"] else ["slack-webhook"]
    if source is ChangelogSource.GITHUB:
        missing.extend(name for name in ("github-token", "new-version", "previous-version") if not values[name])
        if repository is None:
            missing.append("GITHUB_REPOSITORY")
    if missing:
        raise ConfigurationError(f"Missing required inputs: {', '.join(missing)}")

    return Settings(
        slack_webhook=values["slack-webhook"],
        app_name=get_input(environ, "app-name") or DEFAULT_APP_NAME,
        changelog_file=get_input(environ, "changelog-file") or DEFAULT_CHANGELOG_FILE,
        environment=get_input(environ, "environment"),
        jira_host=get_input(environ, "jira-host"),
        changelog_source=source,
        github_token=values["github-token"],
        github_repository=repository,
        new_version=values["new-version"],
        previous_version=values["previous-version"],
        category_char_limit=_get_int_input(
            environ, "max-category-chars", DEFAULT_CATEGORY_CHAR_LIMIT, maximum=MAX_CATEGORY_CHAR_LIMIT
        ),
        max_message_chars=_get_int_input(
            environ, "max-message-chars", DEFAULT_MAX_MESSAGE_CHARS, minimum=MIN_MESSAGE_CHARS
        ),
    )
