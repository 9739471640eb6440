from __future__ import annotations


class NotifierError(RuntimeError):
    """Raised when the notification run hits a blocking issue."""


class ConfigurationError(NotifierError):
    """Raised when a required input is missing or invalid."""


class ReleaseNotFoundError(NotifierError):
    """Raised when no release (or a requested tag) can be located."""


class ChangelogParseError(NotifierError):
    """Raised when a release header carries a malformed required field."""


class GitCommandError(NotifierError):
    """Raised when a required git command fails."""


class DispatchError(NotifierError):
    """Raised when the message could not be delivered to Slack."""


class GitHubApiError(NotifierError):
    """Raised when the GitHub API rejects or fails a request."""
