"""Announce changelog and GitHub releases on Slack."""

__version__ = "0.1.0"
