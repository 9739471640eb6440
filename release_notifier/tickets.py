from __future__ import annotations

import re
from typing import Optional

TICKET_PATTERN = re.compile(r"(?P<ticket>[A-Z]{2,}-\d+)")


def extract_ticket(text: str) -> Optional[str]:
    """Return the first ticket reference (e.g. ``PROJ-42``) found in ``text``.

    Only the first match is returned; a message mentioning several tickets is
    linked to the first one.
    """
    match = TICKET_PATTERN.search(text or "")
    if not match:
        return None
    return match.group("ticket")


def link_ticket(text: str, ticket: Optional[str], base_url: Optional[str]) -> str:
    """Rewrite the first occurrence of ``ticket`` into a Slack link to the tracker."""
    if not base_url or not ticket:
        return text
    host = base_url.rstrip("/")
    return text.replace(ticket, f"<{host}/browse/{ticket}|{ticket}>", 1)
