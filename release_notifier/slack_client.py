from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import requests
from jsonschema import Draft7Validator

from release_notifier.errors import DispatchError
from release_notifier.slack_message import ComposedMessage

SCHEMA_PATH = Path(__file__).parent / "schemas" / "slack-message-schema.json"
REQUEST_TIMEOUT_SECONDS = 30


@lru_cache(maxsize=1)
def _validator() -> Draft7Validator:
    return Draft7Validator(json.loads(SCHEMA_PATH.read_text(encoding="utf-8")))


def validate_payload(payload: Dict[str, Any]) -> None:
    errors = sorted(_validator().iter_errors(payload), key=lambda error: list(error.path))
    if errors:
        details = "; ".join(f"{list(error.path)}: {error.message}" for error in errors)
        raise DispatchError(f"Slack message failed schema validation: {details}")


def post_message(webhook_url: str, message: ComposedMessage) -> None:
    """POST ``message`` to a Slack incoming webhook, raising ``DispatchError`` on failure."""
    payload = message.to_payload()
    validate_payload(payload)
    try:
        resp = requests.post(webhook_url, json=payload, timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise DispatchError(f"Failed to post to Slack: {exc}") from exc
    if not resp.ok:
        raise DispatchError(f"Failed to post to Slack: {resp.status_code} {resp.text}")
