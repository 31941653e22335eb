"""Best-effort answer extraction from structured backend stdout."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from agent_dispatch.providers.errors import (
    InvalidResponseFormatError,
    MissingAssistantMessageError,
)

PREVIEW_LIMIT = 200


def parse_agent_json(output: str, *, source: str = "Codex CLI") -> Any:
    """Parse backend stdout as one JSON document.

    Falls back to the substring starting at the last ``{`` to skip log noise
    printed ahead of the payload.
    """

    text = output.strip()
    if not text:
        raise InvalidResponseFormatError(
            f"{source} produced no output in --json mode",
            preview="",
        )
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    last_brace = text.rfind("{")
    if last_brace >= 0:
        try:
            return json.loads(text[last_brace:])
        except json.JSONDecodeError:
            pass

    preview = text[:PREVIEW_LIMIT]
    ellipsis = "…" if len(text) > PREVIEW_LIMIT else ""
    raise InvalidResponseFormatError(
        f"{source} emitted invalid JSON: {preview}{ellipsis}",
        preview=preview,
    )


def extract_assistant_text(payload: Any, *, source: str = "Codex CLI") -> str:
    """Return the first non-empty answer found by the ordered shape matchers."""

    if isinstance(payload, Mapping):
        for matcher in _SHAPE_MATCHERS:
            text = matcher(payload)
            if text:
                return text
    raise MissingAssistantMessageError(
        f"{source} JSON response did not include an assistant message",
    )


def flatten_content(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts = [part for part in (_segment_text(segment) for segment in value) if part]
        return "\n".join(parts) if parts else None
    if isinstance(value, Mapping):
        text = value.get("text")
        return text if isinstance(text, str) else None
    return None


def _segment_text(segment: Any) -> str | None:
    if isinstance(segment, str):
        return segment
    if isinstance(segment, Mapping):
        text = segment.get("text")
        return text if isinstance(text, str) else None
    return None


def _from_messages(payload: Mapping[str, Any]) -> str | None:
    messages = payload.get("messages")
    if not isinstance(messages, list):
        return None
    for entry in reversed(messages):
        if not isinstance(entry, Mapping) or entry.get("role") != "assistant":
            continue
        text = flatten_content(entry.get("content"))
        if text:
            return text
    return None


def _from_response_content(payload: Mapping[str, Any]) -> str | None:
    response = payload.get("response")
    if not isinstance(response, Mapping):
        return None
    return flatten_content(response.get("content"))


def _from_output(payload: Mapping[str, Any]) -> str | None:
    return flatten_content(payload.get("output"))


_SHAPE_MATCHERS: tuple[Callable[[Mapping[str, Any]], str | None], ...] = (
    _from_messages,
    _from_response_content,
    _from_output,
)
