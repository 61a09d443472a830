"""Parsing for LLM replies that were asked to be structured data."""
from __future__ import annotations

import json
from typing import Any, Callable, TypeVar

from loguru import logger

from app.errors import MalformedStructuredReply

T = TypeVar("T")

_MISSING: Any = object()

_BRACKETS = {dict: ("{", "}"), list: ("[", "]")}


def _strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    parts = text.split("```")
    if len(parts) >= 2:
        text = parts[1]
    if text.lower().startswith("json"):
        text = text[4:]
    return text.strip()


def _locate_json(text: str, expected_type: type) -> str:
    opener, closer = _BRACKETS.get(expected_type, (None, None))
    if opener is None:
        return text
    start = text.find(opener)
    end = text.rfind(closer)
    if start < 0 or end <= start:
        raise MalformedStructuredReply(text, f"no JSON {expected_type.__name__} found")
    return text[start : end + 1]


def parse_structured_reply(
    raw_text: str | None,
    expected_type: type,
    *,
    fallback: Any = _MISSING,
    validate: Callable[[Any], T] | None = None,
) -> Any:
    """Parse ``raw_text`` as JSON of ``expected_type``.

    Code fences and chatter around the JSON value are tolerated. ``validate``
    may coerce the parsed value or raise ``ValueError``/``TypeError`` to
    reject it. When parsing fails, ``fallback`` is returned if one was given;
    otherwise ``MalformedStructuredReply`` is raised.
    """
    try:
        text = _strip_code_fence((raw_text or "").strip())
        if not text:
            raise MalformedStructuredReply(raw_text or "", "empty reply")
        try:
            parsed = json.loads(_locate_json(text, expected_type))
        except json.JSONDecodeError as exc:
            raise MalformedStructuredReply(text, f"invalid JSON: {exc.msg}") from exc
        if not isinstance(parsed, expected_type):
            raise MalformedStructuredReply(
                text, f"expected {expected_type.__name__}, got {type(parsed).__name__}"
            )
        if validate is not None:
            try:
                parsed = validate(parsed)
            except (TypeError, ValueError) as exc:
                raise MalformedStructuredReply(text, str(exc)) from exc
        return parsed
    except MalformedStructuredReply as exc:
        if fallback is _MISSING:
            raise
        logger.warning(f"Structured reply rejected ({exc}); using fallback")
        return fallback
