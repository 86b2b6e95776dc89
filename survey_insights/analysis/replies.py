"""Pull structured JSON out of free-form chat replies.

Models wrap JSON in prose or code fences often enough that every helper
searches for the first array/object instead of parsing the whole reply.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping

_ARRAY_RE = re.compile(r"\[[^\]]*\]")  # first flat JSON array
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")  # outermost JSON object


class ReplyFormatError(ValueError):
    """Raised when a model reply does not contain the expected JSON."""


def reply_content(response: Mapping[str, Any]) -> str:
    """Return the first choice's message text from a ``chat_completion`` dict."""
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ReplyFormatError("Model response missing expected fields") from exc
    return content or ""


def string_array(content: str) -> List[str]:
    match = _ARRAY_RE.search(content)
    if not match:
        raise ReplyFormatError("Model response did not contain a JSON array")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ReplyFormatError("Failed to parse JSON array from model response") from exc
    if not all(isinstance(item, str) for item in data):
        raise ReplyFormatError("JSON payload was not an array of strings")
    return data


def json_object(content: str) -> Dict[str, Any]:
    match = _OBJECT_RE.search(content)
    if not match:
        raise ReplyFormatError("Model response did not contain a JSON object")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ReplyFormatError("Failed to parse JSON object from model response") from exc
    if not isinstance(data, dict):
        raise ReplyFormatError("JSON payload was not an object")
    return data
