from __future__ import annotations

"""
Text helpers shared by the per-category note composers.

Design intent:
- Keep sentence punctuation and whitespace deterministic.
- Option text is lower-cased when embedded mid-sentence; free text never is.
"""

import re
from typing import Mapping, Sequence

from pienote.catalog.problems import OTHER_SPECIFY, OTHER_SUFFIX

_WHITESPACE_RE = re.compile(r"\s+")
_REPEATED_PERIOD_RE = re.compile(r"\.(?:\s*\.)+")
_TIME_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::\d{2})?$")
_TRUTHY = {"1", "true", "t", "yes", "y", "on"}


def as_text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def is_checked(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


def ensure_terminal_punctuation(text: str) -> str:
    trimmed = text.strip()
    if not trimmed:
        return ""
    if trimmed[-1] in ".!?":
        return trimmed
    return f"{trimmed}."


def join_sentences(sentences: Sequence[str]) -> str:
    """Terminate each sentence with a period when it lacks punctuation, then join with spaces."""
    parts = [ensure_terminal_punctuation(item) for item in sentences if item and item.strip()]
    return " ".join(parts)


def normalize_narrative(text: str) -> str:
    collapsed = _WHITESPACE_RE.sub(" ", text).strip()
    return _REPEATED_PERIOD_RE.sub(".", collapsed)


def capitalize_first(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


def format_time(value: str) -> str:
    """Convert 24-hour "HH:MM" to 12-hour "H:MM AM/PM"."""
    text = str(value or "").strip()
    if not text:
        return ""
    match = _TIME_RE.match(text)
    if not match:
        raise ValueError(f"Invalid time value: {value!r}")
    hour = int(match.group("hour"))
    minute = match.group("minute")
    if hour > 23 or int(minute) > 59:
        raise ValueError(f"Invalid time value: {value!r}")

    suffix = "PM" if hour >= 12 else "AM"
    if hour == 0:
        hour12 = 12
    elif hour > 12:
        hour12 = hour - 12
    else:
        hour12 = hour
    return f"{hour12}:{minute} {suffix}"


def resolve_display_value(field_id: str, value: object, values: Mapping[str, object]) -> str:
    """Swap an "Other (specify)" choice for its companion free text when one was entered."""
    text = as_text(value)
    if OTHER_SPECIFY in text:
        companion = as_text(values.get(field_id + OTHER_SUFFIX))
        if companion:
            return companion
    return text


def embedded_value(field_id: str, values: Mapping[str, object]) -> str:
    raw = as_text(values.get(field_id))
    resolved = resolve_display_value(field_id, raw, values)
    if resolved != raw:
        return resolved
    return raw.lower()
