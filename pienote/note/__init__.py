"""
Note composition boundary.

Design intent:
- Turn encounter state into PIE narrative text.
- Keep rendering deterministic and nurse-in-the-loop.
"""
from .draft import DraftNote, NoteParagraphs, build_note_draft, compose_note
from .formatting import format_time, resolve_display_value

__all__ = [
    "DraftNote",
    "NoteParagraphs",
    "build_note_draft",
    "compose_note",
    "format_time",
    "resolve_display_value",
]
