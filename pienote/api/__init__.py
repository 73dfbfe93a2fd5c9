"""
API orchestration boundary for the PIE note builder.

Design intent:
- Expose thin, typed endpoints for catalog/validation/note/pattern flows.
- Keep request validation explicit and failure modes predictable.
"""
