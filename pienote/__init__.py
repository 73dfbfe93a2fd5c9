"""
PIE note builder package.

Design intent:
- Turn structured health-office encounter answers into PIE narrative notes.
- Gate implausible clinical values behind explicit acknowledgment.
- Keep domain modules (catalog/validation/encounter/note/patterns) free of UI concerns.
"""
