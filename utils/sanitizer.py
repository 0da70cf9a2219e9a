"""
Input Sanitization Module

Cleans free text typed by family members (comments, skip reasons, guest
notes, recipe names) before it is stored and shown to the rest of the family.
"""

import html
import re

from constants import MAX_LENGTHS

CONTROL_CHARS_RE = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')


def sanitize_text(text, max_length=10000):
    """
    Sanitize text by HTML-escaping special characters.

    Newlines are preserved; other control characters are dropped. The
    length limit applies to the text as typed, before escaping, so an
    escaped entity is never cut in half.

    Args:
        text: The text to sanitize (can be None)
        max_length: Maximum allowed length before escaping (default 10000)

    Returns:
        Sanitized string, truncated if necessary
    """
    if text is None:
        return ''

    if not isinstance(text, str):
        text = str(text)

    text = CONTROL_CHARS_RE.sub('', text.strip())

    if len(text) > max_length:
        text = text[:max_length]

    return html.escape(text)


def sanitize_note(note, max_length=200):
    """Sanitize a short single-line note (skip reason, guest note). Empty -> None."""
    if not note:
        return None

    note = sanitize_text(note, max_length=max_length)
    note = re.sub(r'\s+', ' ', note)
    return note or None


def sanitize_recipe_name(name, default, max_length=MAX_LENGTHS['recipe_name']):
    """
    Sanitize a recipe name for safe storage and display.

    Args:
        name: The recipe name to sanitize
        default: Name used when nothing is left after cleaning
        max_length: Maximum length before escaping
    """
    if not name or not isinstance(name, str):
        return default[:max_length]

    name = re.sub(r'\s+', ' ', CONTROL_CHARS_RE.sub('', name.strip()))

    if len(name) > max_length:
        name = name[:max_length-3] + '...'

    return html.escape(name) or default[:max_length]
