"""
Helpers for embedding node names into identifiers and regular expressions.
"""

from __future__ import annotations

import re

_DOT_NOTATION_BANNED = re.compile(r"^\d|[^A-Za-z0-9_]")
_BACKSLASH_ESCAPABLE = re.compile(r"[.*+?^${}()|\[\]\\]")
_NOT_IDENTIFIER = re.compile(r"[^A-Za-z0-9_$]")


def has_dot_notation_banned_char(name: str) -> bool:
    """True if `name` cannot be written as `$node.<name>`."""
    return _DOT_NOTATION_BANNED.search(name) is not None


def backslash_escape(name: str) -> str:
    """Escape regex metacharacters so `name` matches only itself."""
    return _BACKSLASH_ESCAPABLE.sub(lambda m: "\\" + m.group(0), name)


def dollar_escape(name: str) -> str:
    """Double every `$` so `name` survives as a JavaScript-style replacement string."""
    return name.replace("$", "$$")


def sanitize_identifier(name: str) -> str:
    """
    Turn a node name into a fragment of a variable name.

    Spaces become underscores; any other character outside [A-Za-z0-9_$] is
    dropped. "B B" -> "B_B", "w.e,i" -> "wei".
    """
    return _NOT_IDENTIFIER.sub("", name.replace(" ", "_"))


def single_quote_escape(name: str) -> str:
    """Escape `name` for use inside a single-quoted JavaScript string."""
    return name.replace("\\", "\\\\").replace("'", "\\'")
