"""
Reference syntaxes that point expressions at another node.

Supports:
- $("Name") / $('Name')
- $node["Name"] / $node['Name']
- $node.Name (only for names usable in dot notation)
- $items("Name", ...) / $items('Name', ...)

Each syntax is one AccessPattern. The same patterns drive node renaming
(apply_access_patterns) and reference scanning (see reference_scanner).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Callable

from .identifiers import backslash_escape, has_dot_notation_banned_char


class AccessKind(str, Enum):
    """Reference syntax a match was written in."""

    DOLLAR_CALL = "dollar_call"
    NODE_BRACKET = "node_bracket"
    NODE_DOT = "node_dot"
    ITEMS_CALL = "items_call"


@dataclass(frozen=True)
class AccessPattern:
    """One reference syntax: how to find it and how to write it back."""

    kind: AccessKind
    # Cheap substring test before compiling anything
    check: str
    # escaped name -> regex source matching the reference head
    build: Callable[[str], str]
    # (match, new name) -> replacement text for the whole match
    render: Callable[[re.Match[str], str], str]
    # Predicate on the *old* name; False means the syntax cannot spell it
    applies_to: Callable[[str], bool] = lambda name: True

    def compile(self, name: str) -> re.Pattern[str]:
        return _compile(self.build(backslash_escape(name)))


@lru_cache(maxsize=1024)
def _compile(source: str) -> re.Pattern[str]:
    return re.compile(source)


def _render_node_dot(match: re.Match[str], new_name: str) -> str:
    if has_dot_notation_banned_char(new_name):
        return f'$node["{new_name}"]'
    return f"$node.{new_name}"


ACCESS_PATTERNS: tuple[AccessPattern, ...] = (
    AccessPattern(
        kind=AccessKind.DOLLAR_CALL,
        check="$(",
        build=lambda n: rf"\$\((['\"]){n}\1\)",
        render=lambda m, new: f"$({m.group(1)}{new}{m.group(1)})",
    ),
    AccessPattern(
        kind=AccessKind.NODE_BRACKET,
        check="$node[",
        build=lambda n: rf"\$node\[(['\"]){n}\1\]",
        render=lambda m, new: f"$node[{m.group(1)}{new}{m.group(1)}]",
    ),
    AccessPattern(
        kind=AccessKind.NODE_DOT,
        check="$node.",
        build=lambda n: rf"\$node\.{n}(?![A-Za-z0-9_$])",
        render=_render_node_dot,
        applies_to=lambda name: not has_dot_notation_banned_char(name),
    ),
    AccessPattern(
        kind=AccessKind.ITEMS_CALL,
        check="$items(",
        build=lambda n: rf"\$items\((['\"]){n}\1(?=\s*[,)])",
        render=lambda m, new: f"$items({m.group(1)}{new}{m.group(1)}",
    ),
)


def apply_access_patterns(expression: str, previous_name: str, new_name: str) -> str:
    """
    Rewrite every reference to `previous_name` in `expression` to `new_name`.

    Quote style is preserved. Strings equal to the node name that are not in
    one of the reference syntaxes are left alone.
    """
    # Skip the regex work when the name cannot be present at all
    if previous_name not in expression:
        return expression

    for pattern in ACCESS_PATTERNS:
        if pattern.check not in expression or not pattern.applies_to(previous_name):
            continue
        expression = pattern.compile(previous_name).sub(
            lambda m, p=pattern: p.render(m, new_name), expression
        )

    return expression


def references_node(expression: str, name: str) -> bool:
    """True if `expression` reaches `name` through any reference syntax."""
    if name not in expression:
        return False
    return any(
        pattern.check in expression
        and pattern.applies_to(name)
        and pattern.compile(name).search(expression) is not None
        for pattern in ACCESS_PATTERNS
    )
