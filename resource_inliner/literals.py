"""Parser for the array literal of a ``styleUrls`` declaration."""

from __future__ import annotations

import re
from typing import List

from resource_inliner.errors import MalformedLiteralError

_WHITESPACE_RE = re.compile(r"\s*")
_PATH_RE = re.compile(r"'([^'\\\r\n]+)'")


def parse_style_urls(literal: str) -> List[str]:
    """Parse ``['a.css', 'b.less']`` into an ordered list of paths.

    Accepted grammar: ``[`` then zero or more single-quoted paths separated
    by commas (a trailing comma is allowed) then ``]``, with whitespace and
    newlines anywhere between tokens. Anything else raises
    MalformedLiteralError.
    """
    pos = _skip_whitespace(literal, 0)
    if not literal.startswith("[", pos):
        raise MalformedLiteralError(literal, pos)
    pos = _skip_whitespace(literal, pos + 1)

    paths: List[str] = []
    while not literal.startswith("]", pos):
        match = _PATH_RE.match(literal, pos)
        if match is None:
            raise MalformedLiteralError(literal, pos)
        paths.append(match.group(1))
        pos = _skip_whitespace(literal, match.end())

        if literal.startswith(",", pos):
            pos = _skip_whitespace(literal, pos + 1)
        elif not literal.startswith("]", pos):
            raise MalformedLiteralError(literal, pos)

    pos = _skip_whitespace(literal, pos + 1)
    if pos != len(literal):
        raise MalformedLiteralError(literal, pos)
    return paths


def _skip_whitespace(text: str, pos: int) -> int:
    return _WHITESPACE_RE.match(text, pos).end()
