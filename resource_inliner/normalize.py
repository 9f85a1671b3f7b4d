"""Whitespace normalization for text embedded in one-line string literals."""

import re

_LINE_BREAKS_RE = re.compile(r"([\n\r]\s*)+")
# A quote preceded by an even number of backslashes (zero included) is unescaped.
_UNESCAPED_QUOTE_RE = re.compile(r'(?<!\\)((?:\\\\)*)"')


def normalize_whitespace(text: str) -> str:
    """Collapse line breaks plus indentation into single spaces and escape quotes.

    A quote behind an odd run of backslashes is already escaped and is left
    alone, so applying the function twice gives the same result as once.
    """
    collapsed = _LINE_BREAKS_RE.sub(" ", text)
    return _UNESCAPED_QUOTE_RE.sub(r'\1\\"', collapsed)
