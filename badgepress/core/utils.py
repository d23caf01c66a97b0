"""Text helpers shared by the badge modules"""

import re

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_LINE_BREAK_RE = re.compile(r"[\r\n]")
_NUMERIC_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def strip_tags(value: str | None) -> str:
    """Remove HTML comments and tags, keep the text between them"""
    if not value:
        return ""
    return _TAG_RE.sub("", _COMMENT_RE.sub("", value))


def strip_line_breaks(value: str) -> str:
    return _LINE_BREAK_RE.sub("", value)


def is_numeric(value: str) -> bool:
    """Numeric strings in the loose sense: "12", "-3", "1.5", "2e3"."""
    return bool(_NUMERIC_RE.fullmatch(value.strip()))
