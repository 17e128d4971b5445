# Character-class validation for OAuth2 request parameters.
# Created: 2026-10-19
#
# Grammars from RFC 6749 Appendix A, plus the generic URI scheme prefix from
# RFC 3986 section 3.

from __future__ import annotations

import re
from typing import Any

__all__ = ["nchar", "nqchar", "nqschar", "uchar", "uri", "vschar"]

_NCHAR = re.compile(r"[\-._A-Za-z0-9]+")
_NQCHAR = re.compile(r"[\x21\x23-\x5B\x5D-\x7E]+")
_NQSCHAR = re.compile(r"[\x20\x21\x23-\x5B\x5D-\x7E]+")
_UNICODECHARNOCRLF = re.compile("[\t\x20-\x7E\u0080-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]+")
_URI = re.compile(r"[a-zA-Z][a-zA-Z0-9+.\-]+:")
_VSCHAR = re.compile(r"[\x20-\x7E]+")


def _text(value: Any) -> str:
    # Form values may arrive as numbers from JSON-ish adapters.
    return value if isinstance(value, str) else str(value)


def nchar(value: Any) -> bool:
    """``grant_type`` names: ALPHA / DIGIT / "-" / "." / "_"."""
    return _NCHAR.fullmatch(_text(value)) is not None


def nqchar(value: Any) -> bool:
    """Printable ASCII except ``"`` and ``\\``."""
    return _NQCHAR.fullmatch(_text(value)) is not None


def nqschar(value: Any) -> bool:
    """Like :func:`nqchar` but spaces are allowed (scope lists)."""
    return _NQSCHAR.fullmatch(_text(value)) is not None


def uchar(value: Any) -> bool:
    """Any unicode character except CR and LF (usernames, passwords)."""
    return _UNICODECHARNOCRLF.fullmatch(_text(value)) is not None


def uri(value: Any) -> bool:
    """Loose URI shape check: a scheme followed by ``:``."""
    if value is None:
        return False
    return _URI.match(_text(value)) is not None


def vschar(value: Any) -> bool:
    """Visible ASCII plus space (codes, state, client ids)."""
    return _VSCHAR.fullmatch(_text(value)) is not None
