"""Context-aware output encoders.

Each public function takes an arbitrary value, converts it with ``str()``
and returns a new string that is safe to embed in one specific output
context.  The functions are pure and independent of each other; the
grammar of each context is kept in its own translation table so it can be
audited on its own.

Contexts
--------
log
    ``\\n``, ``\\r`` and ``\\t`` become ``_``; ``<`` / ``>`` become
    ``&lt`` / ``&gt`` (CWE-117).
crlf-basic / crlf-apache
    Delete line breaks (CWE-93 / CWE-113).  The Apache variant also deletes
    literal ``\\n`` / ``\\r`` escapes, ``%0d`` / ``%0a`` in either case and
    the NAK control byte.
html-content / html-attribute / html-unquoted-attribute
    Entity encoding for element text, quoted attribute values and unquoted
    attribute values (CWE-79).
javascript-block / javascript / javascript-attribute
    Backslash escapes for ``<script>`` bodies, quoted string literals in
    any context, and quoted literals inside event-handler attributes.
css-string / css-url
    CSS hex escapes for quoted strings and ``url(...)`` tokens.
uri-component
    UTF-8 percent-encoding of everything outside the unreserved set.

The operating-system parameter encoder lives in :mod:`remediation.os_codec`
because it depends on the host platform.

Every function raises :class:`ValueError` when given ``None``.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable
from urllib.parse import quote

from markupsafe import escape


def _require_text(content: object, name: str = "content") -> str:
    if content is None:
        raise ValueError(f"{name} must not be None")
    return str(content)


# -- code point classes ------------------------------------------------------

def _is_surrogate(cp: int) -> bool:
    return 0xD800 <= cp <= 0xDFFF


def _is_noncharacter(cp: int) -> bool:
    return 0xFDD0 <= cp <= 0xFDEF or (cp & 0xFFFE) == 0xFFFE


def _is_invalid_markup(cp: int) -> bool:
    """Code points that must never reach an HTML or XML document.

    C0 controls other than tab / LF / CR, DEL, the C1 block except NEL,
    lone surrogates and Unicode non-characters.
    """
    if cp < 0x20:
        return cp not in (0x09, 0x0A, 0x0D)
    if 0x7F <= cp <= 0x9F:
        return cp != 0x85
    return _is_surrogate(cp) or _is_noncharacter(cp)


class _Table(dict):
    """``str.translate`` table with a computed fallback for invalid code points.

    Explicit entries win.  Anything else for which *is_invalid* is true is
    replaced with *replacement*; all other characters pass through.
    """

    def __init__(
        self,
        entries: dict[int, str],
        is_invalid: Callable[[int], bool],
        replacement: str,
    ) -> None:
        super().__init__(entries)
        self._is_invalid = is_invalid
        self._replacement = replacement

    def __missing__(self, cp: int) -> str:
        if self._is_invalid(cp):
            return self._replacement
        raise LookupError(cp)


# Line and paragraph separators are valid text but act as line terminators
# in some parsers, so they are always written as references.
_LINE_TERMINATOR_REFS = {
    0x85: "&#133;",
    0x2028: "&#8232;",
    0x2029: "&#8233;",
}


# -- logs and headers --------------------------------------------------------

_LOG_TABLE = str.maketrans({
    "\n": "_",
    "\r": "_",
    "\t": "_",
    "<": "&lt",
    ">": "&gt",
})

_CRLF_BASIC_TABLE = str.maketrans("", "", "\n\r")

# Order matters: at a given position the first listed sequence wins.
_CRLF_APACHE_SEQUENCES = (
    "\n", "\\n", "\r", "\\r", "%0d", "%0D", "%0a", "%0A", "\x15",
)
_CRLF_APACHE_RE = re.compile("|".join(re.escape(s) for s in _CRLF_APACHE_SEQUENCES))


def log_content_encoder(content: object) -> str:
    """Encode a value for inclusion in a single log line."""
    return _require_text(content).translate(_LOG_TABLE)


def multi_log_content_encoder(contents: Iterable[object]) -> list[str]:
    """Apply :func:`log_content_encoder` to every element, keeping order.

    Raises :class:`ValueError` if *contents* or any element is ``None``.
    """
    if contents is None:
        raise ValueError("contents must not be None")
    return [log_content_encoder(content) for content in contents]


def crlf_basic_encoder(content: object) -> str:
    """Delete every carriage return and line feed."""
    return _require_text(content).translate(_CRLF_BASIC_TABLE)


def crlf_apache_encoder(content: object) -> str:
    """Delete raw, backslash-escaped and percent-encoded CR/LF sequences.

    Deleting a sequence can join its neighbours into a new one
    (``%0%0dd`` -> ``%0d``), so the pass is repeated until nothing changes.
    """
    text = _require_text(content)
    while True:
        stripped = _CRLF_APACHE_RE.sub("", text)
        if stripped == text:
            return text
        text = stripped


# -- HTML --------------------------------------------------------------------

_HTML_CONTENT_TABLE = _Table(
    {
        ord("&"): "&amp;",
        ord("<"): "&lt;",
        ord(">"): "&gt;",
        **_LINE_TERMINATOR_REFS,
    },
    _is_invalid_markup,
    " ",
)

_HTML_INVALID_TABLE = _Table({}, _is_invalid_markup, " ")
_HTML_LINE_TERMINATOR_TABLE = dict(_LINE_TERMINATOR_REFS)

_HTML_UNQUOTED_ATTRIBUTE_TABLE = _Table(
    {
        ord("\t"): "&#9;",
        ord("\n"): "&#10;",
        ord("\f"): "&#12;",
        ord("\r"): "&#13;",
        ord(" "): "&#32;",
        ord('"'): "&#34;",
        ord("&"): "&amp;",
        ord("'"): "&#39;",
        ord("/"): "&#47;",
        ord("<"): "&lt;",
        ord("="): "&#61;",
        ord(">"): "&gt;",
        ord("`"): "&#96;",
        **_LINE_TERMINATOR_REFS,
    },
    _is_invalid_markup,
    "-",
)


def for_html_content(content: object) -> str:
    """Encode for HTML element text.

    Quotes are left alone, so the result is *not* safe inside attribute
    values; use :func:`for_html_attribute` there.
    """
    return _require_text(content).translate(_HTML_CONTENT_TABLE)


def for_html_attribute(content: object) -> str:
    """Encode for a quoted HTML attribute value (single or double quotes)."""
    text = _require_text(content).translate(_HTML_INVALID_TABLE)
    return str(escape(text)).translate(_HTML_LINE_TERMINATOR_TABLE)


def for_html_unquoted_attribute(content: object) -> str:
    """Encode for an HTML attribute value written without quotes.

    Prefer a quoted attribute with :func:`for_html_attribute`.  No
    delimiter is added: the caller must make sure the value is followed by
    a boundary, usually a space, and not by another unsafe character.
    """
    return _require_text(content).translate(_HTML_UNQUOTED_ATTRIBUTE_TABLE)


# -- JavaScript --------------------------------------------------------------

_JS_BLOCK = "block"
_JS_STRING = "string"
_JS_ATTRIBUTE = "attribute"


def _javascript_table(mode: str) -> _Table:
    entries = {cp: f"\\x{cp:02x}" for cp in range(0x20)}
    entries.update({
        ord("\b"): "\\b",
        ord("\t"): "\\t",
        ord("\n"): "\\n",
        ord("\f"): "\\f",
        ord("\r"): "\\r",
        ord("\\"): "\\\\",
        0x2028: "\\u2028",
        0x2029: "\\u2029",
    })
    if mode == _JS_BLOCK:
        entries[ord("'")] = "\\'"
        entries[ord('"')] = '\\"'
    else:
        # Hex forms, so HTML attribute decoding cannot yield a raw quote.
        entries[ord("'")] = "\\x27"
        entries[ord('"')] = "\\x22"
        entries[ord("&")] = "\\x26"
    if mode != _JS_ATTRIBUTE:
        # Breaks up "</script".
        entries[ord("/")] = "\\/"
    return _Table(entries, _is_surrogate, " ")


_JS_BLOCK_TABLE = _javascript_table(_JS_BLOCK)
_JS_STRING_TABLE = _javascript_table(_JS_STRING)
_JS_ATTRIBUTE_TABLE = _javascript_table(_JS_ATTRIBUTE)


def for_javascript_block(content: object) -> str:
    """Encode for a JavaScript string literal inside an HTML ``<script>`` block.

    Quotes become ``\\'`` / ``\\"``, which is not safe inside HTML
    attributes.
    """
    return _require_text(content).translate(_JS_BLOCK_TABLE)


def for_javascript(content: object) -> str:
    """Encode for a JavaScript string literal in any context.

    Safe in ``<script>`` blocks, event-handler attributes such as
    ``onclick``, JSON and standalone JavaScript source.  The caller must
    supply the surrounding quote characters.
    """
    return _require_text(content).translate(_JS_STRING_TABLE)


def for_javascript_attribute(content: object) -> str:
    """Encode for a JavaScript string literal inside an HTML event-handler attribute.

    Same as :func:`for_javascript` except ``/`` is left unescaped, so the
    result is NOT safe inside ``<script>`` blocks.  The caller must supply
    the surrounding quote characters.
    """
    return _require_text(content).translate(_JS_ATTRIBUTE_TABLE)


# -- CSS ---------------------------------------------------------------------

_CSS_STRING_UNSAFE = frozenset("\"'\\<>&")
_CSS_URL_UNSAFE = _CSS_STRING_UNSAFE | frozenset("() ")
_CSS_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_CSS_WHITESPACE = frozenset(" \t\n\f\r")


def _css_needs_escape(cp: int) -> bool:
    return cp < 0x20 or 0x7F <= cp <= 0x9F or cp in (0x2028, 0x2029)


def _encode_css(text: str, unsafe: frozenset[str]) -> str:
    out: list[str] = []
    pending_escape = False
    for ch in text:
        cp = ord(ch)
        if _is_surrogate(cp) or _is_noncharacter(cp):
            piece, escaped = "_", False
        elif ch in unsafe or _css_needs_escape(cp):
            piece, escaped = f"\\{cp:x}", True
        else:
            piece, escaped = ch, False
        # A hex escape swallows following hex digits and one whitespace.
        if pending_escape and not escaped and (ch in _CSS_HEX_DIGITS or ch in _CSS_WHITESPACE):
            out.append(" ")
        out.append(piece)
        pending_escape = escaped
    return "".join(out)


def for_css_string(content: object) -> str:
    """Encode for a quoted CSS string in a style block or ``style`` attribute."""
    return _encode_css(_require_text(content), _CSS_STRING_UNSAFE)


def for_css_url(content: object) -> str:
    """Encode for the token between ``url(`` and ``)``.

    Only the lexical safety of the token is handled; whether the URL itself
    is safe to load (scheme, host) must be validated separately.
    """
    return _encode_css(_require_text(content), _CSS_URL_UNSAFE)


# -- URI ---------------------------------------------------------------------

_SURROGATE_TABLE = _Table({}, _is_surrogate, "\ufffd")


def for_uri_component(content: object) -> str:
    """Percent-encode a single URI component (path segment, query name or value).

    Only ``A-Z a-z 0-9 - . _ ~`` are left as-is, so ``/``, ``?``, ``&``,
    ``=`` and ``#`` cannot end the component early.
    """
    return quote(_require_text(content).translate(_SURROGATE_TABLE), safe="")


ENCODERS: dict[str, Callable[[object], str]] = {
    "log": log_content_encoder,
    "crlf-basic": crlf_basic_encoder,
    "crlf-apache": crlf_apache_encoder,
    "html-content": for_html_content,
    "html-attribute": for_html_attribute,
    "html-unquoted-attribute": for_html_unquoted_attribute,
    "javascript-block": for_javascript_block,
    "javascript": for_javascript,
    "javascript-attribute": for_javascript_attribute,
    "css-string": for_css_string,
    "css-url": for_css_url,
    "uri-component": for_uri_component,
}


def encode(context: str, content: object) -> str:
    """Encode *content* for the output context named by *context*.

    Raises :class:`KeyError` for an unknown context tag.
    """
    try:
        encoder = ENCODERS[context]
    except KeyError:
        raise KeyError(f"Unknown output context: {context!r}") from None
    return encoder(content)
