"""Operating-system parameter escaping.

Values that end up as arguments on a command line are escaped with one of
two rulesets, chosen by operating-system family:

* **windows** -- ``cmd.exe`` style, each unsafe character is prefixed
  with a caret (``^``).
* **posix** -- ``sh`` style, each unsafe character is prefixed with a
  backslash (``\\``).

A character is *safe* when it is an ASCII letter or digit, or when it is
in the codec's immune set (``-`` by default, so option-like tokens stay
readable).  Everything else, including every non-ASCII character, is
escaped.

The host family is an injectable value rather than a class hierarchy:
callers and tests can pass ``os_family=`` explicitly, and
:func:`current_os_family` is only consulted when they do not.
"""

from __future__ import annotations

import os
from typing import Callable

WINDOWS = "windows"
POSIX = "posix"
OS_FAMILIES = (WINDOWS, POSIX)

DEFAULT_IMMUNE = "-"

_ASCII_ALNUM = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
)


def current_os_family() -> str | None:
    """Classify the running interpreter's host as ``windows`` or ``posix``.

    Returns ``None`` for anything else (e.g. ``java`` on Jython).
    """
    if os.name == "nt":
        return WINDOWS
    if os.name == "posix":
        return POSIX
    return None


def _escape_with(prefix: str, text: str, immune: str) -> str:
    out: list[str] = []
    for ch in text:
        if ch in _ASCII_ALNUM or ch in immune:
            out.append(ch)
        else:
            out.append(prefix + ch)
    return "".join(out)


def windows_encode(text: str, immune: str = DEFAULT_IMMUNE) -> str:
    """Escape *text* for a Windows command line (``^`` prefix)."""
    return _escape_with("^", text, immune)


def unix_encode(text: str, immune: str = DEFAULT_IMMUNE) -> str:
    """Escape *text* for a POSIX shell command line (``\\`` prefix)."""
    return _escape_with("\\", text, immune)


CODECS: dict[str, Callable[[str, str], str]] = {
    WINDOWS: windows_encode,
    POSIX: unix_encode,
}


def os_parameter_encoder(params: object, os_family: str | None = None) -> str:
    """Encode operating-system parameters for the host's shell.

    Parameters
    ----------
    params : object
        The parameter value; converted with ``str()``.
    os_family : str | None
        ``"windows"`` or ``"posix"``.  Defaults to :func:`current_os_family`.

    Raises
    ------
    ValueError
        If *params* is ``None``.
    NotImplementedError
        If the operating-system family is neither Windows nor POSIX.
    """
    if params is None:
        raise ValueError("params must not be None")

    family = os_family if os_family is not None else current_os_family()
    codec = CODECS.get(family or "")
    if codec is None:
        raise NotImplementedError(
            f"Unsupported encoder for operating system: {family!r}"
        )
    return codec(str(params), DEFAULT_IMMUNE)
