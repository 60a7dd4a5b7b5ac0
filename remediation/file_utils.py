"""Path containment and normalization helpers (CWE-22 / CWE-59).

:func:`is_outside` answers "does this path escape that directory?" on
*canonical* paths, with ``..`` segments and symbolic links resolved, so
neither traversal sequences nor symlinks pointing elsewhere can slip
past a plain string comparison.

:func:`normalize` is purely lexical.  It never touches the filesystem, so
it can be applied to paths that do not exist yet.
"""

from __future__ import annotations

import errno
import os
import re
from typing import Callable

PathResolver = Callable[[str], str]

_SEPARATORS = "/\\"
_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def canonical_path(path: str | os.PathLike) -> str:
    """Return the absolute path with every symbolic link resolved.

    Relative paths are resolved against the current working directory.
    The path does not have to exist: the existing part is resolved and the
    rest is appended as-is.

    Raises
    ------
    OSError
        On a symbolic-link loop, a permission failure, or any other error
        from the underlying ``lstat`` / ``readlink`` calls.
    """
    try:
        return os.path.realpath(path, strict=True)
    except (FileNotFoundError, NotADirectoryError):
        pass
    # Non-strict realpath follows dangling links but stops silently at a
    # loop, leaving the looping link in the result.
    resolved = os.path.realpath(path)
    ancestor = resolved
    while True:
        if os.path.islink(ancestor):
            raise OSError(errno.ELOOP, os.strerror(errno.ELOOP), os.fspath(path))
        parent = os.path.dirname(ancestor)
        if parent == ancestor:
            return resolved
        ancestor = parent


def _resolve(resolver: PathResolver, path: str | os.PathLike) -> str:
    try:
        return resolver(os.fspath(path))
    except RuntimeError as exc:
        # Older pathlib-based resolvers report loops as RuntimeError.
        raise OSError(errno.ELOOP, f"Symlink loop while resolving {path!s}: {exc}") from exc


def is_outside(
    file_path: str | os.PathLike,
    base_dir_path: str | os.PathLike,
    resolver: PathResolver = canonical_path,
) -> bool:
    """Check whether *file_path* resolves outside *base_dir_path*.

    Parameters
    ----------
    file_path : str | os.PathLike
        The path to check.
    base_dir_path : str | os.PathLike
        The directory it is expected to live in.
    resolver : Callable[[str], str]
        Canonicalization function; defaults to :func:`canonical_path`.

    Returns
    -------
    bool
        ``True`` if the canonical file path is neither the base directory
        nor below it, ``False`` otherwise.  The comparison is aligned on
        path segments, so ``/srv/app-data`` is outside ``/srv/app``.

    Raises
    ------
    ValueError
        If either argument is ``None``.
    OSError
        If either path cannot be canonicalized.
    """
    if file_path is None:
        raise ValueError("file_path must not be None")
    if base_dir_path is None:
        raise ValueError("base_dir_path must not be None")

    file_canonical = os.path.normcase(_resolve(resolver, file_path))
    base_canonical = os.path.normcase(_resolve(resolver, base_dir_path))

    if file_canonical == base_canonical:
        return False
    prefix = base_canonical if base_canonical.endswith(os.sep) else base_canonical + os.sep
    return not file_canonical.startswith(prefix)


def _split_prefix(path: str) -> tuple[str, str]:
    """Split *path* into ``(prefix, remainder)``.

    Recognised prefixes: UNC host (``\\\\server\\``), drive (``C:`` or
    ``C:\\``), home (``~`` or ``~user\\``) and a single root separator.
    The prefix is returned with ``os.sep`` separators.
    """
    if len(path) >= 2 and path[0] in _SEPARATORS and path[1] in _SEPARATORS:
        rest = path[2:]
        end = next((i for i, ch in enumerate(rest) if ch in _SEPARATORS), len(rest))
        host = rest[:end]
        if host and host not in (".", ".."):
            return os.sep * 2 + host + os.sep, rest[end + 1:]
        return os.sep, path.lstrip(_SEPARATORS)
    if _DRIVE_RE.match(path):
        if len(path) > 2 and path[2] in _SEPARATORS:
            return path[:2].upper() + os.sep, path[3:]
        return path[:2].upper(), path[2:]
    if path.startswith("~"):
        end = next((i for i, ch in enumerate(path) if ch in _SEPARATORS), len(path))
        return path[:end] + os.sep, path[end + 1:]
    if path[0] in _SEPARATORS:
        return os.sep, path[1:]
    return "", path


def normalize(path: str | None) -> str | None:
    """Collapse ``.`` and ``..`` segments without touching the filesystem.

    Both ``/`` and ``\\`` are accepted as separators; the result uses
    ``os.sep``.  Repeated separators are merged and a trailing separator is
    kept.  Returns ``None`` for ``None`` and for paths whose ``..``
    segments climb above their start or root::

        normalize("./In/../Valid/Un/../Normalized/./Path")  # Valid/Normalized/Path
        normalize("foo/../../bar")                          # None
    """
    if path is None:
        return None
    if not path:
        return path

    prefix, remainder = _split_prefix(path)
    raw_segments = re.split(r"[/\\]", remainder) if remainder else []

    segments: list[str] = []
    for segment in raw_segments:
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                return None
            segments.pop()
            continue
        segments.append(segment)

    trailing = bool(raw_segments) and raw_segments[-1] in ("", ".", "..")
    body = os.sep.join(segments)
    if body and trailing:
        body += os.sep
    return prefix + body
