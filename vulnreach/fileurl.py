"""Conversion between ``file`` URLs and absolute file paths."""

from __future__ import annotations

import os
from typing import Optional, Tuple
from urllib.parse import quote, unquote, urlsplit

_PATH_SAFE = "/$&+,:;=@"


class FileURLError(ValueError):
    """A URL or path cannot be converted."""


def _not_absolute() -> FileURLError:
    return FileURLError("path is not absolute")


def _is_slash(c: str) -> bool:
    return c in ("/", "\\")


def _volume_name_len(path: str) -> int:
    if len(path) < 2:
        return 0
    c = path[0]
    if path[1] == ":" and c.isascii() and c.isalpha():
        return 2
    length = len(path)
    if length >= 5 and _is_slash(path[0]) and _is_slash(path[1]) and not _is_slash(path[2]) and path[2] != ".":
        n = 3
        while n < length - 1:
            if _is_slash(path[n]):
                n += 1
                if not _is_slash(path[n]):
                    if path[n] == ".":
                        break
                    while n < length and not _is_slash(path[n]):
                        n += 1
                    return n
                break
            n += 1
    return 0


def _volume_name(path: str, windows: bool) -> str:
    return path[: _volume_name_len(path)] if windows else ""


def _is_abs(path: str, windows: bool) -> bool:
    if not windows:
        return path.startswith("/")
    n = _volume_name_len(path)
    if n == 0:
        return False
    if _is_slash(path[0]) and _is_slash(path[1]):
        return True
    rest = path[n:]
    return bool(rest) and _is_slash(rest[0])


def _from_slash(path: str, windows: bool) -> str:
    return path.replace("/", "\\") if windows else path


def _to_slash(path: str, windows: bool) -> str:
    return path.replace("\\", "/") if windows else path


def _resolve_windows(windows: Optional[bool]) -> bool:
    return os.name == "nt" if windows is None else windows


def _split(url: str) -> Tuple[str, str, str, str]:
    """Return (scheme, host, path, opaque) the way a generic URL parser sees them."""
    scheme = urlsplit(url).scheme
    rest = url.split(":", 1)[1] if scheme else url
    rest = rest.split("#", 1)[0].split("?", 1)[0]
    if scheme and not rest.startswith("/"):
        return scheme, "", "", rest
    parts = urlsplit(url)
    host = parts.netloc.rpartition("@")[2]
    return scheme, host, unquote(parts.path), ""


def _check_abs(path: str, windows: bool) -> str:
    if not _is_abs(path, windows):
        raise _not_absolute()
    return path


def url_to_file_path(url: str, windows: Optional[bool] = None) -> str:
    """Convert a ``file`` URL to an absolute file path.

    ``windows`` selects Windows path rules; by default the host platform's.
    """
    windows = _resolve_windows(windows)
    scheme, host, path, opaque = _split(url)
    if scheme != "file":
        raise FileURLError("non-file URL")

    if not path:
        if host or not opaque:
            raise FileURLError("file URL missing path")
        return _check_abs(_from_slash(opaque, windows), windows)

    converted = _convert_windows(host, path) if windows else _convert_posix(host, path)
    return _check_abs(converted, windows)


def _convert_posix(host: str, path: str) -> str:
    if host not in ("", "localhost"):
        raise FileURLError("file URL specifies non-local host")
    return path


def _convert_windows(host: str, path: str) -> str:
    if not path.startswith("/"):
        raise _not_absolute()
    path = _from_slash(path, True)

    if host and host != "localhost":
        if _volume_name(host, True):
            raise FileURLError("file URL encodes volume in host field: too few slashes?")
        return "\\\\" + host + path

    volume = _volume_name(path[1:], True)
    if not volume or volume.startswith("\\\\"):
        raise FileURLError("file URL missing drive letter")
    return path[1:]


def _format(host: str, path: str) -> str:
    return "file://" + host + quote(path, safe=_PATH_SAFE)


def url_from_file_path(path: str, windows: Optional[bool] = None) -> str:
    """Convert an absolute file path to a ``file`` URL string."""
    windows = _resolve_windows(windows)
    if not _is_abs(path, windows):
        raise _not_absolute()

    volume = _volume_name(path, windows)
    if volume:
        if volume.startswith("\\\\"):
            rest = _to_slash(path[2:], windows)
            host, slash, tail = rest.partition("/")
            if not slash:
                return _format(rest, "/")
            return _format(host, "/" + tail)
        return _format("", "/" + _to_slash(path, windows))

    return _format("", _to_slash(path, windows))