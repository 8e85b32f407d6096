"""Request URL to filesystem path resolution.

All paths handed out by this module are slash-style, absolute and free of
``.``/``..`` segments, so the access guard sees the same path the
filesystem would open.
"""

import posixpath
import re
from urllib.parse import unquote

from devserve.constants import FS_PREFIX, IS_WINDOWS
from devserve.core.alias import AliasTable
from devserve.core.types import FilePath, RequestContext
from devserve.core.urls import clean_url

_SUFFIX_RE = re.compile(r"[?#]")
# Encoded "?" and "#" stay encoded so they cannot turn into a query or hash
_RESERVED_ESCAPE_RE = re.compile(r"(%3F|%23)", re.IGNORECASE)
_DRIVE_RE = re.compile(r"^[A-Z]:", re.IGNORECASE)


def slash(path: str) -> str:
    return path.replace("\\", "/")


def normalize_path(path: str) -> str:
    """Convert to slash-style and collapse redundant and up-level segments."""
    normalized = posixpath.normpath(slash(path))
    # normpath keeps a leading "//", which POSIX leaves implementation-defined
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def ensure_leading_slash(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"


def is_within(path: str, directory: str) -> bool:
    """Check whether a normalized path equals or descends from a directory."""
    return path == directory or path.startswith(directory.rstrip("/") + "/")


def _unquote_path(path: str) -> str:
    parts = _RESERVED_ESCAPE_RE.split(path)
    # Odd indices hold the captured escapes
    return "".join(part if i % 2 else unquote(part) for i, part in enumerate(parts))


def decode_url(url: str) -> str:
    """Percent-decode the path part of a URL.

    The query string and hash are kept verbatim, and ``%3F``/``%23`` in the
    path are left encoded, so decoding never creates a new suffix.
    """
    match = _SUFFIX_RE.search(url)
    if match is None:
        return _unquote_path(url)
    return _unquote_path(url[: match.start()]) + url[match.start() :]


def resolve_file_path(url: str, root: str) -> FilePath:
    """Resolve a decoded URL against the serving root.

    Args:
        url: Decoded URL, possibly alias-rewritten
        root: Serving root, absolute and slash-style

    Returns:
        Normalized absolute path. Ends with "/" when the URL does, so that
        directory requests stay distinguishable from file requests.
    """
    path = clean_url(url)
    relative = path[1:] if path.startswith("/") else path
    resolved = normalize_path(posixpath.join(root, relative))
    if path.endswith("/") and not resolved.endswith("/"):
        resolved += "/"
    return FilePath(resolved)


def fs_path_from_url(url: str, *, windows: bool = IS_WINDOWS) -> FilePath:
    """Map a raw filesystem URL (``/@fs/...``) to an absolute path.

    On drive-letter platforms the drive designator is removed, leaving a
    path relative to the root of the current drive.

    Example::

        fs_path_from_url("/@fs/C:/proj/file.ts", windows=True)  # "/proj/file.ts"
    """
    path = decode_url(clean_url(url))
    if path.startswith(FS_PREFIX):
        path = path[len(FS_PREFIX) :]
    if windows:
        path = _DRIVE_RE.sub("", path)
    return FilePath(normalize_path(ensure_leading_slash(path)))


def build_request_context(raw_url: str, root: str, aliases: AliasTable) -> RequestContext:
    """Decode, alias-rewrite and resolve a request URL in one pass."""
    decoded = decode_url(raw_url)
    redirected = aliases.resolve(decoded, root)
    effective = decoded if redirected is None else redirected
    return RequestContext(
        raw_url=raw_url,
        decoded_url=decoded,
        resolved_alias_url=redirected,
        file_path=resolve_file_path(effective, root),
        is_directory_request=clean_url(effective).endswith("/"),
    )
