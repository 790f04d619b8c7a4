"""
Static file lookup: path resolution under a fixed root, MIME detection and
whole-file reads.

No ranges, no conditional requests, no directory listings. A file is either
read completely or reported as not found.
"""

import asyncio
import posixpath
import re
from pathlib import Path
from types import MappingProxyType
from typing import Optional

MIME_TYPES = MappingProxyType({
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "text/javascript; charset=utf-8",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
})

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_LEADING_PARENT_DIRS = re.compile(r"^(\.\.[/\\])+")


class StaticFileNotFound(Exception):
    """Raised when a static file is missing or cannot be read."""
    pass


def content_type_for(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


def resolve_static_path(root: Path, url_path: str, index_file: str = "index.html") -> Optional[Path]:
    """
    Map a request path to a file below `root`.

    - "/" is replaced by the index file.
    - The path is normalized and any leading "../" segments are dropped,
      so "/../../etc/passwd" ends up as "etc/passwd" under the root.
    - The final path is resolved (symlinks included) and must still be inside
      the root; otherwise None is returned and the caller answers 404.
    """
    if "\x00" in url_path:
        return None

    if url_path in ("", "/"):
        url_path = "/" + index_file

    safe_path = _LEADING_PARENT_DIRS.sub("", posixpath.normpath(url_path))
    safe_path = safe_path.lstrip("/\\")
    if safe_path in ("", ".", ".."):
        return None

    base = root.resolve()
    candidate = (base / safe_path).resolve()
    try:
        candidate.relative_to(base)
    except ValueError:
        return None
    return candidate


async def read_static_file(path: Path) -> bytes:
    """Read the whole file in a worker thread so the event loop keeps serving."""
    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        # Missing, unreadable and directories all look the same to the client.
        raise StaticFileNotFound(str(path)) from exc
