# SPDX-License-Identifier: MIT
"""Storage key helpers.

A key is the public identifier of a stored file: segments joined by ``/``,
no leading slash, no OS-specific separators.  Every backend accepts and
returns keys in this form and translates internally.
"""

from __future__ import annotations

import os
import re

from ..exceptions import InvalidKeyError

_URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")


def is_url(value: str) -> bool:
    """Return True if *value* already is an absolute URL (``scheme://...``)."""
    return bool(value) and _URL_RE.match(value) is not None


def _segments(value: str) -> list[str]:
    return [part for part in value.replace("\\", "/").split("/") if part]


def join_key(*parts: str) -> str:
    """Join directory/prefix parts and a leaf name into a canonical key.

    Examples::

        >>> join_key("uploads/2024/01", "a.png")
        'uploads/2024/01/a.png'
        >>> join_key("", "/a\\\\b", "c.txt")
        'a/b/c.txt'
    """
    segments: list[str] = []
    for part in parts:
        if part:
            segments.extend(_segments(part))
    return "/".join(segments)


def require_key(key: str | None) -> str:
    """Validate *key* for use as a concrete address and return its canonical form.

    Raises:
        InvalidKeyError: If the key is empty or contains ``..`` segments.
    """
    if key is None or not key.strip():
        raise InvalidKeyError("Key is required", key=key)
    segments = _segments(key)
    if not segments:
        raise InvalidKeyError(f"Invalid key: {key!r}", key=key)
    if ".." in segments:
        raise InvalidKeyError(f"Path traversal detected in key: {key!r}", key=key)
    return "/".join(segments)


def leaf_name(key: str) -> str:
    """Last segment of *key* (the file name)."""
    segments = _segments(key)
    return segments[-1] if segments else key


class KeyCodec:
    """Bidirectional mapping between rooted filesystem paths and keys.

    Args:
        root: Root directory all keys are relative to.
        sep: Path separator of the host; defaults to :data:`os.sep`.
    """

    def __init__(self, root: str, sep: str = os.sep) -> None:
        self.root = root
        self.sep = sep

    def to_key(self, path: str) -> str:
        """Convert an OS path (rooted or relative) to a key.

        Windows: ``C:\\up\\2024\\01\\f.jpg`` -> ``2024/01/f.jpg``;
        Unix: ``/up/2024/01/f.jpg`` -> ``2024/01/f.jpg``.
        Canonical keys pass through unchanged.
        """
        if not path:
            return ""
        relative = path
        root = self.root.rstrip("/\\")
        if root and path.startswith(root) and path[len(root) : len(root) + 1] in ("", "/", "\\"):
            relative = path[len(root) :]
        return relative.replace("\\", "/").lstrip("/")

    def to_path(self, key: str) -> str:
        """Convert a key to a full OS path under the root.

        Empty segments (from accidental ``//``) are dropped.  An empty key
        yields ``""``.
        """
        if not key:
            return ""
        parts = [part for part in key.split("/") if part]
        if not parts:
            return ""
        relative = self.sep.join(parts)
        if not self.root:
            return relative
        return self.root.rstrip(self.sep) + self.sep + relative
