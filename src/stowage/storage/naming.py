# SPDX-License-Identifier: MIT
"""Naming and placement strategies for incoming files.

A *naming* function returns the leaf file name, a *placement* (``file_dist``)
function returns the directory or prefix.  Both receive the incoming file
and an optional request object, may be sync or async, and may raise to
reject the file before anything is written.
"""

from __future__ import annotations

import inspect
import re
import uuid
from collections.abc import Callable
from datetime import date
from typing import Any
from urllib.parse import quote

from ..exceptions import FileValidationError
from .keys import join_key
from .options import FileStorageOptions, NameFunction
from .protocol import IncomingFile

_UNSAFE_ASCII_RE = re.compile(r'[^\x20-\x7e]|["\\]')


def content_disposition(file_name: str, disposition: str = "inline") -> str:
    """Build a ``Content-Disposition`` value that survives non-ASCII names.

    ``filename`` carries an ASCII-only fallback (non-ASCII, quotes and
    backslashes replaced with ``_``); ``filename*`` carries the exact name,
    percent-encoded as UTF-8 (RFC 6266 / RFC 5987).
    """
    safe_ascii = _UNSAFE_ASCII_RE.sub("_", file_name)
    encoded = quote(file_name, safe="")
    return f"{disposition}; filename=\"{safe_ascii}\"; filename*=UTF-8''{encoded}"


def default_file_name(file: IncomingFile, request: Any = None) -> str:
    """Random token followed by the original name, e.g. ``<uuid4>-photo.png``."""
    return f"{uuid.uuid4()}-{file.original_name}"


def date_dist(prefix: str | None = None, *, today: Callable[[], date] = date.today) -> NameFunction:
    """Build a placement function returning ``prefix/YYYY/MM/DD``.

    Args:
        prefix: Leading directory; omitted when empty.
        today: Clock used to pick the date (injectable for tests).
    """

    def _dist(file: IncomingFile, request: Any = None) -> str:
        d = today()
        return join_key(prefix or "", f"{d:%Y}", f"{d:%m}", f"{d:%d}")

    return _dist


async def _call(func: NameFunction, file: IncomingFile, request: Any) -> Any:
    result = func(file, request)
    if inspect.isawaitable(result):
        result = await result
    return result


async def resolve_placement(
    options: FileStorageOptions,
    file: IncomingFile,
    request: Any,
    default_dist: NameFunction,
    *,
    file_name: NameFunction | None = None,
    file_dist: NameFunction | None = None,
) -> tuple[str, str]:
    """Run the strategies and return ``(directory, file_name)``.

    Per-call *file_name* / *file_dist* win over the configured ones, which
    win over the defaults.  Exceptions raised by the strategies propagate
    unchanged.

    Raises:
        FileValidationError: If the naming strategy returns an empty name.
    """
    dist_func = file_dist or options.file_dist or default_dist
    name_func = file_name or options.file_name or default_file_name

    directory = await _call(dist_func, file, request)
    name = await _call(name_func, file, request)

    if directory is None:
        directory = await _call(default_dist, file, request)
    if not name or not str(name).strip():
        raise FileValidationError(f"Naming strategy returned an empty file name for {file.original_name!r}")
    return str(directory or ""), str(name)
