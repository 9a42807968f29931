# SPDX-License-Identifier: MIT
"""Local filesystem storage backend.

Keys map onto paths under ``root_path`` and URLs are built from
``base_url``, so a web server (or a static-files route) serving the root
makes every stored file reachable.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import Any, ClassVar

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError, StorageNotFoundError
from .base import BaseStorage
from .keys import KeyCodec, is_url, leaf_name, require_key
from .options import LocalStorageOptions
from .protocol import UploadedFile

logger = logging.getLogger("stowage")

_RECORD_FIELDS = frozenset(f.name for f in dataclasses.fields(UploadedFile))


class LocalStorageBackend(BaseStorage):
    """Local-disk storage rooted at ``options.root_path``.

    The root directory is created on construction if it does not exist.
    """

    name: ClassVar[str] = "local"
    default_prefix: ClassVar[str | None] = None

    def __init__(self, options: LocalStorageOptions | None = None) -> None:
        super().__init__(options or LocalStorageOptions())
        self.options: LocalStorageOptions
        self.root_path = self.options.root_path
        self._codec = KeyCodec(self.root_path)
        if not os.path.isdir(self.root_path):
            try:
                os.makedirs(self.root_path, exist_ok=True)
            except OSError as e:
                raise StorageIOError(f"Cannot create storage root {self.root_path}: {e}", backend=self.name) from e
            logger.info("Created storage root: %s", self.root_path)

    # ------------------------------------------------------------------
    # Key / path helpers
    # ------------------------------------------------------------------

    def _full_path(self, key: str) -> str:
        return self._codec.to_path(require_key(key))

    def _make_key(self, directory: str, file_name: str) -> str:
        # Placement functions may return absolute paths under the root.
        return self._codec.to_key(os.path.join(directory, file_name) if directory else file_name)

    def _record(self, key: str, full_path: str, size: int) -> UploadedFile:
        file_name = leaf_name(key)
        return UploadedFile(
            file_name=file_name,
            original_name=file_name,
            size=size,
            key=key,
            url=self.get_url(key),
            full_path=full_path,
        )

    def path(self, key: str) -> str:
        """Full OS path for *key* (``""`` for an empty key)."""
        if not key:
            return ""
        return self._codec.to_path(key)

    def get_url(self, key: str) -> str:
        if not key:
            return ""
        if is_url(key):
            return key
        return f"{self.options.base_url.rstrip('/')}/{key.lstrip('/')}"

    # ------------------------------------------------------------------
    # Byte-level I/O
    # ------------------------------------------------------------------

    async def put_file(
        self,
        content: bytes,
        key: str,
        content_type: str | None = None,
        **options: Any,
    ) -> UploadedFile:
        """Write *content* under *key*.

        ``content_type`` becomes the record's ``mime_type``.  Other keyword
        arguments naming :class:`UploadedFile` fields override the record;
        the rest are ignored, as the local disk has nowhere to keep them.
        """
        key = require_key(key)
        file_path = self._codec.to_path(key)
        overrides = {name: value for name, value in options.items() if name in _RECORD_FIELDS}
        if content_type is not None:
            overrides.setdefault("mime_type", content_type)
        try:
            await aiofiles.os.makedirs(os.path.dirname(file_path), exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(content)
            st = await aiofiles.os.stat(file_path)
        except OSError as e:
            logger.error("Failed to write %s: %s", key, e)
            raise StorageIOError(f"Cannot write file {key}: {e}", key=key, backend=self.name) from e

        record = self._record(key, file_path, st.st_size)
        if overrides:
            record = dataclasses.replace(record, **overrides)
        return record

    async def get_file(self, key: str) -> bytes:
        key = require_key(key)
        file_path = self._codec.to_path(key)
        try:
            async with aiofiles.open(file_path, "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise StorageNotFoundError(f"File not found: {key}", key=key, backend=self.name) from e
        except OSError as e:
            logger.error("Failed to read %s: %s", key, e)
            raise StorageIOError(f"Cannot read file {key}: {e}", key=key, backend=self.name) from e

    async def delete_file(self, key: str) -> None:
        key = require_key(key)
        file_path = self._codec.to_path(key)
        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError as e:
            raise StorageNotFoundError(f"File not found: {key}", key=key, backend=self.name) from e
        except OSError as e:
            logger.error("Failed to delete %s: %s", key, e)
            raise StorageIOError(f"Cannot delete file {key}: {e}", key=key, backend=self.name) from e

    async def copy_file(self, old_key: str, new_key: str) -> UploadedFile:
        old_key = require_key(old_key)
        new_key = require_key(new_key)
        old_path = self._codec.to_path(old_key)
        new_path = self._codec.to_path(new_key)

        # Whole file is buffered in memory
        data = await self.get_file(old_key)
        try:
            await aiofiles.os.makedirs(os.path.dirname(new_path), exist_ok=True)
            async with aiofiles.open(new_path, "wb") as f:
                await f.write(data)
            st = await aiofiles.os.stat(new_path)
        except OSError as e:
            logger.error("Failed to copy %s to %s: %s", old_path, new_path, e)
            raise StorageIOError(f"Cannot copy {old_key} to {new_key}: {e}", key=new_key, backend=self.name) from e
        return self._record(new_key, new_path, st.st_size)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def exists(self, key: str) -> bool:
        try:
            file_path = self._full_path(key)
        except ValueError:
            return False
        return await aiofiles.os.path.isfile(file_path)
