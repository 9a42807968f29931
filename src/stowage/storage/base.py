# SPDX-License-Identifier: MIT
"""Behaviour shared by every storage backend."""

from __future__ import annotations

import abc
import dataclasses
import inspect
import logging
from typing import Any, ClassVar

from .keys import join_key
from .naming import date_dist, resolve_placement
from .options import FileStorageOptions, NameFunction
from .protocol import IncomingFile, UploadedFile

logger = logging.getLogger("stowage")


class BaseStorage(abc.ABC):
    """Upload flow common to all backends.

    Subclasses implement the byte-level operations (``put_file`` and
    friends) and may pass extra keyword arguments to ``put_file`` through
    :meth:`_put_options`.
    """

    name: ClassVar[str] = "base"
    default_prefix: ClassVar[str | None] = "uploads"

    def __init__(self, options: FileStorageOptions) -> None:
        self.options = options

    def _default_dist(self, prefix: str | None = None) -> NameFunction:
        if prefix is None:
            prefix = self.options.prefix if self.options.prefix is not None else self.default_prefix
        return date_dist(prefix)

    def _make_key(self, directory: str, file_name: str) -> str:
        return join_key(directory, file_name)

    def _put_options(self, file: IncomingFile) -> dict[str, Any]:
        return {}

    @abc.abstractmethod
    async def put_file(self, content: bytes, key: str, **options: Any) -> UploadedFile:
        """Store *content* under *key* and describe the stored file."""

    async def upload(
        self,
        file: IncomingFile,
        request: Any = None,
        *,
        file_name: NameFunction | None = None,
        file_dist: NameFunction | None = None,
        prefix: str | None = None,
    ) -> UploadedFile:
        """Name, place and store *file*.

        *file_name*, *file_dist* and *prefix* override the configured
        strategies for this call only.  Placement and naming run before any
        bytes are written; if either raises, nothing is stored and the
        exception propagates unchanged.
        """
        directory, leaf = await resolve_placement(
            self.options,
            file,
            request,
            self._default_dist(prefix),
            file_name=file_name,
            file_dist=file_dist,
        )
        key = self._make_key(directory, leaf)
        logger.debug("Uploading %s to %s backend as %s", file.original_name, self.name, key)

        stored = await self.put_file(file.content, key, **self._put_options(file))
        record = dataclasses.replace(
            stored,
            field_name=file.field_name,
            original_name=file.original_name,
            mime_type=file.mime_type,
            encoding=file.encoding,
        )

        transform = self.options.transform_uploaded_file
        if transform is None:
            return record
        result = transform(record)
        if inspect.isawaitable(result):
            result = await result
        return result
