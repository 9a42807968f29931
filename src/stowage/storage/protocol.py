# SPDX-License-Identifier: MIT
"""Storage backend protocol and shared types.

Defines the interface that all storage backends must implement, plus the
optional capability interfaces that only some backends provide.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class StorageType(str, Enum):
    """Backend selector."""

    LOCAL = "local"
    S3 = "s3"
    AZURE = "azure"

    @classmethod
    def parse(cls, value: StorageType | str) -> StorageType:
        """Resolve a selector, accepting the generic ``objectstore`` / ``blobstore`` aliases.

        Raises:
            ValueError: If *value* names no known backend.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        return cls(normalized)


_ALIASES = {
    "filesystem": "local",
    "objectstore": "s3",
    "blobstore": "azure",
}


@dataclass(frozen=True)
class IncomingFile:
    """A file received from the upload layer, before it is stored."""

    original_name: str
    content: bytes
    mime_type: str | None = None
    field_name: str | None = None
    encoding: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class UploadedFile:
    """Metadata about a stored file, returned by every write and copy."""

    file_name: str
    original_name: str
    size: int
    key: str
    url: str
    full_path: str
    mime_type: str | None = None
    buffer: bytes | None = None
    field_name: str | None = None
    encoding: str | None = None


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for pluggable file storage operations.

    Keys are canonical, forward-slash separated and never start with ``/``.
    Implementations translate them to whatever their medium needs.
    """

    async def put_file(self, content: bytes, key: str, **options: Any) -> UploadedFile:
        """Store *content* under *key*.

        Returns:
            Metadata for the stored file, with the backend-reported size.
        """
        ...

    async def get_file(self, key: str) -> bytes:
        """Read entire file contents.

        Raises:
            StorageNotFoundError: If the key does not exist.
        """
        ...

    async def delete_file(self, key: str) -> None:
        """Remove the file stored under *key*."""
        ...

    async def copy_file(self, old_key: str, new_key: str) -> UploadedFile:
        """Copy *old_key* to *new_key*, leaving the source in place."""
        ...

    def get_url(self, key: str) -> str:
        """Public URL for *key*."""
        ...

    async def upload(self, file: IncomingFile, request: Any = None) -> UploadedFile:
        """Name, place and store an incoming file."""
        ...


@runtime_checkable
class SignedUrlCapable(Protocol):
    """Backends that can issue time-limited URLs for private objects."""

    async def get_signed_url(self, key: str, **options: Any) -> str: ...


@runtime_checkable
class PathResolvable(Protocol):
    """Backends whose keys map onto local filesystem paths."""

    def path(self, key: str) -> str: ...


def supports_signed_urls(storage: object) -> bool:
    return isinstance(storage, SignedUrlCapable)


def supports_paths(storage: object) -> bool:
    return isinstance(storage, PathResolvable)
