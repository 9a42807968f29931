# SPDX-License-Identifier: MIT
"""Pluggable storage backends.

The local backend is always available; the S3 and Azure backends are
imported on first use and need their client libraries installed
(``pip install 'stowage[s3]'`` / ``pip install 'stowage[azure]'``).

Usage::

    from stowage.storage import create_storage

    storage = create_storage("local", {"root_path": "./up", "base_url": "http://x/up"})
    record = await storage.put_file(b"hi", "2024/01/f.txt")
    data = await storage.get_file(record.key)
"""

from .factory import BackendSpec, available_backends, clear_cache, create_storage, register_backend
from .keys import KeyCodec, join_key, require_key
from .local import LocalStorageBackend
from .options import AzureStorageOptions, FileStorageOptions, LocalStorageOptions, S3StorageOptions
from .protocol import (
    IncomingFile,
    PathResolvable,
    SignedUrlCapable,
    StorageBackend,
    StorageType,
    UploadedFile,
    supports_paths,
    supports_signed_urls,
)

__all__ = [
    "AzureStorageOptions",
    "BackendSpec",
    "FileStorageOptions",
    "IncomingFile",
    "KeyCodec",
    "LocalStorageBackend",
    "LocalStorageOptions",
    "PathResolvable",
    "S3StorageOptions",
    "SignedUrlCapable",
    "StorageBackend",
    "StorageType",
    "UploadedFile",
    "available_backends",
    "clear_cache",
    "create_storage",
    "join_key",
    "register_backend",
    "require_key",
    "supports_paths",
    "supports_signed_urls",
]
