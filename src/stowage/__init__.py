# SPDX-License-Identifier: MIT
"""stowage: one async interface for storing files on local disk, S3 or Azure Blob Storage."""

from .config import options_from_env
from .exceptions import (
    BackendError,
    ConfigurationError,
    FileValidationError,
    InvalidKeyError,
    MissingDependencyError,
    StorageError,
    StorageIOError,
    StorageNotFoundError,
    UnsupportedBackendError,
)
from .service import (
    FileStorageService,
    StorageClassConfig,
    StorageConfig,
    get_options,
    get_storage,
    reset_options,
    set_options,
)
from .storage import (
    AzureStorageOptions,
    IncomingFile,
    LocalStorageBackend,
    LocalStorageOptions,
    S3StorageOptions,
    StorageBackend,
    StorageType,
    UploadedFile,
    clear_cache,
    create_storage,
)

__all__ = [
    "AzureStorageOptions",
    "BackendError",
    "ConfigurationError",
    "FileStorageService",
    "FileValidationError",
    "IncomingFile",
    "InvalidKeyError",
    "LocalStorageBackend",
    "LocalStorageOptions",
    "MissingDependencyError",
    "S3StorageOptions",
    "StorageBackend",
    "StorageClassConfig",
    "StorageConfig",
    "StorageError",
    "StorageIOError",
    "StorageNotFoundError",
    "StorageType",
    "UnsupportedBackendError",
    "UploadedFile",
    "clear_cache",
    "create_storage",
    "get_options",
    "get_storage",
    "options_from_env",
    "reset_options",
    "set_options",
]
