# SPDX-License-Identifier: MIT
"""Exception hierarchy for stowage.

Every error derives from :class:`StorageError` and, where one fits, from the
closest builtin so callers can keep catching ``FileNotFoundError`` or
``ValueError``.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base class for all storage errors.

    Args:
        message: Human-readable description.
        key: Storage key involved in the failed operation, if any.
        backend: Name of the backend that raised, if any.
    """

    def __init__(self, message: str, *, key: str | None = None, backend: str | None = None) -> None:
        super().__init__(message)
        self.key = key
        self.backend = backend


class StorageNotFoundError(StorageError, FileNotFoundError):
    """The addressed key does not exist."""


class StorageIOError(StorageError, OSError):
    """Local filesystem failure (permissions, disk full, ...)."""


class BackendError(StorageError):
    """A remote storage call failed (auth, network, quota, ...)."""


class MissingDependencyError(StorageError, ImportError):
    """An optional backend was selected but its client library is not installed."""

    def __init__(self, message: str, *, package: str, backend: str | None = None) -> None:
        super().__init__(message, backend=backend)
        self.package = package


class UnsupportedBackendError(StorageError, ValueError):
    """Unknown backend selector."""


class InvalidKeyError(StorageError, ValueError):
    """Empty or malformed key where a concrete address is required."""


class FileValidationError(StorageError, ValueError):
    """A naming or placement strategy rejected the incoming file."""


class ConfigurationError(StorageError, RuntimeError):
    """Storage configuration is missing, incomplete or set twice."""
