# SPDX-License-Identifier: MIT
"""Module-level storage configuration.

Two configuration shapes are accepted:

* :class:`StorageConfig` - pick one of the built-in backends by selector and
  give a settings block per backend.
* :class:`StorageClassConfig` - supply your own factory returning a storage
  class (or any callable), which is instantiated with ``options``.

Usage::

    from stowage import StorageConfig, LocalStorageOptions, set_options, get_storage

    set_options(StorageConfig(storage="local", local=LocalStorageOptions(base_url="/files")))

    storage = await get_storage()
    record = await storage.put_file(b"hi", "notes/hello.txt")

Applications that prefer explicit wiring construct a
:class:`FileStorageService` and pass it around instead of using the
process-wide default.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .exceptions import ConfigurationError
from .storage.factory import create_storage, parse_storage_type
from .storage.options import AzureStorageOptions, LocalStorageOptions, S3StorageOptions
from .storage.protocol import StorageBackend, StorageType

logger = logging.getLogger("stowage")


class StorageConfig(BaseModel):
    """Declarative configuration: a selector plus per-backend settings."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    storage: StorageType | None = None
    local: LocalStorageOptions | None = Field(default=None, validation_alias=AliasChoices("local", "local_config"))
    s3: S3StorageOptions | None = Field(default=None, validation_alias=AliasChoices("s3", "s3_config"))
    azure: AzureStorageOptions | None = Field(default=None, validation_alias=AliasChoices("azure", "azure_config"))

    @field_validator("storage", mode="before")
    @classmethod
    def _parse_storage(cls, v: Any) -> Any:
        if v is None or isinstance(v, StorageType):
            return v
        return StorageType.parse(v)

    def backend_options(self, storage_type: StorageType) -> LocalStorageOptions | S3StorageOptions | AzureStorageOptions:
        """Settings block for *storage_type*.

        Raises:
            ConfigurationError: If no block is configured for that backend.
        """
        options = getattr(self, storage_type.value)
        if options is None:
            raise ConfigurationError(
                f"No configuration for the {storage_type.value!r} storage backend",
                backend=storage_type.value,
            )
        return options


class StorageClassConfig(BaseModel):
    """Imperative configuration: a factory returning the storage class to instantiate.

    ``storage_factory`` may be sync or async; whatever it returns is called
    with ``options``.  The result is trusted to implement the storage
    contract.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    storage_factory: Callable[[], Any]
    options: Any = None


ModuleOptions = StorageConfig | StorageClassConfig


class FileStorageService:
    """Resolves "the current storage" from one configuration object.

    Args:
        options: Declarative or custom-factory configuration.
    """

    def __init__(self, options: ModuleOptions) -> None:
        self.options = options

    async def get_storage(self, storage_type: StorageType | str | None = None) -> StorageBackend:
        """Return the backend for *storage_type*, or for the configured selector.

        Raises:
            ConfigurationError: If neither a selector argument nor a configured
                selector is available, or the selected backend has no settings.
            UnsupportedBackendError: Unknown selector.
            MissingDependencyError: The backend's client library is not installed.
        """
        options = self.options

        if isinstance(options, StorageClassConfig):
            storage_class = options.storage_factory()
            if inspect.isawaitable(storage_class):
                storage_class = await storage_class
            return storage_class(options.options)

        selector = storage_type if storage_type is not None else options.storage
        if selector is None:
            raise ConfigurationError("No storage type given and none configured")
        resolved = parse_storage_type(selector)
        return create_storage(resolved, options.backend_options(resolved))


# ------------------------------------------------------------------
# Process-wide default
# ------------------------------------------------------------------

_default_service: FileStorageService | None = None


def set_options(options: ModuleOptions, *, replace: bool = False) -> FileStorageService:
    """Install the process-wide storage configuration.

    Meant to be called once at startup.  A second call raises unless
    *replace* is true.

    Raises:
        ConfigurationError: If options are already set and *replace* is false.
    """
    global _default_service
    if _default_service is not None and not replace:
        raise ConfigurationError("Storage options are already set; pass replace=True to override them")
    if _default_service is not None:
        logger.warning("Replacing previously configured storage options")
    _default_service = FileStorageService(options)
    return _default_service


def get_options() -> ModuleOptions:
    """Return the process-wide storage configuration.

    Raises:
        ConfigurationError: If :func:`set_options` has not been called.
    """
    return _get_service().options


def reset_options() -> None:
    """Forget the process-wide configuration (mainly for tests)."""
    global _default_service
    _default_service = None


async def get_storage(storage_type: StorageType | str | None = None) -> StorageBackend:
    """Resolve a backend using the process-wide configuration.

    See :meth:`FileStorageService.get_storage`.
    """
    return await _get_service().get_storage(storage_type)


def _get_service() -> FileStorageService:
    if _default_service is None:
        raise ConfigurationError("Storage options are not set; call set_options() at startup")
    return _default_service
