# SPDX-License-Identifier: MIT
"""Storage backend factory.

Backends are registered by name together with the distribution their
client library ships in.  A backend's module is imported only when that
backend is first requested, so ``boto3`` and ``azure-storage-blob`` stay
optional.  Instances are cached per ``(storage_type, options)``.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from ..exceptions import MissingDependencyError, UnsupportedBackendError
from .options import AzureStorageOptions, FileStorageOptions, LocalStorageOptions, S3StorageOptions
from .protocol import StorageBackend, StorageType

logger = logging.getLogger("stowage")


@dataclass(frozen=True)
class BackendSpec:
    """Where a backend lives and what it needs.

    Attributes:
        module: Absolute module path holding the backend class.
        class_name: Backend class inside *module*.
        options_model: Pydantic model validating the backend's settings.
        requires: Distribution to install when the import fails (``None`` for stdlib-only).
        probe: Top-level import name checked by :func:`available_backends`.
        extra: stowage extra that installs *requires*, used in the install hint.
    """

    module: str
    class_name: str
    options_model: type[FileStorageOptions]
    requires: str | None = None
    probe: str | None = None
    extra: str | None = None


_REGISTRY: dict[StorageType, BackendSpec] = {
    StorageType.LOCAL: BackendSpec(f"{__package__}.local", "LocalStorageBackend", LocalStorageOptions),
    StorageType.S3: BackendSpec(f"{__package__}.s3", "S3StorageBackend", S3StorageOptions, "boto3", "boto3", "s3"),
    StorageType.AZURE: BackendSpec(
        f"{__package__}.azure",
        "AzureBlobStorageBackend",
        AzureStorageOptions,
        "azure-storage-blob",
        "azure.storage.blob",
        "azure",
    ),
}


def register_backend(storage_type: StorageType | str, spec: BackendSpec) -> None:
    """Register (or replace) the implementation used for *storage_type*."""
    _REGISTRY[parse_storage_type(storage_type)] = spec
    _create_cached.cache_clear()


def available_backends() -> list[StorageType]:
    """Registered backends whose client library can be imported."""
    available = []
    for storage_type, spec in _REGISTRY.items():
        if spec.probe is None:
            available.append(storage_type)
            continue
        try:
            found = importlib.util.find_spec(spec.probe) is not None
        except ModuleNotFoundError:
            found = False
        if found:
            available.append(storage_type)
    return available


def parse_storage_type(storage_type: StorageType | str) -> StorageType:
    """Resolve a selector or raise :class:`UnsupportedBackendError`."""
    try:
        return StorageType.parse(storage_type)
    except ValueError as e:
        choices = ", ".join(t.value for t in StorageType)
        raise UnsupportedBackendError(
            f"Unsupported storage type: {storage_type!r}. Use one of: {choices}",
            backend=str(storage_type),
        ) from e


def _load_backend_class(storage_type: StorageType, spec: BackendSpec) -> type:
    try:
        module = importlib.import_module(spec.module)
    except ImportError as exc:
        if spec.requires is None:
            raise
        target = f"'stowage[{spec.extra}]'" if spec.extra else spec.requires
        raise MissingDependencyError(
            f"The {storage_type.value} storage backend requires the '{spec.requires}' package. "
            f"Install it with: pip install {target}",
            package=spec.requires,
            backend=storage_type.value,
        ) from exc
    return getattr(module, spec.class_name)


def _coerce_options(spec: BackendSpec, options: FileStorageOptions | Mapping[str, Any] | None) -> FileStorageOptions:
    if options is None:
        return spec.options_model()
    if isinstance(options, spec.options_model):
        return options
    if isinstance(options, FileStorageOptions):
        raise UnsupportedBackendError(
            f"{type(options).__name__} cannot configure a {spec.class_name}; expected {spec.options_model.__name__}"
        )
    return spec.options_model.model_validate(dict(options))


def get_backend_options(
    storage_type: StorageType | str,
    options: FileStorageOptions | Mapping[str, Any] | None = None,
) -> FileStorageOptions:
    """Validate *options* against the settings model of *storage_type*."""
    resolved = parse_storage_type(storage_type)
    spec = _REGISTRY.get(resolved)
    if spec is None:
        raise UnsupportedBackendError(f"No backend registered for {resolved.value!r}", backend=resolved.value)
    return _coerce_options(spec, options)


def create_storage(
    storage_type: StorageType | str,
    options: FileStorageOptions | Mapping[str, Any] | None = None,
) -> StorageBackend:
    """Resolve *storage_type* and *options* into a cached backend instance.

    Options may be the backend's settings model or a plain mapping, which
    is validated into that model.

    Raises:
        UnsupportedBackendError: Unknown selector.
        MissingDependencyError: The backend's client library is not installed.
        pydantic.ValidationError: The options do not fit the backend.
    """
    resolved = parse_storage_type(storage_type)
    return _create_cached(resolved, get_backend_options(resolved, options))


@lru_cache(maxsize=None)
def _create_cached(storage_type: StorageType, options: FileStorageOptions) -> StorageBackend:
    # Options models are frozen and hashable: equal values plus identical
    # strategy callables share one instance.
    spec = _REGISTRY.get(storage_type)
    if spec is None:
        raise UnsupportedBackendError(f"No backend registered for {storage_type!r}", backend=str(storage_type))

    backend_cls = _load_backend_class(storage_type, spec)
    logger.info("Creating %s storage backend", storage_type.value)
    return backend_cls(options)


def clear_cache() -> None:
    """Forget every cached backend instance."""
    _create_cached.cache_clear()
