# SPDX-License-Identifier: MIT
"""Configuration management for stowage.

This module handles:
- Logging setup
- Building a storage configuration from environment variables
"""

import logging
import os
import sys

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigurationError
from .service import StorageConfig
from .storage.factory import parse_storage_type
from .storage.options import AzureStorageOptions, LocalStorageOptions, S3StorageOptions
from .storage.protocol import StorageType

# ---------- Logging configuration ----------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("stowage")


# ---------- Environment variables per backend ----------

# (env var, option field, description for error messages)
_LOCAL_ENV: list[tuple[str, str, str]] = [
    ("STORAGE_LOCAL_ROOT", "root_path", "Directory files are written to"),
    ("STORAGE_LOCAL_BASE_URL", "base_url", "Public URL the root directory is served from"),
]

_S3_ENV: list[tuple[str, str, str]] = [
    ("AWS_ACCESS_KEY_ID", "access_key_id", "AWS access key ID"),
    ("AWS_SECRET_ACCESS_KEY", "secret_access_key", "AWS secret access key"),
    ("AWS_REGION", "region", "Bucket region (e.g. us-east-1)"),
    ("AWS_S3_BUCKET", "bucket", "Bucket name"),
]
_S3_OPTIONAL_ENV: list[tuple[str, str]] = [
    ("AWS_S3_ENDPOINT", "endpoint"),
    ("AWS_CLOUDFRONT_URL", "cloudfront_url"),
]

_AZURE_ENV: list[tuple[str, str, str]] = [
    ("AZURE_STORAGE_ACCOUNT", "account", "Storage account name"),
    ("AZURE_STORAGE_ACCOUNT_KEY", "account_key", "Storage account key"),
    ("AZURE_STORAGE_CONTAINER", "container", "Blob container name"),
]
_AZURE_OPTIONAL_ENV: list[tuple[str, str]] = [
    ("AZURE_CDN_DOMAIN_NAME", "cdn_url"),
]


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _read_block(
    required: list[tuple[str, str, str]],
    optional: list[tuple[str, str]] | None = None,
) -> dict[str, str]:
    """Collect env values for one backend, reporting all missing variables at once."""
    values: dict[str, str] = {}
    missing: list[tuple[str, str]] = []
    for env_var, field, description in required:
        value = _env(env_var)
        if value is None:
            missing.append((env_var, description))
        else:
            values[field] = value
    if missing:
        details = "\n".join(f"  - {name}: {description}" for name, description in missing)
        raise ConfigurationError(f"Missing required storage environment variable(s):\n{details}")
    for env_var, field in optional or []:
        value = _env(env_var)
        if value is not None:
            values[field] = value
    return values


def options_from_env(*, load_env_file: bool = True) -> StorageConfig:
    """Build a :class:`StorageConfig` from environment variables.

    ``STORAGE_BACKEND`` selects the backend (default ``"local"``); only the
    variables for that backend are required.  ``STORAGE_PREFIX`` sets the
    placement prefix for whichever backend is selected.

    Local
        ``STORAGE_LOCAL_ROOT`` (default ``./public``), ``STORAGE_LOCAL_BASE_URL``
        (default empty).
    S3
        ``AWS_ACCESS_KEY_ID``, ``AWS_SECRET_ACCESS_KEY``, ``AWS_REGION``,
        ``AWS_S3_BUCKET``; optional ``AWS_S3_ENDPOINT``, ``AWS_CLOUDFRONT_URL``.
    Azure
        ``AZURE_STORAGE_ACCOUNT``, ``AZURE_STORAGE_ACCOUNT_KEY``,
        ``AZURE_STORAGE_CONTAINER``; optional ``AZURE_CDN_DOMAIN_NAME``.

    Args:
        load_env_file: Load a ``.env`` file from the working directory first.

    Raises:
        ConfigurationError: If variables required by the selected backend are missing.
        UnsupportedBackendError: If ``STORAGE_BACKEND`` names no known backend.
    """
    if load_env_file:
        load_dotenv(find_dotenv(usecwd=True))

    storage_type = parse_storage_type(_env("STORAGE_BACKEND") or StorageType.LOCAL.value)
    prefix = _env("STORAGE_PREFIX")
    common = {"prefix": prefix} if prefix else {}

    if storage_type is StorageType.LOCAL:
        local = {field: value for env_var, field, _ in _LOCAL_ENV if (value := _env(env_var)) is not None}
        config = StorageConfig(storage=storage_type, local=LocalStorageOptions(**local, **common))
    elif storage_type is StorageType.S3:
        config = StorageConfig(
            storage=storage_type,
            s3=S3StorageOptions(**_read_block(_S3_ENV, _S3_OPTIONAL_ENV), **common),
        )
    else:
        config = StorageConfig(
            storage=storage_type,
            azure=AzureStorageOptions(**_read_block(_AZURE_ENV, _AZURE_OPTIONAL_ENV), **common),
        )

    logger.info("Storage backend from environment: %s", storage_type.value)
    return config
