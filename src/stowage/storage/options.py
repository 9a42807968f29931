# SPDX-License-Identifier: MIT
"""Per-backend configuration models.

Each backend takes exactly one of these frozen models.  Unknown fields are
rejected at construction, so a block that mixes settings from two backends
fails before any adapter is built.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

NameFunction = Callable[..., Any]
"""``(file, request) -> str`` or an awaitable of ``str``."""

TransformFunction = Callable[..., Any]
"""``(uploaded_file) -> Any`` or an awaitable of it."""


class FileStorageOptions(BaseModel):
    """Settings shared by every backend."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    prefix: str | None = None
    file_name: NameFunction | None = None
    file_dist: NameFunction | None = None
    transform_uploaded_file: TransformFunction | None = None


def _default_root() -> str:
    return os.path.join(os.getcwd(), "public")


class LocalStorageOptions(FileStorageOptions):
    """Local filesystem: files live under *root_path* and are served from *base_url*."""

    root_path: str = Field(default_factory=_default_root)
    base_url: str = ""

    @field_validator("root_path")
    @classmethod
    def _normalize_root(cls, v: str) -> str:
        if not v or not v.strip():
            return _default_root()
        return os.path.normpath(os.path.abspath(v.strip()))


class S3StorageOptions(FileStorageOptions):
    """Amazon S3 or any S3-compatible store (MinIO, Spaces, R2 via *endpoint*)."""

    access_key_id: str
    secret_access_key: str
    region: str
    bucket: str
    endpoint: str | None = None
    cloudfront_url: str | None = None

    @field_validator("bucket", "region")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class AzureStorageOptions(FileStorageOptions):
    """Azure Blob Storage container addressed with an account key."""

    account: str
    account_key: str
    container: str
    cdn_url: str | None = Field(default_factory=lambda: os.getenv("AZURE_CDN_DOMAIN_NAME") or None)
    ignore_delete_errors: bool = False

    @field_validator("account", "container")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


StorageOptions = LocalStorageOptions | S3StorageOptions | AzureStorageOptions
