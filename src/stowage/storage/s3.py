# SPDX-License-Identifier: MIT
"""Amazon S3 storage backend.

Uses the synchronous ``boto3`` client in worker threads (via
:func:`anyio.to_thread.run_sync`) so calls never block the event loop.
Works with any S3-compatible service through ``options.endpoint``.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, ClassVar

import anyio
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import BackendError, StorageNotFoundError
from .base import BaseStorage
from .keys import leaf_name, require_key
from .naming import content_disposition
from .options import S3StorageOptions
from .protocol import IncomingFile, UploadedFile

logger = logging.getLogger("stowage")

DEFAULT_SIGNED_URL_EXPIRY = 3600

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_not_found(error: ClientError) -> bool:
    return str(error.response.get("Error", {}).get("Code", "")) in _NOT_FOUND_CODES


class S3StorageBackend(BaseStorage):
    """S3 bucket storage.

    Args:
        options: Credentials, bucket and URL settings.
        client: Pre-built boto3 S3 client (tests, custom sessions).
    """

    name: ClassVar[str] = "s3"

    def __init__(self, options: S3StorageOptions, client: Any = None) -> None:
        super().__init__(options)
        self.options: S3StorageOptions
        self.bucket = options.bucket
        if client is None:
            extra = {} if options.endpoint is None else {"endpoint_url": options.endpoint}
            client = boto3.client(
                "s3",
                region_name=options.region,
                aws_access_key_id=options.access_key_id,
                aws_secret_access_key=options.secret_access_key,
                **extra,
            )
        self._client = client

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, method: str, **kwargs: Any) -> Any:
        func = functools.partial(getattr(self._client, method), **kwargs)
        return await anyio.to_thread.run_sync(func)

    def _error(self, action: str, key: str, exc: Exception) -> Exception:
        logger.error("S3 %s failed for %s in bucket %s: %s", action, key, self.bucket, exc)
        if isinstance(exc, ClientError) and _is_not_found(exc):
            return StorageNotFoundError(f"File not found: {key}", key=key, backend=self.name)
        return BackendError(f"S3 {action} failed for {key}: {exc}", key=key, backend=self.name)

    async def _head_size(self, key: str) -> int:
        head = await self._call("head_object", Bucket=self.bucket, Key=key)
        return int(head.get("ContentLength") or 0)

    def _put_options(self, file: IncomingFile) -> dict[str, Any]:
        return {"content_type": file.mime_type} if file.mime_type else {}

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def get_url(self, key: str) -> str:
        if self.options.cloudfront_url:
            return f"{self.options.cloudfront_url.rstrip('/')}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    async def get_signed_url(self, key: str, expires_in: int = DEFAULT_SIGNED_URL_EXPIRY, **params: Any) -> str:
        """Presigned GET URL valid for *expires_in* seconds.

        Extra keyword arguments are merged into the ``get_object`` params
        (e.g. ``ResponseContentDisposition``).  An empty key yields ``""``.
        """
        if not key:
            return ""
        try:
            return await self._call(
                "generate_presigned_url",
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": key, **params},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._error("presign", key, e) from e

    # ------------------------------------------------------------------
    # Byte-level I/O
    # ------------------------------------------------------------------

    async def put_file(
        self,
        content: bytes,
        key: str,
        content_type: str | None = None,
        **extra: Any,
    ) -> UploadedFile:
        """Upload *content* and read back its size with a HEAD request.

        Extra keyword arguments are passed to ``put_object`` unchanged
        (``CacheControl``, ``Metadata``, ``ACL``...).
        """
        key = require_key(key)
        file_name = leaf_name(key)
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": content,
            "ContentDisposition": content_disposition(file_name),
        }
        if content_type:
            params["ContentType"] = content_type
        params.update(extra)

        try:
            await self._call("put_object", **params)
            size = await self._head_size(key)
        except (ClientError, BotoCoreError) as e:
            raise self._error("upload", key, e) from e

        return UploadedFile(
            file_name=file_name,
            original_name=file_name,
            size=size,
            key=key,
            url=self.get_url(key),
            full_path=key,
            mime_type=content_type,
            buffer=content,
        )

    async def get_file(self, key: str) -> bytes:
        key = require_key(key)
        try:
            response = await self._call("get_object", Bucket=self.bucket, Key=key)
            body = response.get("Body")
            if body is None:
                raise BackendError(f"Empty response received from S3 for {key}", key=key, backend=self.name)
            return await anyio.to_thread.run_sync(body.read)
        except (ClientError, BotoCoreError) as e:
            raise self._error("download", key, e) from e

    async def delete_file(self, key: str) -> None:
        key = require_key(key)
        try:
            await self._call("delete_object", Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._error("delete", key, e) from e

    async def copy_file(self, old_key: str, new_key: str) -> UploadedFile:
        old_key = require_key(old_key)
        new_key = require_key(new_key)
        try:
            await self._call(
                "copy_object",
                Bucket=self.bucket,
                CopySource={"Bucket": self.bucket, "Key": old_key},
                Key=new_key,
            )
            size = await self._head_size(new_key)
        except (ClientError, BotoCoreError) as e:
            raise self._error("copy", old_key, e) from e

        file_name = leaf_name(new_key)
        return UploadedFile(
            file_name=file_name,
            original_name=file_name,
            size=size,
            key=new_key,
            url=self.get_url(new_key),
            full_path=new_key,
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def exists(self, key: str) -> bool:
        try:
            await self._head_size(require_key(key))
            return True
        except ValueError:
            return False
        except (ClientError, BotoCoreError) as e:
            if isinstance(e, ClientError) and _is_not_found(e):
                return False
            raise self._error("head", key, e) from e
