# SPDX-License-Identifier: MIT
"""Azure Blob Storage backend.

All blobs live in one container.  The synchronous ``azure-storage-blob``
client runs in worker threads via :func:`anyio.to_thread.run_sync`.
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar

import anyio
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobSasPermissions, BlobServiceClient, ContentSettings, generate_blob_sas

from ..exceptions import BackendError, StorageNotFoundError
from .base import BaseStorage
from .keys import leaf_name, require_key
from .naming import content_disposition
from .options import AzureStorageOptions
from .protocol import IncomingFile, UploadedFile

logger = logging.getLogger("stowage")

DEFAULT_SAS_EXPIRY = 3600
COPY_POLL_INTERVAL = 0.5


class AzureBlobStorageBackend(BaseStorage):
    """Azure Blob Storage container.

    Args:
        options: Account, key and container settings.
        service_client: Pre-built :class:`BlobServiceClient` (tests, custom transports).
    """

    name: ClassVar[str] = "azure"

    def __init__(self, options: AzureStorageOptions, service_client: Any = None) -> None:
        super().__init__(options)
        self.options: AzureStorageOptions
        self.account_url = f"https://{options.account}.blob.core.windows.net"
        if service_client is None:
            service_client = BlobServiceClient(
                self.account_url,
                credential={"account_name": options.account, "account_key": options.account_key},
            )
        self._service = service_client
        self._container = service_client.get_container_client(options.container)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _blob(self, key: str) -> Any:
        return self._container.get_blob_client(key)

    async def _run(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        return await anyio.to_thread.run_sync(functools.partial(func, *args, **kwargs))

    def _error(self, action: str, key: str, exc: Exception) -> Exception:
        logger.error("Azure %s failed for %s in container %s: %s", action, key, self.options.container, exc)
        if isinstance(exc, ResourceNotFoundError):
            return StorageNotFoundError(f"File not found: {key}", key=key, backend=self.name)
        return BackendError(f"Azure {action} failed for {key}: {exc}", key=key, backend=self.name)

    def _put_options(self, file: IncomingFile) -> dict[str, Any]:
        return {"content_type": file.mime_type} if file.mime_type else {}

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def get_url(self, key: str) -> str:
        return f"{self.account_url}/{self.options.container}/{key}"

    async def get_signed_url(self, key: str, expires_in: int = DEFAULT_SAS_EXPIRY, **signature_values: Any) -> str:
        """Read-only SAS URL, HTTPS only, valid for *expires_in* seconds.

        When a CDN domain is configured the CDN URL is returned as-is and no
        signature is generated.  Keyword arguments override the SAS values
        passed to :func:`generate_blob_sas` (``permission``, ``expiry``,
        ``start``, ``ip``...).
        """
        if not key:
            return ""
        if self.options.cdn_url:
            return f"{self.options.cdn_url.rstrip('/')}/{key}"

        now = datetime.now(timezone.utc)
        values: dict[str, Any] = {
            "permission": BlobSasPermissions(read=True),
            "protocol": "https",
            "start": now,
            "expiry": now + timedelta(seconds=expires_in),
        }
        values.update(signature_values)
        token = generate_blob_sas(
            account_name=self.options.account,
            container_name=self.options.container,
            blob_name=key,
            account_key=self.options.account_key,
            **values,
        )
        return f"{self._blob(key).url}?{token}"

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
        """Upload *content* (overwriting) and read back its size.

        Extra keyword arguments go to ``upload_blob`` (``metadata``, ``tags``...).
        """
        key = require_key(key)
        file_name = leaf_name(key)
        settings = ContentSettings(content_type=content_type, content_disposition=content_disposition(file_name))
        blob = self._blob(key)
        try:
            await self._run(blob.upload_blob, content, overwrite=True, content_settings=settings, **extra)
            properties = await self._run(blob.get_blob_properties)
        except AzureError as e:
            raise self._error("upload", key, e) from e

        return UploadedFile(
            file_name=file_name,
            original_name=file_name,
            size=int(properties.size or 0),
            key=key,
            url=self.get_url(key),
            full_path=key,
            mime_type=content_type,
            buffer=content,
        )

    async def get_file(self, key: str) -> bytes:
        key = require_key(key)
        blob = self._blob(key)
        try:
            downloader = await self._run(blob.download_blob)
            return await self._run(downloader.readall)
        except AzureError as e:
            raise self._error("download", key, e) from e

    async def delete_file(self, key: str) -> None:
        """Delete the blob.

        Failures propagate unless ``ignore_delete_errors`` is set, in which
        case they are logged and dropped.
        """
        key = require_key(key)
        try:
            await self._run(self._blob(key).delete_blob)
        except AzureError as e:
            if self.options.ignore_delete_errors:
                logger.warning("Ignoring failed delete of blob %s: %s", key, e)
                return
            raise self._error("delete", key, e) from e

    async def copy_file(self, old_key: str, new_key: str) -> UploadedFile:
        """Server-side copy; waits until Azure reports the copy finished."""
        old_key = require_key(old_key)
        new_key = require_key(new_key)
        source = self._blob(old_key)
        destination = self._blob(new_key)
        try:
            await self._run(destination.start_copy_from_url, source.url)
            properties = await self._run(destination.get_blob_properties)
            while properties.copy.status == "pending":
                await anyio.sleep(COPY_POLL_INTERVAL)
                properties = await self._run(destination.get_blob_properties)
        except AzureError as e:
            raise self._error("copy", old_key, e) from e

        status = properties.copy.status
        if status not in (None, "success"):
            raise BackendError(
                f"Azure copy of {old_key} to {new_key} ended with status {status!r}",
                key=new_key,
                backend=self.name,
            )

        file_name = leaf_name(new_key)
        return UploadedFile(
            file_name=file_name,
            original_name=file_name,
            size=int(properties.size or 0),
            key=new_key,
            url=self.get_url(new_key),
            full_path=new_key,
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def exists(self, key: str) -> bool:
        try:
            key = require_key(key)
        except ValueError:
            return False
        try:
            return bool(await self._run(self._blob(key).exists))
        except AzureError as e:
            raise self._error("exists", key, e) from e
