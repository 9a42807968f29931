# SPDX-License-Identifier: MIT
"""Unit tests for module-level storage configuration."""

import pytest
from pydantic import ValidationError

from stowage.exceptions import ConfigurationError, UnsupportedBackendError
from stowage.service import (
    FileStorageService,
    StorageClassConfig,
    StorageConfig,
    get_options,
    get_storage,
    reset_options,
    set_options,
)
from stowage.storage.local import LocalStorageBackend
from stowage.storage.options import LocalStorageOptions, S3StorageOptions
from stowage.storage.protocol import StorageType


class CustomStorage:
    def __init__(self, options):
        self.options = options


@pytest.fixture
def s3_options():
    return S3StorageOptions(access_key_id="AKIA", secret_access_key="secret", region="us-east-1", bucket="b")


# ------------------------------------------------------------------
# set_options / get_options
# ------------------------------------------------------------------


@pytest.mark.unit
def test_get_options_before_set():
    with pytest.raises(ConfigurationError, match="not set"):
        get_options()


@pytest.mark.unit
async def test_get_storage_before_set():
    with pytest.raises(ConfigurationError):
        await get_storage()


@pytest.mark.unit
def test_set_and_get_options(local_options):
    config = StorageConfig(storage="local", local=local_options)
    service = set_options(config)

    assert isinstance(service, FileStorageService)
    assert get_options() is config


@pytest.mark.unit
def test_set_options_twice_raises(local_options):
    set_options(StorageConfig(storage="local", local=local_options))
    with pytest.raises(ConfigurationError, match="already set"):
        set_options(StorageConfig(storage="local", local=local_options))


@pytest.mark.unit
def test_set_options_replace(local_options):
    set_options(StorageConfig(storage="local", local=local_options))
    replacement = StorageConfig(storage="s3")

    set_options(replacement, replace=True)

    assert get_options() is replacement


@pytest.mark.unit
def test_reset_options(local_options):
    set_options(StorageConfig(storage="local", local=local_options))
    reset_options()
    with pytest.raises(ConfigurationError):
        get_options()


# ------------------------------------------------------------------
# StorageConfig
# ------------------------------------------------------------------


@pytest.mark.unit
def test_storage_config_aliases(local_options):
    config = StorageConfig.model_validate({"storage": "objectstore", "local_config": local_options})
    assert config.storage is StorageType.S3
    assert config.local is local_options


@pytest.mark.unit
def test_storage_config_unknown_selector():
    with pytest.raises(ValidationError):
        StorageConfig(storage="gcs")


@pytest.mark.unit
def test_storage_config_rejects_unknown_blocks():
    with pytest.raises(ValidationError):
        StorageConfig.model_validate({"storage": "local", "gcs": {}})


@pytest.mark.unit
def test_storage_config_validates_nested_mappings(tmp_path):
    config = StorageConfig.model_validate({"storage": "local", "local": {"root_path": str(tmp_path)}})
    assert isinstance(config.local, LocalStorageOptions)


# ------------------------------------------------------------------
# Resolution
# ------------------------------------------------------------------


@pytest.mark.unit
async def test_get_storage_uses_configured_selector(local_options):
    set_options(StorageConfig(storage="local", local=local_options))

    storage = await get_storage()

    assert isinstance(storage, LocalStorageBackend)
    assert storage is await get_storage("filesystem")


@pytest.mark.unit
async def test_argument_overrides_configured_selector(mocker, local_options, s3_options):
    mocker.patch("stowage.storage.s3.boto3.client")
    set_options(StorageConfig(storage="local", local=local_options, s3=s3_options))

    storage = await get_storage("s3")

    assert type(storage).__name__ == "S3StorageBackend"
    assert storage.bucket == "b"


@pytest.mark.unit
async def test_no_selector_anywhere(local_options):
    set_options(StorageConfig(local=local_options))
    with pytest.raises(ConfigurationError, match="No storage type"):
        await get_storage()


@pytest.mark.unit
async def test_argument_without_configured_selector(local_options):
    set_options(StorageConfig(local=local_options))
    assert isinstance(await get_storage("local"), LocalStorageBackend)


@pytest.mark.unit
async def test_selected_backend_without_settings(local_options):
    set_options(StorageConfig(storage="local", local=local_options))
    with pytest.raises(ConfigurationError, match="azure") as exc_info:
        await get_storage("azure")
    assert exc_info.value.backend == "azure"


@pytest.mark.unit
async def test_unknown_selector_argument(local_options):
    set_options(StorageConfig(storage="local", local=local_options))
    with pytest.raises(UnsupportedBackendError):
        await get_storage("gcs")


# ------------------------------------------------------------------
# Custom storage factories
# ------------------------------------------------------------------


@pytest.mark.unit
async def test_sync_storage_factory():
    set_options(StorageClassConfig(storage_factory=lambda: CustomStorage, options={"k": 1}))

    storage = await get_storage()

    assert isinstance(storage, CustomStorage)
    assert storage.options == {"k": 1}


@pytest.mark.unit
async def test_async_storage_factory():
    async def load():
        return CustomStorage

    service = FileStorageService(StorageClassConfig(storage_factory=load, options="opts"))

    storage = await service.get_storage()

    assert isinstance(storage, CustomStorage)
    assert storage.options == "opts"


@pytest.mark.unit
async def test_explicit_service_independent_of_default(local_options):
    service = FileStorageService(StorageConfig(storage="local", local=local_options))

    assert isinstance(await service.get_storage(), LocalStorageBackend)
    with pytest.raises(ConfigurationError):
        get_options()
