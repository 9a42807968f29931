# SPDX-License-Identifier: MIT
"""Unit tests for the storage backend factory."""

import sys

import pytest
from pydantic import ValidationError

from stowage.exceptions import MissingDependencyError, UnsupportedBackendError
from stowage.storage import factory
from stowage.storage.factory import (
    BackendSpec,
    available_backends,
    clear_cache,
    create_storage,
    get_backend_options,
    parse_storage_type,
    register_backend,
)
from stowage.storage.local import LocalStorageBackend
from stowage.storage.options import LocalStorageOptions, S3StorageOptions
from stowage.storage.protocol import StorageType

S3_SETTINGS = {
    "access_key_id": "AKIA",
    "secret_access_key": "secret",
    "region": "us-east-1",
    "bucket": "my-bucket",
}


class RecordingBackend(LocalStorageBackend):
    """Stand-in backend used to check registry lookups."""


@pytest.fixture
def isolated_registry(monkeypatch):
    """Give each test its own copy of the backend registry."""
    monkeypatch.setattr(factory, "_REGISTRY", dict(factory._REGISTRY))


@pytest.mark.unit
class TestSelectors:
    """Test selector parsing."""

    @pytest.mark.parametrize(
        ("selector", "expected"),
        [
            ("local", StorageType.LOCAL),
            ("filesystem", StorageType.LOCAL),
            ("s3", StorageType.S3),
            ("objectstore", StorageType.S3),
            ("azure", StorageType.AZURE),
            ("blobstore", StorageType.AZURE),
            (StorageType.S3, StorageType.S3),
        ],
    )
    def test_known_selectors(self, selector, expected):
        """Canonical names and aliases resolve to the same backend."""
        assert parse_storage_type(selector) is expected

    def test_unknown_selector(self):
        """Unknown selectors list the valid choices."""
        with pytest.raises(UnsupportedBackendError, match="local, s3, azure"):
            parse_storage_type("gcs")

    def test_unknown_selector_is_value_error(self):
        with pytest.raises(ValueError):
            create_storage("ftp")


@pytest.mark.unit
class TestCaching:
    """Test that backends are cached per (type, options)."""

    def test_same_options_same_instance(self, local_options):
        """Equal type and options reuse one backend instance."""
        first = create_storage("local", local_options)
        second = create_storage(StorageType.LOCAL, local_options)

        assert isinstance(first, LocalStorageBackend)
        assert first is second

    def test_mapping_equal_to_model_shares_instance(self, local_options):
        """A plain mapping equal to the model resolves to the cached instance."""
        from_model = create_storage("local", local_options)
        from_mapping = create_storage(
            "filesystem",
            {"root_path": local_options.root_path, "base_url": local_options.base_url},
        )

        assert from_model is from_mapping

    def test_different_options_different_instance(self, tmp_path):
        first = create_storage("local", {"root_path": str(tmp_path / "a")})
        second = create_storage("local", {"root_path": str(tmp_path / "b")})

        assert first is not second
        assert first.root_path != second.root_path

    def test_strategy_callables_compared_by_identity(self, tmp_path):
        def name_a(file, request):
            return "a"

        def name_b(file, request):
            return "a"

        root = str(tmp_path)
        assert create_storage("local", {"root_path": root, "file_name": name_a}) is create_storage(
            "local", {"root_path": root, "file_name": name_a}
        )
        assert create_storage("local", {"root_path": root, "file_name": name_a}) is not create_storage(
            "local", {"root_path": root, "file_name": name_b}
        )

    def test_clear_cache(self, local_options):
        """clear_cache() forces a new instance on the next request."""
        first = create_storage("local", local_options)
        clear_cache()
        second = create_storage("local", local_options)

        assert first is not second


@pytest.mark.unit
class TestOptionsValidation:
    """Test option coercion and rejection."""

    def test_default_local_options(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        storage = create_storage("local")
        assert storage.root_path == str(tmp_path / "public")

    def test_mapping_is_validated(self):
        options = get_backend_options("s3", S3_SETTINGS)
        assert isinstance(options, S3StorageOptions)
        assert options.bucket == "my-bucket"

    def test_foreign_options_model_rejected(self, local_options):
        """Options for one backend cannot configure another."""
        with pytest.raises(UnsupportedBackendError, match="LocalStorageOptions"):
            create_storage("s3", local_options)

    def test_mixed_backend_fields_rejected(self, tmp_path):
        """Unknown fields (e.g. S3 settings in a local block) fail validation."""
        with pytest.raises(ValidationError):
            create_storage("local", {"root_path": str(tmp_path), "bucket": "my-bucket"})

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError):
            get_backend_options("azure", {"account": "acct"})

    def test_blank_bucket_rejected(self):
        with pytest.raises(ValidationError):
            get_backend_options("s3", {**S3_SETTINGS, "bucket": "  "})

    def test_options_are_frozen(self, local_options):
        with pytest.raises(ValidationError):
            local_options.base_url = "http://other"


@pytest.mark.unit
class TestLazyBackends:
    """Test optional backends and missing client libraries."""

    def test_s3_backend_built_with_mapping(self, mocker):
        boto_client = mocker.patch("stowage.storage.s3.boto3.client")

        storage = create_storage("s3", S3_SETTINGS)

        assert type(storage).__name__ == "S3StorageBackend"
        assert boto_client.call_args.kwargs["region_name"] == "us-east-1"

    def test_missing_boto3(self, monkeypatch, local_options):
        """Selecting S3 without boto3 names the package; local keeps working."""
        monkeypatch.setitem(sys.modules, "boto3", None)
        monkeypatch.delitem(sys.modules, "stowage.storage.s3", raising=False)

        with pytest.raises(MissingDependencyError, match=r"pip install 'stowage\[s3\]'") as exc_info:
            create_storage("s3", S3_SETTINGS)

        assert exc_info.value.package == "boto3"
        assert isinstance(exc_info.value, ImportError)
        assert isinstance(create_storage("local", local_options), LocalStorageBackend)

    def test_missing_azure_sdk(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "azure.storage.blob", None)
        monkeypatch.delitem(sys.modules, "stowage.storage.azure", raising=False)

        with pytest.raises(MissingDependencyError, match="azure-storage-blob") as exc_info:
            create_storage("azure", {"account": "acct", "account_key": "c2VjcmV0", "container": "media"})

        assert exc_info.value.backend == "azure"

    def test_available_backends(self):
        available = available_backends()
        assert StorageType.LOCAL in available
        assert StorageType.S3 in available
        assert StorageType.AZURE in available


@pytest.mark.unit
class TestRegistry:
    """Test registering replacement backends."""

    def test_register_backend(self, isolated_registry, local_options):
        original = create_storage("local", local_options)

        register_backend(
            "local",
            BackendSpec(__name__, "RecordingBackend", LocalStorageOptions),
        )
        replaced = create_storage("local", local_options)

        assert type(original) is LocalStorageBackend
        assert type(replaced) is RecordingBackend

    def test_register_backend_requirement_reported(self, isolated_registry):
        register_backend(
            StorageType.S3,
            BackendSpec("stowage_missing_module", "Backend", S3StorageOptions, requires="stowage-missing"),
        )

        with pytest.raises(MissingDependencyError, match="stowage-missing"):
            create_storage("s3", S3_SETTINGS)

    def test_unprobed_backend_always_available(self, isolated_registry):
        register_backend("azure", BackendSpec(__name__, "RecordingBackend", LocalStorageOptions))
        assert StorageType.AZURE in available_backends()
