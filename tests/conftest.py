# SPDX-License-Identifier: MIT
"""Shared pytest fixtures for stowage tests."""

import pathlib

import pytest

from stowage.service import reset_options
from stowage.storage.factory import clear_cache
from stowage.storage.local import LocalStorageBackend
from stowage.storage.options import LocalStorageOptions


@pytest.fixture(autouse=True)
def _isolate_storage_state():
    """Start every test with no module options and an empty backend cache."""
    reset_options()
    clear_cache()
    yield
    reset_options()
    clear_cache()


@pytest.fixture
def upload_root(tmp_path: pathlib.Path) -> pathlib.Path:
    """Root directory for the local backend (not created up front)."""
    return tmp_path / "up"


@pytest.fixture
def local_options(upload_root: pathlib.Path) -> LocalStorageOptions:
    return LocalStorageOptions(root_path=str(upload_root), base_url="http://x/up")


@pytest.fixture
def local_backend(local_options: LocalStorageOptions) -> LocalStorageBackend:
    return LocalStorageBackend(local_options)
