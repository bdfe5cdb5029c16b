"""Shared pytest fixtures for vaultfs tests."""

from __future__ import annotations

from pathlib import PurePosixPath
from unittest.mock import MagicMock

import pytest

from vaultfs.core.nio import FakeNativeFileSystem, NativeFilesystemGateway

# ============================================================================
# Port Doubles
# ============================================================================


@pytest.fixture
def native() -> MagicMock:
    """Mock native filesystem port; every call succeeds unless configured."""
    port = MagicMock(name="native")
    port.separator = "/"
    return port


@pytest.fixture
def gateway(native: MagicMock) -> NativeFilesystemGateway:
    """Gateway wired to the mock port."""
    return NativeFilesystemGateway(native)


@pytest.fixture
def fake() -> FakeNativeFileSystem:
    """Provide fresh FakeNativeFileSystem instance."""
    return FakeNativeFileSystem()


@pytest.fixture
def fake_gateway(fake: FakeNativeFileSystem) -> NativeFilesystemGateway:
    """Gateway wired to the in-memory port."""
    return NativeFilesystemGateway(fake)


# ============================================================================
# Path Fixtures
# ============================================================================


@pytest.fixture
def path() -> PurePosixPath:
    return PurePosixPath("/vault/d/file")


@pytest.fixture
def other_path() -> PurePosixPath:
    return PurePosixPath("/vault/d/other")


@pytest.fixture
def vault_root() -> PurePosixPath:
    return PurePosixPath("/vault")
