from __future__ import annotations

import pytest

from tests.fs_mock import MemoryFileSystem


@pytest.fixture
def memfs() -> MemoryFileSystem:
    return MemoryFileSystem()
