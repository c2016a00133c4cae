"""Shared pytest fixtures for diboot tests."""

import pytest

from diboot.container import Container
from diboot.lock_mode import LockMode


@pytest.fixture()
def container() -> Container:
    """Default container without locking."""
    return Container()


@pytest.fixture()
def threaded_container() -> Container:
    """Container guarding singleton construction with per-key locks."""
    return Container(lock_mode=LockMode.THREAD)


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"
