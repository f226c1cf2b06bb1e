"""Tests for startup storage backend selection."""

import pytest

from bizpilot.config import Settings
from bizpilot.db.config import BACKEND_DATABASE, BACKEND_MEMORY, select_storage_backend


def test_memory_requested():
    assert select_storage_backend(Settings(storage_backend="memory", database_url="sqlite://")) == (BACKEND_MEMORY, None)


def test_auto_without_url_uses_memory():
    assert select_storage_backend(Settings(storage_backend="auto")) == (BACKEND_MEMORY, None)


def test_database_without_url_fails():
    with pytest.raises(RuntimeError, match="requires DATABASE_URL"):
        select_storage_backend(Settings(storage_backend="database"))


def test_auto_with_reachable_database():
    backend, engine = select_storage_backend(Settings(storage_backend="auto", database_url="sqlite://"))
    assert backend == BACKEND_DATABASE
    assert engine is not None
    engine.dispose()


def test_auto_with_unreachable_database_uses_memory(tmp_path):
    url = f"sqlite:///{tmp_path}/missing/dir/app.db"
    assert select_storage_backend(Settings(storage_backend="auto", database_url=url)) == (BACKEND_MEMORY, None)


def test_database_unreachable_fails(tmp_path):
    url = f"sqlite:///{tmp_path}/missing/dir/app.db"
    with pytest.raises(RuntimeError, match="unreachable"):
        select_storage_backend(Settings(storage_backend="database", database_url=url))
