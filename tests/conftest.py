#!/usr/bin/env python3
"""
Global pytest configuration and fixtures.

This module provides:
- Common test fixtures (temporary sync directory, config, fake remote)
- Test environment isolation from the user's real sync directory
"""

import os
import sys
import tempfile
import shutil
from datetime import date
from typing import Generator

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mdtask_sync.core.models import RemoteProject, SyncConfig  # noqa: E402
from mdtask_sync.sync.engine import SyncEngine  # noqa: E402
from tests.e2e.fake_remote_client import FakeRemoteClient  # noqa: E402


TODAY = date(2026, 3, 10)


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    """Keep default paths away from the real home directory."""
    monkeypatch.setenv("MDTASK_SYNC_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("TODOIST_API_TOKEN", raising=False)


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for test isolation."""
    temp_path = tempfile.mkdtemp(prefix="mdtask_sync_test_")
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def config(temp_dir: str) -> SyncConfig:
    """SyncConfig pointing every path into the temp directory."""
    return SyncConfig(sync_dir=temp_dir, api_token="test-token")


@pytest.fixture
def fake_client() -> FakeRemoteClient:
    """In-memory remote with one existing project."""
    return FakeRemoteClient(projects=[RemoteProject(id="p-work", name="work")])


@pytest.fixture
def engine_factory(config, fake_client):
    """Build a fresh engine per pass, like the runner does."""
    def _make(client=None) -> SyncEngine:
        return SyncEngine(config, client or fake_client, today=TODAY)
    return _make


def write_tasks(config: SyncConfig, *lines: str) -> None:
    """Write a task file with the standard header."""
    with open(config.tasks_path, "w", encoding="utf-8") as handle:
        handle.write("# tasks\n\n")
        for line in lines:
            handle.write(line + "\n")


def read_task_lines(config: SyncConfig):
    """Task lines of the task file, header excluded."""
    with open(config.tasks_path, "r", encoding="utf-8") as handle:
        return [line.rstrip("\n") for line in handle if line.startswith("- [")]
