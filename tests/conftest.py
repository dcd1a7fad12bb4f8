"""Shared pytest fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from minigit import base, data


@pytest.fixture
def repo(tmp_path, monkeypatch):
    """An initialized repository in a temporary directory (also the cwd)."""
    monkeypatch.chdir(tmp_path)
    with data.change_git_dir(str(tmp_path)):
        base.init()
        yield tmp_path


@pytest.fixture
def clock():
    """Deterministic, strictly increasing commit times."""
    start = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    ticks = iter(range(10_000))
    return lambda: start + timedelta(seconds=next(ticks))


def snapshot_files(tmp_path):
    """All files under the repository directory, relative, with their bytes."""
    git_dir = tmp_path / '.minigit'
    return {
        str(p.relative_to(git_dir)): p.read_bytes()
        for p in sorted(git_dir.rglob('*'))
        if p.is_file()
    }
