"""Shared fixtures for asset pipeline tests."""
import os
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from asset_pipeline.infra.common.clock import Clock
from asset_pipeline.infra.environment import Environment


class FakeClock(Clock):
    """Clock with a controllable time and predictable tokens."""
    
    def __init__(self, now: datetime | None = None):
        self.current = now or datetime.now(timezone.utc)
        self.tokens = 0
    
    def now(self) -> datetime:
        return self.current
    
    def now_iso(self) -> str:
        return self.current.isoformat()
    
    def generate_token(self) -> str:
        self.tokens += 1
        return f"{self.tokens:032x}"
    
    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def root(tmp_path):
    """Resolved temporary directory (no symlinks in the prefix)."""
    return Path(os.path.realpath(tmp_path))


@pytest.fixture
def load_path(root):
    """Single load path directory."""
    path = root / "assets"
    path.mkdir()
    return str(path)


@pytest.fixture
def output_dir(root):
    """Output directory for compiled assets."""
    return str(root / "public")


@pytest.fixture
def write_file(load_path):
    """Write a source file under the load path and return its absolute path."""
    base = time.time() - 1000
    
    def _write(relative: str, text: str, mtime: float | None = None, base_dir: str | None = None) -> str:
        path = Path(base_dir or load_path) / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.encode("utf-8"))
        stamp = base if mtime is None else mtime
        os.utime(path, (stamp, stamp))
        return str(path)
    
    return _write


@pytest.fixture
def environment(load_path):
    """Environment over the single load path."""
    return Environment([load_path])


@pytest.fixture
def clock():
    """Fake clock."""
    return FakeClock()
