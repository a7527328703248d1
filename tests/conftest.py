import stat
import sys
from pathlib import Path

import pytest

# Modules live flat under python/
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "python"))


@pytest.fixture
def make_script(tmp_path):
    """Write an executable /bin/sh script and return its path."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _make(name, body):
        path = bin_dir / name
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("NR_CPUS", "MAKE", "CARGO", "HWDB_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
