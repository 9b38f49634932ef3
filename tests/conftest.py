import pytest
import logging
import os
import sys
from datetime import datetime

# Ensure proper path setup
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gfsretain.utils.logging_config import logging_manager

NOW = datetime(2024, 6, 15, 12, 0, 0)


def backup_name(host: str, timestamp: datetime, suffix: str = ".tar.gz") -> str:
    """Build a backup filename in the HOST-YYYY-MM-DD-HHMMSS<suffix> format."""
    return f"{host}-{timestamp:%Y-%m-%d-%H%M%S}{suffix}"


@pytest.fixture
def now():
    """Fixed reference time for retention decisions."""
    return NOW


@pytest.fixture
def backup_dir(tmp_path):
    """Return a factory creating a folder filled with empty backup files."""
    def make(names, folder="Machines"):
        path = tmp_path / folder
        path.mkdir(exist_ok=True)
        for name in names:
            (path / name).write_bytes(b"")
        return path
    return make


@pytest.fixture(autouse=True)
def reset_logging():
    """Close handlers installed by configure_logging() during a test."""
    yield
    logging_manager.shutdown()
    logging.getLogger("gfsretain").setLevel(logging.NOTSET)
