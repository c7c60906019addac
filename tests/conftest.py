"""
Pytest configuration and shared fixtures for profile migration tests.

Provides legacy store layouts on disk and mocks for the registry importer.
"""

import zipfile
import pytest
from unittest.mock import MagicMock, patch
from pathlib import Path
from typing import Dict
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

HEADER = "Windows Registry Editor Version 5.00"


# ============ Helpers ============

def write_tree(root: Path, files: Dict[str, str]) -> Path:
    """Create files (and their parents) under root."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


def make_zip(path: Path, files: Dict[str, str]) -> Path:
    """Create a zip archive containing the given files."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


def set_compression_method(path: Path, method: int) -> Path:
    """Rewrite the compression method recorded in every central directory entry."""
    data = bytearray(path.read_bytes())
    offset = data.find(b"PK\x01\x02")
    while offset != -1:
        data[offset + 10:offset + 12] = method.to_bytes(2, "little")
        offset = data.find(b"PK\x01\x02", offset + 4)
    path.write_bytes(bytes(data))
    return path


    return path


# ============ Registry Fixtures ============

@pytest.fixture
def registry_lines():
    """A small export with three key blocks."""
    return [
        HEADER,
        "",
        "[HKEY_CURRENT_USER\\Software\\Vendor]",
        '"Theme"="dark"',
        "",
        "[HKEY_CURRENT_USER\\Software\\Vendor\\Cache]",
        '"Size"=dword:00000010',
        "",
        "[HKEY_CURRENT_USER\\Control Panel\\Desktop]",
        '"Wallpaper"="C:\\\\wall.jpg"',
        "",
    ]


# ============ Store Fixtures ============

@pytest.fixture
def share_root(tmp_path: Path) -> Path:
    """Empty root share."""
    root = tmp_path / "share"
    root.mkdir()
    return root


@pytest.fixture
def local_profile(tmp_path: Path) -> Path:
    profile = tmp_path / "local"
    profile.mkdir()
    return profile


@pytest.fixture
def user_temp(tmp_path: Path) -> Path:
    temp = tmp_path / "temp"
    temp.mkdir()
    return temp


@pytest.fixture
def export_text():
    return "\r\n".join([
        HEADER,
        "",
        "[HKEY_USERS\\LegacyProfile\\Software\\Vendor]",
        '"Theme"="dark"',
        "",
        "[HKEY_USERS\\LegacyProfile\\Software\\Other]",
        '"Key"="value"',
        "",
    ])


@pytest.fixture
def managed_store(share_root: Path, export_text: str) -> Path:
    """Managed store for user 'jdoe' with an export and a data tree."""
    store = share_root / "Managed" / "jdoe"
    write_tree(store, {
        "settings.reg": export_text,
        "Data/Documents/report.txt": "report",
        "Data/Documents/notes.txt": "notes",
        "Data/Favorites/links.url": "links",
    })
    return store


@pytest.fixture
def archived_store(share_root: Path, export_text: str) -> Path:
    """Archived store for user 'jdoe' with settings and data archives."""
    store = share_root / "Archived" / "jdoe"
    make_zip(store / "settings.zip", {"settings.reg": export_text})
    make_zip(store / "data.zip", {
        "Documents/report.txt": "report",
        "Favorites/links.url": "links",
    })
    return store


# ============ Subprocess Fixtures ============

@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for tests."""
    with patch('subprocess.run') as mock_run:
        mock_run.return_value = MagicMock(
            returncode=0,
            stdout="",
            stderr="",
        )
        yield mock_run


# ============ Marker Configuration ============

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "unit: fast unit tests with no external deps"
    )
    config.addinivalue_line(
        "markers", "integration: tests that run the whole migration on a temp tree"
    )
