"""
Pytest configuration and shared fixtures.
"""

import json
import os
import shutil
import sys
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Generator
from unittest.mock import MagicMock

import pytest

# Add src/ to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from shimo_sync.config import SyncConfig  # noqa: E402

# 2023-11-14T22:13:20Z
WATERMARK = 1700000000


@pytest.fixture(autouse=True)
def isolated_credentials(monkeypatch):
    """Keep the developer's keyring and environment out of every test."""
    monkeypatch.setattr("shimo_sync.config.load_cookie_from_keyring", lambda: None)
    monkeypatch.delenv("SHIMO_COOKIE", raising=False)


@pytest.fixture
def temp_root() -> Generator[str, None, None]:
    """Create a temporary local mirror root."""
    root = tempfile.mkdtemp(prefix="test_shimo_")
    yield root
    shutil.rmtree(root, ignore_errors=True)


@pytest.fixture
def config_file(temp_root) -> str:
    """Write a config.json pointing at temp_root."""
    path = os.path.join(temp_root, "config.json")
    data = {
        "Cookie": "shimo_sid=abc123",
        "Path": os.path.join(temp_root, "mirror"),
        "Folder": "root_folder",
        "Lasttime": WATERMARK,
        "Sleep": 0,
        "Retry": 2,
        "Recursive": True,
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)
    return path


@pytest.fixture
def make_config(temp_root):
    """Factory for config snapshots rooted at temp_root."""
    def _make(**kwargs) -> SyncConfig:
        params: Dict[str, Any] = {
            "cookie": "shimo_sid=abc123",
            "path": temp_root,
            "folder": "root",
            "lasttime": WATERMARK,
            "sleep": 100,
            "retry": 2,
            "recursive": True,
        }
        params.update(kwargs)
        return SyncConfig(**params)
    return _make


def item_dict(name: str, updated_at: str, type: str = "newdoc", guid: str = None,
              is_folder: bool = False) -> Dict[str, Any]:
    """Build a listing entry shaped like the files endpoint response."""
    return {
        "name": name,
        "type": "folder" if is_folder else type,
        "guid": guid or f"guid_{name}",
        "is_folder": is_folder,
        "updatedAt": updated_at,
    }


def set_mtime(path: str, when: datetime):
    ts = when.replace(tzinfo=timezone.utc).timestamp() if when.tzinfo is None else when.timestamp()
    os.utime(path, (ts, ts))


@pytest.fixture
def fake_client():
    """MagicMock client whose downloads write a small file to the target path."""
    client = MagicMock()
    client.get_download_url.side_effect = lambda item: f"https://cdn.example/{item.guid}"

    def _download(url, save_path):
        os.makedirs(os.path.dirname(save_path), exist_ok=True)
        with open(save_path, "wb") as f:
            f.write(b"PK\x03\x04")
    client.download_file.side_effect = _download
    client.list_comments.return_value = []
    return client


@pytest.fixture
def fake_converter():
    """MagicMock converter that writes the Markdown output."""
    converter = MagicMock()

    def _convert(source_path, md_path):
        with open(md_path, "w", encoding="utf-8") as f:
            f.write("# converted\n")
    converter.convert.side_effect = _convert
    return converter
