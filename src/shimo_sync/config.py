"""
Configuration Module

Loads the JSON config store and keeps the active snapshot in a lock-guarded
cell so the reload watcher can swap it while a sync is running.

Config file format (keys kept compatible with existing config.json files):

    {
      "Cookie": "shimo_sid=...",
      "Path": "/data/shimo",
      "Folder": "",
      "Lasttime": 1700000000,
      "Sleep": 1000,
      "Retry": 3,
      "Recursive": true,
      "KeepSource": false
    }
"""

import json
import os
import threading
from typing import Any, Dict, Optional

import keyring
from keyring.errors import KeyringError
from dotenv import load_dotenv

from shimo_sync.constants import COOKIE_ENV_VAR, KEYRING_COOKIE_KEY, KEYRING_SERVICE
from shimo_sync.errors import ConfigError
from shimo_sync.logger import logger

load_dotenv()


class SyncConfig:
    """Immutable snapshot of the sync settings."""

    __slots__ = ("cookie", "path", "folder", "lasttime", "sleep", "retry", "recursive", "keep_source")

    def __init__(self, cookie: str = "", path: str = ".", folder: str = "", lasttime: int = 0,
                 sleep: int = 0, retry: int = 0, recursive: bool = False, keep_source: bool = False):
        object.__setattr__(self, "cookie", cookie)
        object.__setattr__(self, "path", path)
        object.__setattr__(self, "folder", folder)
        object.__setattr__(self, "lasttime", int(lasttime))
        object.__setattr__(self, "sleep", int(sleep))
        object.__setattr__(self, "retry", max(int(retry), 0))
        object.__setattr__(self, "recursive", bool(recursive))
        object.__setattr__(self, "keep_source", bool(keep_source))

    def __setattr__(self, key, value):
        raise AttributeError("SyncConfig is read-only; build a new snapshot instead")

    @property
    def sleep_seconds(self) -> float:
        """Inter-request delay; the store holds milliseconds."""
        return self.sleep / 1000.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncConfig":
        try:
            return cls(
                cookie=data.get("Cookie", ""),
                path=data.get("Path", "."),
                folder=data.get("Folder", ""),
                lasttime=data.get("Lasttime", 0),
                sleep=data.get("Sleep", 0),
                retry=data.get("Retry", 0),
                recursive=data.get("Recursive", False),
                keep_source=data.get("KeepSource", False),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"配置字段类型错误: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Cookie": self.cookie,
            "Path": self.path,
            "Folder": self.folder,
            "Lasttime": self.lasttime,
            "Sleep": self.sleep,
            "Retry": self.retry,
            "Recursive": self.recursive,
            "KeepSource": self.keep_source,
        }

    def masked(self) -> Dict[str, Any]:
        """Printable form with the credential hidden."""
        data = self.to_dict()
        if data["Cookie"]:
            data["Cookie"] = data["Cookie"][:6] + "***"
        return data

    def __eq__(self, other):
        return isinstance(other, SyncConfig) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"SyncConfig({self.masked()})"


# ============================================================
# Secure Cookie Storage (keyring)
# ============================================================
def load_cookie_from_keyring() -> Optional[str]:
    try:
        return keyring.get_password(KEYRING_SERVICE, KEYRING_COOKIE_KEY)
    except KeyringError as e:
        logger.debug(f"读取 keyring 失败: {e}")
        return None


def save_cookie(cookie: str) -> bool:
    """Store the Shimo cookie in the system keyring."""
    try:
        keyring.set_password(KEYRING_SERVICE, KEYRING_COOKIE_KEY, cookie)
        return True
    except KeyringError as e:
        logger.error(f"保存 Cookie 到 keyring 失败: {e}")
        return False


def resolve_cookie(file_cookie: str) -> str:
    """Keyring beats the environment, the environment beats the file."""
    return load_cookie_from_keyring() or os.getenv(COOKIE_ENV_VAR) or file_cookie


# ============================================================
# Configuration Loading
# ============================================================
def load_config(config_path: str, overrides: Optional[Dict[str, Any]] = None) -> SyncConfig:
    """Read the config file and build a snapshot.

    Args:
        config_path: Path to the JSON config store
        overrides: Raw-key values (e.g. {"Folder": "abc"}) applied on top of the file

    Raises:
        ConfigError: If the file is missing, unreadable or not a JSON object
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"解析配置文件出错：{e}") from e
    except OSError as e:
        raise ConfigError(f"无法读取配置文件：{e}") from e

    if not isinstance(data, dict):
        raise ConfigError("配置文件必须是 JSON 对象")

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    data["Cookie"] = resolve_cookie(data.get("Cookie", ""))
    return SyncConfig.from_dict(data)


def get_config_mtime(config_path: str) -> float:
    return os.stat(config_path).st_mtime


class ConfigStore:
    """Owns the active SyncConfig and replaces it atomically on reload."""

    def __init__(self, config_path: str, overrides: Optional[Dict[str, Any]] = None):
        self.config_path = config_path
        self.overrides = dict(overrides or {})
        self._lock = threading.Lock()
        self._config = load_config(config_path, self.overrides)
        self._mtime = get_config_mtime(config_path)

    def get(self) -> SyncConfig:
        with self._lock:
            return self._config

    @property
    def mtime(self) -> float:
        with self._lock:
            return self._mtime

    def reload_if_changed(self) -> bool:
        """Reload when the file's mtime moved forward.

        Returns:
            True if a new snapshot was installed. A file that fails to load
            leaves the current snapshot active and is retried on the next check.
        """
        new_mtime = get_config_mtime(self.config_path)
        if new_mtime <= self.mtime:
            return False

        logger.info("检测到配置文件已修改，重新加载配置。", icon="🔄")
        new_config = load_config(self.config_path, self.overrides)
        with self._lock:
            self._config = new_config
            self._mtime = new_mtime
        logger.debug(f"配置：{new_config.masked()}")
        return True
