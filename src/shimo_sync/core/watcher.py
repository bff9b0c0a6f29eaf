"""
Config Watcher

Background thread that polls the config file's mtime and swaps in a fresh
snapshot when it changes.
"""

import threading
from typing import Callable, Optional

from shimo_sync.config import ConfigStore
from shimo_sync.constants import CONFIG_RELOAD_INTERVAL
from shimo_sync.errors import ConfigError
from shimo_sync.logger import logger


class ConfigWatcher:
    """Periodically reloads a ConfigStore.

    Runs as a daemon thread so it never keeps the process alive after the
    traversal finishes.
    """

    def __init__(self, store: ConfigStore, interval: float = CONFIG_RELOAD_INTERVAL,
                 on_reload: Optional[Callable[[], None]] = None):
        self.store = store
        self.interval = interval
        self.on_reload = on_reload
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="config-watcher", daemon=True)
        self._thread.start()
        logger.debug(f"配置监听已启动，间隔 {self.interval}s")

    def stop(self, timeout: Optional[float] = None):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)

    def check(self) -> bool:
        """Run a single poll. Returns True if the config was reloaded."""
        try:
            reloaded = self.store.reload_if_changed()
        except OSError as e:
            logger.error(f"获取配置文件修改时间出错：{e}")
            return False
        except ConfigError as e:
            logger.error(f"重新加载配置文件出错：{e}")
            return False

        if reloaded and self.on_reload:
            self.on_reload()
        return reloaded

    def _run(self):
        while not self._stop.wait(self.interval):
            self.check()
