import os
import threading
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table


class LogLevel(Enum):
    """日志级别"""
    DEBUG = 0
    INFO = 1
    SUCCESS = 2
    WARNING = 3
    ERROR = 4


_LEVEL_STYLES = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "blue",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red bold",
}

_ENV_LEVELS = {
    "DEBUG": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "WARNING": LogLevel.WARNING,
    "ERROR": LogLevel.ERROR,
}


class Logger:
    """
    日志记录器（线程安全）

    The config watcher thread logs while the traversal is running, so every
    write goes through a single lock.
    """

    def __init__(self, name: str = "ShimoSync", level: LogLevel = LogLevel.INFO,
                 console: Optional[Console] = None):
        self.name = name
        self.level = _ENV_LEVELS.get(os.getenv("SHIMOSYNC_LOG_LEVEL", "").upper(), level)
        self.console = console or Console()
        self._lock = threading.Lock()

    def set_level(self, level: LogLevel):
        """设置日志级别"""
        self.level = level

    def _should_log(self, level: LogLevel) -> bool:
        return level.value >= self.level.value

    def _log(self, level: LogLevel, icon: str, message: str):
        if not self._should_log(level):
            return

        timestamp = datetime.now().strftime("%H:%M:%S")
        style = _LEVEL_STYLES[level]
        with self._lock:
            # markup=False on the message: remote names may contain [brackets]
            self.console.print(f"[cyan][{timestamp}][/cyan] ", end="")
            self.console.print(f"{icon} {message}", style=style, markup=False, highlight=False)

    def debug(self, message, icon="🔧"):
        """调试信息 - 仅在 DEBUG 模式显示"""
        self._log(LogLevel.DEBUG, icon, message)

    def info(self, message, icon="ℹ️ "):
        self._log(LogLevel.INFO, icon, message)

    def success(self, message, icon="✅"):
        self._log(LogLevel.SUCCESS, icon, message)

    def warning(self, message, icon="⚠️ "):
        self._log(LogLevel.WARNING, icon, message)

    def error(self, message, icon="❌"):
        self._log(LogLevel.ERROR, icon, message)

    def header(self, message, icon=""):
        """打印标题"""
        if not self._should_log(LogLevel.INFO):
            return
        title = f"{icon} {message}" if icon else message
        with self._lock:
            self.console.print(Panel(title, style="bold magenta", width=50))

    def summary_table(self, title: str, data: Dict[str, int]):
        """打印汇总表格

        Args:
            title: 表格标题
            data: 字典，key 为行名，value 为值
        """
        if not self._should_log(LogLevel.INFO):
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("状态", style="dim")
        table.add_column("数量", justify="right")
        for key, value in data.items():
            if "成功" in key or "✅" in key:
                table.add_row(key, f"[green]{value}[/green]")
            elif "失败" in key or "❌" in key:
                table.add_row(key, f"[red]{value}[/red]")
            elif "跳过" in key or "⏭️" in key:
                table.add_row(key, f"[yellow]{value}[/yellow]")
            else:
                table.add_row(key, str(value))

        with self._lock:
            self.console.print(table)


# 全局日志实例
logger = Logger()
