"""
Core Module Package

Core functionality used across the application:
- retry: Per-item retry loop with linear backoff
- watcher: Config hot-reload thread

Usage:
    from shimo_sync.core import retry_with_backoff, ConfigWatcher
"""

from shimo_sync.core import retry as retry
from shimo_sync.core.retry import retry_with_backoff, backoff_delay
from shimo_sync.core.watcher import ConfigWatcher

__all__ = ['retry', 'retry_with_backoff', 'backoff_delay', 'ConfigWatcher']
