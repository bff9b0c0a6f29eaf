"""
Exception types raised by the sync pipeline.

Everything except WatermarkReached derives from SyncError so callers can
isolate per-item failures with a single except clause.
"""

from typing import Optional


class SyncError(Exception):
    """Base class for sync failures."""


class ConfigError(SyncError):
    """Config file missing or malformed."""


class ShimoAPIError(SyncError):
    """Transport failure or unreadable API response."""


class RateLimitedError(ShimoAPIError):
    """The export endpoint reported too many requests."""

    def __init__(self, message: str, wait_seconds: Optional[float] = None):
        super().__init__(message)
        self.wait_seconds = wait_seconds


class DownloadLinkError(SyncError):
    """The export response carried no usable link."""


class TransferError(SyncError):
    """Downloading file content failed."""


class ConversionError(SyncError):
    """The Markdown converter failed."""


class CommentFetchError(SyncError):
    """Comments could not be fetched, parsed or written."""


class UnsupportedTypeError(SyncError):
    """The remote item type has no local extension."""

    def __init__(self, item_type: str):
        super().__init__(f"不支持的类型: {item_type}")
        self.item_type = item_type


class RetryExhaustedError(SyncError):
    """Per-item pipeline still failing after every retry."""

    def __init__(self, name: str, attempts: int, last_error: Optional[Exception] = None):
        super().__init__(f"多次重试后仍然失败：{name} ({attempts} 次)")
        self.name = name
        self.attempts = attempts
        self.last_error = last_error


class WatermarkReached(Exception):
    """Traversal reached an item at or before the last sync time.

    Raised from any recursion depth and handled by the top-level driver as a
    successful stop.
    """

    def __init__(self, item_name: str, updated_at):
        super().__init__(f"已同步至上次更新时间：{item_name} ({updated_at})")
        self.item_name = item_name
        self.updated_at = updated_at
