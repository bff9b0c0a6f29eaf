"""
Shimo API Client Package

This package provides a modular interface to the Shimo web API.

Package Structure:
    - base.py: Core client (session, auth headers, JSON helper)
    - files.py: Folder listing
    - export.py: Download/export URL resolution
    - comments.py: Document comments
    - media.py: File downloads

Usage:
    from shimo_sync.shimo import ShimoClient

    # Or import specific mixins for custom clients
    from shimo_sync.shimo.base import ShimoClientBase
    from shimo_sync.shimo.export import ExportOperationsMixin
"""

from shimo_sync.shimo.base import ShimoClientBase
from shimo_sync.shimo.files import FileOperationsMixin
from shimo_sync.shimo.export import ExportOperationsMixin
from shimo_sync.shimo.comments import CommentOperationsMixin
from shimo_sync.shimo.media import MediaOperationsMixin


def __getattr__(name):
    """Lazy import ShimoClient to avoid circular import."""
    if name == 'ShimoClient':
        from shimo_sync.shimo_client import ShimoClient
        return ShimoClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'ShimoClient',
    'ShimoClientBase',
    'FileOperationsMixin',
    'ExportOperationsMixin',
    'CommentOperationsMixin',
    'MediaOperationsMixin',
]
