"""
Shimo API client assembled from the operation mixins.
"""

from shimo_sync.shimo.base import ShimoClientBase
from shimo_sync.shimo.comments import CommentOperationsMixin
from shimo_sync.shimo.export import ExportOperationsMixin
from shimo_sync.shimo.files import FileOperationsMixin
from shimo_sync.shimo.media import MediaOperationsMixin


class ShimoClient(FileOperationsMixin, ExportOperationsMixin, CommentOperationsMixin,
                  MediaOperationsMixin, ShimoClientBase):
    """Shimo web API client (cookie authenticated)."""
