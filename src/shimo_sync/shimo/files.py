"""
Shimo File Listing Module
"""

from typing import List

from shimo_sync.constants import FILES_URL
from shimo_sync.models import Item, parse_items


class FileOperationsMixin:
    """Mixin class providing folder listing for ShimoClient."""

    def list_files(self, folder: str = "") -> List[Item]:
        """List the direct children of a folder.

        Args:
            folder: Folder guid; empty string lists the top-level desktop

        Returns:
            Items in the order the server returned them
        """
        params = {"collaboratorCount": "true"}
        if folder:
            params["folder"] = folder
            headers = self.folder_headers
        else:
            headers = self.desktop_headers

        return parse_items(self._get_json(FILES_URL, params=params, headers=headers))
