"""
Shimo Comments Module
"""

from typing import List

from shimo_sync.constants import COMMENTS_URL_TEMPLATE
from shimo_sync.errors import ShimoAPIError
from shimo_sync.models import Comment


class CommentOperationsMixin:
    """Mixin class providing comment retrieval for ShimoClient."""

    def list_comments(self, file_guid: str) -> List[Comment]:
        """Fetch the flat comment list of a document, in server order."""
        data = self._get_json(COMMENTS_URL_TEMPLATE.format(guid=file_guid), headers=self.folder_headers)
        if not isinstance(data, list):
            raise ShimoAPIError(f"解析评论数据失败：期望列表，实际为 {type(data).__name__}")
        return [Comment.from_dict(entry) for entry in data if isinstance(entry, dict)]
