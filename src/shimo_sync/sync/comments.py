"""
Comment Aggregation Module

Groups a document's flat comment list by the text selection each comment
annotates and writes the result next to the document.
"""

import json
import os
from typing import Dict, Iterable, List

from shimo_sync.constants import COMMENTS_FILE_NAME
from shimo_sync.errors import CommentFetchError, ShimoAPIError
from shimo_sync.logger import logger
from shimo_sync.models import Comment, CommentGroup


def group_comments(comments: Iterable[Comment]) -> List[CommentGroup]:
    """Group comments by selection guid.

    Comments without a selection are dropped. The first comment of a
    selection supplies its text; groups come out in first-seen order and
    keep the source order of their comments.
    """
    groups: Dict[str, CommentGroup] = {}
    for comment in comments:
        if not comment.selection_guid:
            continue
        group = groups.get(comment.selection_guid)
        if group is None:
            group = CommentGroup(comment.selection_guid, comment.selection_content)
            groups[comment.selection_guid] = group
        group.add(comment)
    return list(groups.values())


class CommentAggregator:
    """Fetches, groups and persists comments for one document at a time."""

    def __init__(self, client):
        self.client = client

    def save(self, file_guid: str, comment_dir: str) -> str:
        """Regenerate comment_dir/comments.json for a document.

        Returns:
            Path of the written file

        Raises:
            CommentFetchError: Fetch, parse or write failed
        """
        try:
            comments = self.client.list_comments(file_guid)
        except ShimoAPIError as e:
            raise CommentFetchError(f"获取评论数据失败：{e}") from e

        try:
            groups = group_comments(comments)
        except (TypeError, AttributeError, ValueError) as e:
            raise CommentFetchError(f"解析评论数据失败：{e}") from e
        comment_path = os.path.join(comment_dir, COMMENTS_FILE_NAME)
        try:
            os.makedirs(comment_dir, exist_ok=True)
            with open(comment_path, "w", encoding="utf-8") as f:
                json.dump([g.to_dict() for g in groups], f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise CommentFetchError(f"写入评论文件失败：{e}") from e

        logger.info(f"已保存评论数据到：{comment_path}（{len(groups)} 组）", icon="💬")
        return comment_path
