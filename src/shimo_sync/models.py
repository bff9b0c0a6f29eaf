"""
Data models for remote Shimo entities.

Only the fields the sync pipeline reads are modeled; unknown keys in API
responses are ignored.
"""

import json
from datetime import datetime
from typing import Any, Dict, List

from shimo_sync.errors import ShimoAPIError
from shimo_sync.utils import parse_item_time


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class Item:
    """A file or folder entry returned by the listing endpoint."""

    def __init__(self, name: str, type: str, guid: str, is_folder: bool = False, updated_at: str = ""):
        self.name = name
        self.type = type
        self.guid = guid
        self.is_folder = is_folder
        self.updated_at = updated_at

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        return cls(
            name=_text(data.get("name")),
            type=_text(data.get("type")),
            guid=_text(data.get("guid")),
            is_folder=bool(data.get("is_folder", False)),
            updated_at=_text(data.get("updatedAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "guid": self.guid,
            "is_folder": self.is_folder,
            "updatedAt": self.updated_at,
        }

    def modified_time(self) -> datetime:
        """Raises ValueError if updatedAt is not a timezone-aware RFC 3339 instant."""
        return parse_item_time(self.updated_at)

    def __repr__(self):
        kind = "folder" if self.is_folder else self.type
        return f"Item({self.name!r}, {kind}, {self.guid})"


class Comment:
    """One entry of a document's flat comment list."""

    def __init__(self, id: int, target_guid: str, comment_guid: str, content: str,
                 name: str = "", selection_guid: str = "", selection_content: str = "",
                 reply_to: str = ""):
        self.id = id
        self.target_guid = target_guid
        self.comment_guid = comment_guid
        self.content = content
        self.name = name
        self.selection_guid = selection_guid
        self.selection_content = selection_content
        self.reply_to = reply_to

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        user = data.get("User")
        if not isinstance(user, dict):
            user = {}
        return cls(
            id=data.get("id", 0),
            target_guid=_text(data.get("targetGuid")),
            comment_guid=_text(data.get("commentGuid")),
            content=_text(data.get("content")),
            name=_text(user.get("name")),
            selection_guid=_text(data.get("selectionGuid")),
            selection_content=_text(data.get("selectionContent")),
            reply_to=_text(data.get("replyTo")),
        )


class CommentGroup:
    """Comments attached to the same text selection, in source order."""

    def __init__(self, selection_guid: str, selection_content: str):
        self.selection_guid = selection_guid
        self.selection_content = selection_content
        self.comments: List[Dict[str, str]] = []

    def add(self, comment: Comment):
        self.comments.append({
            "commentGuid": comment.comment_guid,
            "content": comment.content,
            "name": comment.name,
            "replyTo": comment.reply_to,
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selectionGuid": self.selection_guid,
            "selectionContent": self.selection_content,
            "comments": list(self.comments),
        }


def parse_items(payload: Any) -> List[Item]:
    if not isinstance(payload, list):
        raise ShimoAPIError(f"解析响应失败：期望文件列表，实际为 {type(payload).__name__}")
    return [Item.from_dict(entry) for entry in payload if isinstance(entry, dict)]


def save_items_to_file(items: List[Item], filename: str):
    """Dump a folder listing to a JSON file."""
    with open(filename, "w", encoding="utf-8") as f:
        json.dump([item.to_dict() for item in items], f, indent=2, ensure_ascii=False)


def read_items_from_file(filename: str) -> List[Item]:
    """Load a listing written by save_items_to_file."""
    with open(filename, "r", encoding="utf-8") as f:
        return parse_items(json.load(f))
