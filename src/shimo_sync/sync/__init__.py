"""
Sync Module Package

Mirrors Shimo folders into a local directory.

Structure:
    - engine.py: SyncEngine - recursive traversal and per-document pipeline
    - index.py: LocalFileIndex - local mtime snapshot
    - comments.py: CommentAggregator / group_comments - comment threads by selection

Usage:
    from shimo_sync.sync import SyncEngine, LocalFileIndex
"""

from shimo_sync.sync.engine import SyncEngine
from shimo_sync.sync.index import LocalFileIndex
from shimo_sync.sync.comments import CommentAggregator, group_comments

__all__ = ['SyncEngine', 'LocalFileIndex', 'CommentAggregator', 'group_comments']
