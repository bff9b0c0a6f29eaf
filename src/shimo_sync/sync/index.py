"""
Local File Index Module
Snapshot of local files and their modification times, used for change detection.
"""

import os
from datetime import datetime, timezone
from typing import Dict, Optional

from shimo_sync.logger import logger


class LocalFileIndex:
    """
    Maps paths relative to the local root to last-modified instants.

    Built once before the first sync pass. Files written during the run are
    not added, so a document's freshness is always judged against the state
    the run started from.
    """

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        self._index: Dict[str, datetime] = {}
        self._build_index()

    def _build_index(self) -> None:
        if not os.path.isdir(self.root):
            logger.warning(f"本地目录不存在，按空目录处理: {self.root}")
            return

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._on_walk_error):
            dirnames[:] = [d for d in dirnames if not d.startswith('.')]
            for filename in filenames:
                if filename.startswith('.'):
                    continue
                full_path = os.path.join(dirpath, filename)
                try:
                    mtime = os.path.getmtime(full_path)
                except OSError as e:
                    logger.warning(f"无法读取文件信息 {full_path}: {e}")
                    continue
                rel_path = os.path.relpath(full_path, self.root)
                self._index[rel_path] = datetime.fromtimestamp(mtime, tz=timezone.utc)

        logger.debug(f"本地文件索引构建完成: {len(self._index)} 个文件")

    @staticmethod
    def _on_walk_error(error: OSError):
        logger.warning(f"获取本地文件列表出错：{error}")

    def relative_path(self, path: str) -> str:
        """Path relative to the index root, in the same form as the index keys."""
        return os.path.relpath(os.path.abspath(path), self.root)

    def get(self, rel_path: str) -> Optional[datetime]:
        return self._index.get(os.path.normpath(rel_path))

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, rel_path: str) -> bool:
        return os.path.normpath(rel_path) in self._index
