"""
Sync Engine Module

Mirrors a Shimo folder tree into a local directory.

Remote listings are treated as newest-first: the first item at or before the
watermark ends the whole run, because everything listed after it (in this
folder and in every ancestor) is assumed to be synced already. If the server
ever returns a folder in another order, newer items listed after an old one
are missed until the watermark is lowered.
"""

import os
import time
from typing import Callable, Dict, List, Optional

from shimo_sync.config import SyncConfig
from shimo_sync.constants import CONVERTIBLE_EXTENSIONS, MARKDOWN_EXTENSION
from shimo_sync.converter import PandocConverter
from shimo_sync.core.retry import retry_with_backoff
from shimo_sync.errors import (
    CommentFetchError,
    ConversionError,
    DownloadLinkError,
    ShimoAPIError,
    SyncError,
    TransferError,
    WatermarkReached,
)
from shimo_sync.logger import logger
from shimo_sync.models import Item
from shimo_sync.sync.comments import CommentAggregator
from shimo_sync.sync.index import LocalFileIndex
from shimo_sync.utils import get_extension, sanitize_file_name

# Failures that make a document worth another attempt
RETRYABLE_ERRORS = (ShimoAPIError, DownloadLinkError, TransferError, ConversionError)


class SyncEngine:
    """Walks the remote hierarchy and drives download, convert and comment export."""

    def __init__(self, client, config_provider: Callable[[], SyncConfig], index: LocalFileIndex,
                 converter: Optional[PandocConverter] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            client: ShimoClient (or anything with the same methods)
            config_provider: Returns the current config; called on every use so
                             a hot reload reaches recursion already in progress
            index: Local file snapshot taken before the run
            converter: Markdown converter for .docx downloads
            sleep: Injected for tests
        """
        self.client = client
        self.config_provider = config_provider
        self.index = index
        self.converter = converter or PandocConverter()
        self.comments = CommentAggregator(client)
        self.sleep = sleep
        self.stats: Dict[str, int] = {"synced": 0, "skipped": 0, "unsupported": 0, "failed": 0, "folders": 0}

    @property
    def config(self) -> SyncConfig:
        return self.config_provider()

    def run(self, folder: Optional[str] = None, local_path: Optional[str] = None) -> bool:
        """Sync from the configured root.

        Returns:
            True if the run stopped at the watermark, False if it walked everything

        Raises:
            SyncError: The root folder listing failed
            OSError: The local root could not be created
        """
        config = self.config
        folder = config.folder if folder is None else folder
        local_path = local_path or config.path

        logger.header(f"开始同步: {folder or '桌面'} -> {local_path}", icon="🚀")
        logger.debug("按远端返回顺序处理，假定列表按更新时间倒序")
        os.makedirs(local_path, exist_ok=True)
        try:
            self.sync(folder, local_path)
        except WatermarkReached as e:
            logger.success(f"已同步至上次更新时间，结束。({e.item_name})", icon="🏁")
            return True
        return False

    def sync(self, folder: str, base_path: str):
        """Mirror one remote folder into base_path, recursing into subfolders.

        Raises:
            WatermarkReached: From this folder or any folder below it
            SyncError: The listing for this folder failed
        """
        self.sleep(self.config.sleep_seconds)

        items = self.client.list_files(folder)
        logger.debug(f"{folder or '桌面'}: {len(items)} 项")

        for item in items:
            try:
                self.process_item(item, base_path)
            except (SyncError, OSError) as e:
                logger.error(f"处理项出错：{item.name}: {e}")
                self.stats["failed"] += 1

    def process_item(self, item: Item, base_path: str):
        """Apply the watermark rule, then hand folders and documents off."""
        try:
            modified = item.modified_time()
        except ValueError as e:
            logger.warning(f"解析时间失败：{item.name} {e}")
            self.stats["failed"] += 1
            return

        if modified.timestamp() <= self.config.lasttime:
            raise WatermarkReached(item.name, item.updated_at)

        name = sanitize_file_name(item.name)

        if item.is_folder:
            if not self.config.recursive:
                logger.debug(f"跳过文件夹（未开启递归）：{item.name}")
                return
            folder_path = os.path.join(base_path, name)
            os.makedirs(folder_path, exist_ok=True)
            self.stats["folders"] += 1
            logger.info(f"进入文件夹：{folder_path}", icon="📂")
            self.sync(item.guid, folder_path)
            return

        self.process_file(item, base_path, name)

    def _local_candidates(self, base_path: str, name: str, ext: str) -> List[str]:
        rel_dir = self.index.relative_path(base_path)
        candidates = [os.path.join(rel_dir, f"{name}.{ext}")]
        if ext in CONVERTIBLE_EXTENSIONS:
            candidates.append(os.path.join(rel_dir, f"{name}.{MARKDOWN_EXTENSION}"))
        return candidates

    def is_up_to_date(self, item: Item, base_path: str, name: str, ext: str) -> bool:
        remote_time = item.modified_time()
        for rel_path in self._local_candidates(base_path, name, ext):
            local_time = self.index.get(rel_path)
            if local_time is not None and not remote_time > local_time:
                return True
        return False

    def process_file(self, item: Item, base_path: str, name: str):
        """Fetch one document unless the local copy is current.

        Raises:
            RetryExhaustedError: Every attempt failed
        """
        ext = get_extension(item.type)
        if ext is None:
            logger.error(f"[错误] {item.name} 不支持的类型: {item.type}")
            self.stats["unsupported"] += 1
            return

        local_file = os.path.join(base_path, f"{name}.{ext}")
        if self.is_up_to_date(item, base_path, name, ext):
            logger.info(f"跳过已是最新的文件：{local_file}", icon="⏭️")
            self.stats["skipped"] += 1
            return

        config = self.config
        retry_with_backoff(
            lambda: self.download_and_convert(item, base_path, name, ext),
            max_retries=config.retry,
            base_delay=config.sleep_seconds,
            name=name,
            retryable_exceptions=RETRYABLE_ERRORS,
            sleep=self.sleep,
        )

        try:
            self.comments.save(item.guid, os.path.join(base_path, name))
        except CommentFetchError as e:
            logger.warning(f"下载评论失败：{name}: {e}")

        self.stats["synced"] += 1
        logger.success(f"已同步：{local_file}")

    def download_and_convert(self, item: Item, base_path: str, name: str, ext: str):
        """One attempt: resolve the link, download, convert to Markdown if applicable."""
        self.sleep(self.config.sleep_seconds)

        url = self.client.get_download_url(item)
        source_path = os.path.join(base_path, f"{name}.{ext}")
        self.client.download_file(url, source_path)

        if ext not in CONVERTIBLE_EXTENSIONS:
            return

        md_path = os.path.join(base_path, f"{name}.{MARKDOWN_EXTENSION}")
        self.converter.convert(source_path, md_path)

        if not self.config.keep_source:
            try:
                os.remove(source_path)
            except OSError as e:
                logger.warning(f"无法删除文件：{source_path} ({e})")
