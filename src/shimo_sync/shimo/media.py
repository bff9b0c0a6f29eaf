"""
Shimo Media Operations Module

Streams file content to disk with the session's auth headers.
"""

import os

import requests

from shimo_sync.constants import DOWNLOAD_CHUNK_SIZE, DOWNLOAD_TIMEOUT
from shimo_sync.errors import TransferError
from shimo_sync.logger import logger


class MediaOperationsMixin:
    """Mixin class providing file downloads for ShimoClient."""

    def download_file(self, url: str, save_path: str):
        """Download url to save_path, blocking until done.

        Content goes to a .part file first so a failed transfer never
        replaces an existing local copy.

        Raises:
            TransferError: Network failure, non-200 status or local write error
        """
        tmp_path = save_path + ".part"
        logger.info(f"正在下载 {save_path}...", icon="📥")
        try:
            with self.session.get(url, headers=self.folder_headers, stream=True,
                                  timeout=DOWNLOAD_TIMEOUT) as resp:
                if resp.status_code != 200:
                    raise TransferError(f"下载文件出错：HTTP {resp.status_code}")
                os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)
                with open(tmp_path, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
            os.replace(tmp_path, save_path)
        except requests.exceptions.RequestException as e:
            self._discard(tmp_path)
            raise TransferError(f"下载文件出错：{e}") from e
        except OSError as e:
            self._discard(tmp_path)
            raise TransferError(f"写入文件出错：{e}") from e
        except TransferError:
            self._discard(tmp_path)
            raise

    @staticmethod
    def _discard(path: str):
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError as e:
                logger.warning(f"无法删除临时文件 {path}: {e}")
