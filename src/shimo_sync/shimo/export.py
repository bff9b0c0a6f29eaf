"""
Shimo Export Module

Resolves a fetchable URL for an item: a direct download link for native
office/pdf files, or an export link for Shimo's own document types.
"""

from typing import Any, Dict

from shimo_sync.constants import DOWNLOAD_URL_TEMPLATE, EXPORT_URL_TEMPLATE, RATE_LIMIT_ERROR_CODE
from shimo_sync.errors import DownloadLinkError, RateLimitedError, UnsupportedTypeError
from shimo_sync.logger import logger
from shimo_sync.models import Item
from shimo_sync.utils import get_extension, is_direct_download_type, parse_wait_seconds


def extract_download_url(data: Dict[str, Any]) -> str:
    """Pick the link out of an export response, or "" if there is none.

    A top-level redirectUrl wins over data.downloadUrl.
    """
    redirect = data.get("redirectUrl")
    if isinstance(redirect, str) and redirect:
        return redirect
    payload = data.get("data")
    if isinstance(payload, dict):
        url = payload.get("downloadUrl")
        if isinstance(url, str) and url:
            return url
    return ""


def is_rate_limited(data: Dict[str, Any]) -> bool:
    return str(data.get("errorCode", "")) == str(RATE_LIMIT_ERROR_CODE)


class ExportOperationsMixin:
    """Mixin class providing download URL resolution for ShimoClient."""

    def get_download_url(self, item: Item) -> str:
        """Return a directly fetchable URL for item.

        Raises:
            UnsupportedTypeError: Unknown item type
            RateLimitedError: Server said too many requests (after waiting, if it said how long)
            DownloadLinkError: Response carried no link
            ShimoAPIError: Network or decoding failure
        """
        if is_direct_download_type(item.type):
            return DOWNLOAD_URL_TEMPLATE.format(guid=item.guid)

        ext = get_extension(item.type)
        if ext is None:
            raise UnsupportedTypeError(item.type)

        params = {
            "type": ext,
            "file": item.guid,
            "returnJson": "1",
            "name": item.name,
            "isAsync": "0",
        }
        data = self._get_json(EXPORT_URL_TEMPLATE.format(guid=item.guid), params=params,
                              headers=self.folder_headers)
        if not isinstance(data, dict):
            raise DownloadLinkError("在响应中未找到下载链接")

        url = extract_download_url(data)
        if url:
            return url

        if is_rate_limited(data):
            message = str(data.get("error", ""))
            wait = parse_wait_seconds(message)
            if wait is None:
                logger.warning(f"接口频繁了，未找到等待时间：{message}")
                raise RateLimitedError(f"接口请求过于频繁：{message}")
            logger.warning(f"接口频繁了，等待 {wait:g}s 后重试", icon="⏳")
            self.sleep(wait)
            raise RateLimitedError(f"接口请求过于频繁：{message}", wait_seconds=wait)

        logger.debug(f"导出响应：{data}")
        raise DownloadLinkError("在响应中未找到下载链接")
