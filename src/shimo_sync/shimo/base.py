"""
Base Shimo Client Module

Contains core client functionality:
- Cookie/referer headers derived from the active config snapshot
- JSON GET helper with error wrapping
"""

import time
from typing import Any, Callable, Dict, Optional

import requests

from shimo_sync.config import SyncConfig
from shimo_sync.constants import DESKTOP_REFERER, FOLDER_REFERER, REQUEST_TIMEOUT
from shimo_sync.errors import ShimoAPIError
from shimo_sync.logger import logger


class ShimoClientBase:
    """Base class for the Shimo web API client."""

    def __init__(self, config_provider: Callable[[], SyncConfig],
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """Initialize the Shimo client.

        Args:
            config_provider: Returns the current config snapshot (e.g. ConfigStore.get)
            session: Optional requests session, mainly for tests
            sleep: Used for server-requested waits; injected in tests
        """
        self.config_provider = config_provider
        self.session = session or requests.Session()
        self.sleep = sleep
        self._headers: Dict[str, Dict[str, str]] = {}
        self.refresh_headers()

    def refresh_headers(self):
        """Rebuild auth headers from the current config. Called after a reload."""
        cookie = self.config_provider().cookie
        self._headers = {
            "folder": {"Cookie": cookie, "Referer": FOLDER_REFERER},
            "desktop": {"Cookie": cookie, "Referer": DESKTOP_REFERER},
        }

    @property
    def folder_headers(self) -> Dict[str, str]:
        return self._headers["folder"]

    @property
    def desktop_headers(self) -> Dict[str, str]:
        return self._headers["desktop"]

    def _get_json(self, url: str, params: Optional[Dict[str, str]] = None,
                  headers: Optional[Dict[str, str]] = None) -> Any:
        """GET a URL and decode the JSON body.

        The HTTP status is not checked: the export endpoint reports errors
        (including rate limiting) as JSON bodies that callers inspect.

        Raises:
            ShimoAPIError: On network failure or a non-JSON body
        """
        try:
            resp = self.session.get(url, params=params, headers=headers or self.folder_headers,
                                    timeout=REQUEST_TIMEOUT)
        except requests.exceptions.Timeout as e:
            raise ShimoAPIError(f"请求超时：{url}") from e
        except requests.exceptions.RequestException as e:
            raise ShimoAPIError(f"发送请求失败：{e}") from e

        try:
            return resp.json()
        except ValueError as e:
            logger.debug(f"非 JSON 响应 {resp.status_code}: {resp.text[:200]}")
            raise ShimoAPIError(f"解析响应失败：HTTP {resp.status_code}") from e
