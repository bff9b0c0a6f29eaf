"""
Retry Module
Provides the per-item retry loop with linear backoff.
"""

import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from shimo_sync.errors import RetryExhaustedError, SyncError
from shimo_sync.logger import logger


T = TypeVar('T')


def backoff_delay(base_delay: float) -> float:
    """Delay before each retry: twice the inter-request delay, every time."""
    return base_delay * 2


def retry_with_backoff(
    func: Callable[[], T],
    max_retries: int,
    base_delay: float,
    name: str = "",
    retryable_exceptions: Tuple[Type[Exception], ...] = (SyncError,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call func up to max_retries + 1 times.

    Args:
        func: Zero-argument callable running one attempt
        max_retries: Number of retries after the first attempt
        base_delay: Inter-request delay in seconds; retries wait backoff_delay(base_delay)
        name: Item name used in log lines and the terminal error
        retryable_exceptions: Exceptions that trigger another attempt
        sleep: Injected for tests

    Returns:
        The first successful result

    Raises:
        RetryExhaustedError: If every attempt raised a retryable exception
    """
    attempts = max_retries + 1
    last_exception: Optional[Exception] = None

    for attempt in range(attempts):
        if attempt > 0:
            delay = backoff_delay(base_delay)
            logger.info(f"重试第 {attempt} 次：{name}（等待 {delay:.1f}s）", icon="🔁")
            sleep(delay)
        try:
            return func()
        except retryable_exceptions as e:
            last_exception = e
            logger.warning(f"下载或转换文件出错 ({attempt + 1}/{attempts})：{e}")

    raise RetryExhaustedError(name, attempts, last_exception)
