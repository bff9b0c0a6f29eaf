import re
from datetime import datetime
from typing import Optional

from shimo_sync.constants import DIRECT_DOWNLOAD_TYPES, TYPE_EXTENSION_MAP

_ILLEGAL_CHARS = re.compile(r'[\\/:*?"<>|]')
_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
_WAIT_NUMBER = re.compile(r'\d+(?:\.\d+)?')
_FRACTION = re.compile(r"\.(\d+)")


def sanitize_file_name(name: str) -> str:
    """
    Make a remote display name safe to use as a single path component.

    Path-special characters become '-', control characters are dropped.
    Names that would resolve to the current/parent directory are neutralized.
    """
    name = _ILLEGAL_CHARS.sub("-", name)
    name = _CONTROL_CHARS.sub("", name)
    if not name:
        return "untitled"
    if set(name) == {"."}:
        return "-" * len(name)
    return name


def parse_item_time(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp into a timezone-aware datetime.

    Raises:
        ValueError: If the value is malformed or carries no offset
    """
    if not isinstance(value, str) or not value:
        raise ValueError(f"invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fraction digits
    text = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no timezone: {value!r}")
    return parsed


def parse_wait_seconds(message: str) -> Optional[float]:
    """
    Pull the suggested wait out of a rate-limit error message.

    The message is free text from the server (e.g. "操作过于频繁，请 30 秒后再试"),
    so the first decimal number in it is taken as the number of seconds.

    Returns:
        Seconds to wait, or None if the message contains no number
    """
    if not message:
        return None
    match = _WAIT_NUMBER.search(message)
    if not match:
        return None
    return float(match.group(0))


def get_extension(item_type: str) -> Optional[str]:
    """Local file extension for a remote type tag, None when unsupported."""
    return TYPE_EXTENSION_MAP.get(item_type)


def is_direct_download_type(item_type: str) -> bool:
    return item_type in DIRECT_DOWNLOAD_TYPES
