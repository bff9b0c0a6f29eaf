"""
Constants Module

Defines constants used across the shimo-sync project.
"""

# =============================================================================
# Shimo API
# =============================================================================

SHIMO_BASE_URL = "https://shimo.im"
SHIMO_API_BASE_URL = f"{SHIMO_BASE_URL}/lizard-api"

FILES_URL = f"{SHIMO_API_BASE_URL}/files"
DOWNLOAD_URL_TEMPLATE = f"{FILES_URL}/{{guid}}/download"
EXPORT_URL_TEMPLATE = f"{FILES_URL}/{{guid}}/export"
COMMENTS_URL_TEMPLATE = f"{FILES_URL}/{{guid}}/comments"

# Folder browsing and the top-level desktop view expect different referers
FOLDER_REFERER = f"{SHIMO_BASE_URL}/folder/123"
DESKTOP_REFERER = f"{SHIMO_BASE_URL}/desktop"

# Export endpoint error code for "too many requests"
RATE_LIMIT_ERROR_CODE = 110002

REQUEST_TIMEOUT = 30  # seconds
DOWNLOAD_TIMEOUT = 120  # seconds
DOWNLOAD_CHUNK_SIZE = 8192


# =============================================================================
# Item Types
# =============================================================================

# Formats the download endpoint serves as-is
DIRECT_DOWNLOAD_TYPES = {"docx", "doc", "pptx", "ppt", "pdf"}

# Remote type tag -> local file extension
TYPE_EXTENSION_MAP = {
    "docx": "docx",
    "doc": "doc",
    "pptx": "pptx",
    "ppt": "ppt",
    "pdf": "pdf",
    "newdoc": "docx",
    "document": "docx",
    "modoc": "docx",
    "sheet": "xlsx",
    "mosheet": "xlsx",
    "spreadsheet": "xlsx",
    "table": "xlsx",
    "slide": "pptx",
    "presentation": "pptx",
    "mindmap": "xmind",
}

# Extensions handed to the Markdown converter after download
CONVERTIBLE_EXTENSIONS = {"docx"}


# =============================================================================
# Sync
# =============================================================================

DEFAULT_CONFIG_FILE = "config.json"

# Seconds between config file mtime checks
CONFIG_RELOAD_INTERVAL = 120

COMMENTS_FILE_NAME = "comments.json"
MARKDOWN_EXTENSION = "md"

KEYRING_SERVICE = "shimosync"
KEYRING_COOKIE_KEY = "cookie"
COOKIE_ENV_VAR = "SHIMO_COOKIE"
