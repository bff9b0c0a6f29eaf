"""
shimo-sync: mirror Shimo (石墨文档) folders into a local directory as
Markdown plus per-document comment threads.
"""

__version__ = "0.1.0"
