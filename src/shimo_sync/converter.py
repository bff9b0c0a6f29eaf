"""
Converter Module

Turns downloaded .docx files into Markdown with pandoc. Extracted media
lands in a directory named after the document, next to the Markdown file.
"""

import os
import shutil
import subprocess
from typing import List

from shimo_sync.errors import ConversionError
from shimo_sync.logger import logger


class PandocConverter:
    """Runs the pandoc binary; pandoc must be on PATH."""

    def __init__(self, pandoc_path: str = "pandoc"):
        self.pandoc_path = pandoc_path

    def is_available(self) -> bool:
        return shutil.which(self.pandoc_path) is not None

    def build_command(self, source_path: str, md_path: str) -> List[str]:
        md_name = os.path.basename(md_path)
        media_dir = os.path.splitext(md_name)[0]
        return [
            self.pandoc_path, "-s", os.path.abspath(source_path),
            "-t", "markdown",
            "-o", md_name,
            "--extract-media", media_dir,
        ]

    def convert(self, source_path: str, md_path: str):
        """Convert source_path into md_path.

        Raises:
            ConversionError: pandoc missing or exited non-zero
        """
        md_dir = os.path.dirname(os.path.abspath(md_path))
        media_dir = os.path.join(md_dir, os.path.splitext(os.path.basename(md_path))[0])
        os.makedirs(media_dir, exist_ok=True)

        cmd = self.build_command(source_path, md_path)
        logger.debug(f"执行: {' '.join(cmd)}")
        try:
            subprocess.run(cmd, cwd=md_dir, check=True, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise ConversionError(f"未找到 pandoc：{self.pandoc_path}") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise ConversionError(f"转换为 Markdown 出错：{stderr or e}") from e

        logger.success(f"已转换为 Markdown：{md_path}")
