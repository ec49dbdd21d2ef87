# smart_session/utils/vfs.py
"""
Virtual File System abstraction layer
Provides file operations relative to the SMART Session profile directory
"""

import json
import os
from typing import Optional, Any
from pathlib import Path

from .logger import logger


class VFS:
    """
    Virtual File System abstraction layer

    All relative paths are resolved against a base directory, which defaults
    to ~/.smart_session when no explicit config directory is given.
    """

    def __init__(self, config_dir: Optional[str] = None, subdir: str = ""):
        """
        Initialize VFS handler with explicit config directory support

        Args:
            config_dir: Optional explicit config directory (overrides the default)
            subdir: Optional subdirectory within the base directory
        """
        self.subdir = subdir
        self._base_path = None
        self._explicit_config_dir = config_dir
        logger.debug(f"VFS initialized with config_dir={config_dir}, subdir={subdir}")

    @property
    def base_path(self) -> str:
        """Get the base path for file operations"""
        if self._base_path is None:
            if self._explicit_config_dir:
                root = Path(self._explicit_config_dir)
            else:
                root = Path.home() / '.smart_session'

            self._base_path = str(root / self.subdir) if self.subdir else str(root)
            logger.debug(f"VFS base path: {self._base_path}")

            # Ensure base directory exists
            self.mkdirs('')

        return self._base_path

    def join_path(self, *parts) -> str:
        """
        Join path components onto the base path

        Args:
            *parts: Path components to join

        Returns:
            Joined path string
        """
        path = Path(self.base_path)
        for part in parts:
            if part:
                path = path / str(part)
        return str(path)

    def _resolve(self, filepath: str) -> str:
        if os.path.isabs(filepath):
            return filepath
        return self.join_path(filepath)

    def mkdirs(self, dirpath: str) -> bool:
        """
        Create directory and all parent directories

        Args:
            dirpath: Directory path to create

        Returns:
            True if successful, False otherwise
        """
        try:
            Path(self._resolve(dirpath)).mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            logger.error(f"Error creating directory {dirpath}: {e}")
            return False

    def read_text(self, filepath: str, encoding: str = 'utf-8') -> Optional[str]:
        """
        Read text content from file

        Returns:
            File content as string or None if error/not found
        """
        path = Path(self._resolve(filepath))
        try:
            if not path.exists():
                return None
            with open(path, 'r', encoding=encoding) as f:
                return f.read()
        except OSError as e:
            logger.error(f"Error reading file {path}: {e}")
            return None

    def write_text(self, filepath: str, content: str, encoding: str = 'utf-8') -> bool:
        """
        Write text content to file, replacing it atomically

        Returns:
            True if successful, False otherwise
        """
        path = Path(self._resolve(filepath))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_name(path.name + '.tmp')
            with open(tmp_path, 'w', encoding=encoding) as f:
                f.write(content)
            os.replace(tmp_path, path)
            return True
        except OSError as e:
            logger.error(f"Error writing file {path}: {e}")
            return False

    def read_json(self, filepath: str) -> Optional[dict]:
        """
        Read and parse JSON file

        Returns:
            Parsed JSON data or None if error/not found
        """
        content = self.read_text(filepath)
        if not content:
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {filepath}: {e}")
            return None

    def write_json(self, filepath: str, data: Any, indent: int = 2) -> bool:
        """
        Write data to JSON file

        Returns:
            True if successful, False otherwise
        """
        try:
            content = json.dumps(data, indent=indent, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Error serializing JSON for {filepath}: {e}")
            return False
        return self.write_text(filepath, content)

