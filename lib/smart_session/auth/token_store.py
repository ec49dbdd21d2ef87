# smart_session/auth/token_store.py
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..utils.logger import logger
from ..utils.vfs import VFS


class TokenStore(ABC):
    """
    Secure key -> string persistence for credentials.
    Last write wins; no transactional guarantees.
    """

    @abstractmethod
    def set(self, key: str, value: str) -> bool:
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass


class MemoryTokenStore(TokenStore):
    """Process-local token store"""

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: str) -> bool:
        with self._lock:
            self._values[key] = value
        return True

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def delete(self, key: str) -> bool:
        with self._lock:
            self._values.pop(key, None)
        return True


class FileTokenStore(TokenStore):
    """
    Persists tokens in a JSON file inside the profile directory
    Compatible with any directory via VFS abstraction
    """

    def __init__(self, config_dir: Optional[str] = None, namespace: str = "default",
                 filename: str = "tokens.json"):
        """
        Initialize FileTokenStore

        Args:
            config_dir: Optional config directory override (mainly for testing)
            namespace: Top-level key separating clients that share a profile
            filename: Token file name within the VFS base path
        """
        self.vfs = VFS(config_dir=config_dir)
        self.namespace = namespace
        self.tokens_file = filename
        self._lock = threading.Lock()

        self.vfs.mkdirs('')
        logger.debug(f"FileTokenStore initialized: {self.vfs.join_path(self.tokens_file)} [{namespace}]")

    def _load_all(self) -> Dict[str, Dict[str, str]]:
        data = self.vfs.read_json(self.tokens_file)
        if not isinstance(data, dict):
            return {}
        return data

    def set(self, key: str, value: str) -> bool:
        with self._lock:
            data = self._load_all()
            bucket = data.get(self.namespace)
            if not isinstance(bucket, dict):
                bucket = {}
            bucket[key] = value
            data[self.namespace] = bucket

            success = self.vfs.write_json(self.tokens_file, data)

        if success:
            logger.log_token_event("stored", f"{self.namespace}/{key}")
        else:
            logger.error(f"Failed to store token {self.namespace}/{key}")
        return success

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            bucket = self._load_all().get(self.namespace)
        if not isinstance(bucket, dict):
            return None
        value = bucket.get(key)
        return value if isinstance(value, str) else None

    def delete(self, key: str) -> bool:
        with self._lock:
            data = self._load_all()
            bucket = data.get(self.namespace)
            if not isinstance(bucket, dict) or key not in bucket:
                logger.debug(f"No stored token to delete for {self.namespace}/{key}")
                return True

            del bucket[key]
            if not bucket:
                del data[self.namespace]

            success = self.vfs.write_json(self.tokens_file, data)

        if success:
            logger.log_token_event("deleted", f"{self.namespace}/{key}")
        return success
