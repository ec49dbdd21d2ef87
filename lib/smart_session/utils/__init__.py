# smart_session/utils/__init__.py

from .logger import logger, BaseLogger, mask_token
from .vfs import VFS
from .environment import get_environment_manager

__all__ = [
    'logger',
    'BaseLogger',
    'mask_token',
    'VFS',
    'get_environment_manager',
]
