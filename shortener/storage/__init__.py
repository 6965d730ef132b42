from .base import BaseStorage
from .file_storage import FileStorage
from .memory_storage import MemoryStorage
from .null_storage import NullStorage
from .storage_factory import get_storage

__all__ = ["BaseStorage", "FileStorage", "MemoryStorage", "NullStorage", "get_storage"]
