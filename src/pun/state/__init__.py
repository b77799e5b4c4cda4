from .file_store import FileVersionStore
from .memory_store import MemoryVersionStore
from .store import VersionStore

__all__ = [
    "FileVersionStore",
    "MemoryVersionStore",
    "VersionStore",
]
