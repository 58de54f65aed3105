"""Storage backends for keys, provider configs, usage counters and call logs."""

from .base import Storage
from .database import DatabaseStorage
from .memory import MemoryStorage

__all__ = ["DatabaseStorage", "MemoryStorage", "Storage", "create_storage"]


def create_storage(settings) -> Storage:
    """Build the backend named by ``settings.storage_backend``."""

    backend = settings.storage_backend.lower()
    if backend == "memory":
        return MemoryStorage()
    if backend == "database":
        return DatabaseStorage.from_settings(settings)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
