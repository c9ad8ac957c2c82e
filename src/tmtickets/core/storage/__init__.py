from tmtickets.config import Config
from tmtickets.core.storage.base import StorageBackend


def create_backend(config: Config) -> StorageBackend:
    """Build the storage backend selected by ``config.storage_backend``."""
    if config.storage_backend == "memory":
        from tmtickets.core.storage.memory import MemoryStorageBackend  # noqa: PLC0415

        return MemoryStorageBackend(tag_index_enabled=config.tag_index_enabled)

    from tmtickets.core.storage.mongo import MongoStorageBackend  # noqa: PLC0415

    return MongoStorageBackend(config)
