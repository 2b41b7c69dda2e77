from .storage_provider import LocalStorageProvider
from .video_store_provider import InMemoryVideoStore

__all__ = ["LocalStorageProvider", "InMemoryVideoStore"]
