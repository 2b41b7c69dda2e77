import os
from abc import ABC, abstractmethod


class StorageProvider(ABC):
    """Abstract base class for video file storage."""

    @abstractmethod
    def resolve_path(self, storage_key: str) -> str:
        """Return the absolute local path for a storage key."""
        pass

    @abstractmethod
    def file_exists(self, storage_key: str) -> bool:
        """Check whether the file behind a storage key exists."""
        pass

    @abstractmethod
    def stat(self, storage_key: str) -> os.stat_result:
        """Return file metadata for a storage key."""
        pass

    @abstractmethod
    async def save_upload(self, tenant_id: str, filename: str, data: bytes) -> str:
        """Persist uploaded bytes under the tenant and return the storage key."""
        pass

    @abstractmethod
    async def delete_file(self, storage_key: str) -> None:
        """Delete a stored file if present."""
        pass

    async def close(self):
        """Close the underlying client and cleanup."""
        pass
