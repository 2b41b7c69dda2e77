import os
import re
import time
import aiofiles
from pathlib import Path
from loguru import logger
from typing import Dict, Any, Optional
from vidguard.providers.base import StorageProvider
from vidguard.utils.error_handler import handle_exceptions, convert_exceptions, log_exceptions
from vidguard.exceptions import ProviderException, ResourceNotFoundException, ValidationException

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class LocalStorageProvider(StorageProvider):
    """Local filesystem storage; files live under <base_path>/<tenant_id>/."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize Local Storage Provider.

        Args:
            config: {
                        "base_path": str -> Root directory for uploads (default: ./uploads)
                    }
        """
        self.config = config or {}
        self.base_path = Path(self.config.get("base_path", "./uploads")).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"LocalStorageProvider initialized at {self.base_path}")

    def resolve_path(self, storage_key: str) -> str:
        """Map a storage key to an absolute path, refusing keys that escape the root."""
        path = (self.base_path / storage_key).resolve()
        if path != self.base_path and self.base_path not in path.parents:
            raise ValidationException(f"Storage key escapes storage root: {storage_key}")
        return str(path)

    def file_exists(self, storage_key: str) -> bool:
        return os.path.isfile(self.resolve_path(storage_key))

    def stat(self, storage_key: str) -> os.stat_result:
        path = self.resolve_path(storage_key)
        if not os.path.isfile(path):
            raise ResourceNotFoundException(f"File not found: {storage_key}")
        return os.stat(path)

    @staticmethod
    def _safe_name(value: str) -> str:
        cleaned = _UNSAFE_CHARS.sub("_", os.path.basename(value)).strip("._")
        return cleaned or "upload"

    @handle_exceptions(retries=3, exceptions=(ProviderException,), backoff_factor=0.5)
    @convert_exceptions({OSError: ProviderException})
    async def save_upload(self, tenant_id: str, filename: str, data: bytes) -> str:
        """Write uploaded bytes to <tenant>/<timestamp>-<filename> and return that key."""
        tenant_dir = self.base_path / self._safe_name(tenant_id)
        tenant_dir.mkdir(parents=True, exist_ok=True)

        name = f"{int(time.time() * 1000)}-{self._safe_name(filename)}"
        dest_path = tenant_dir / name
        async with aiofiles.open(dest_path, "wb") as dst:
            await dst.write(data)

        storage_key = dest_path.relative_to(self.base_path).as_posix()
        logger.info(f"Saved upload {storage_key} ({len(data)} bytes)")
        return storage_key

    @log_exceptions(log_level="WARNING", include_traceback=False, custom_message="Failed to delete stored file")
    @convert_exceptions({OSError: ProviderException})
    async def delete_file(self, storage_key: str) -> None:
        path = self.resolve_path(storage_key)
        if os.path.exists(path):
            os.remove(path)
            logger.info(f"Deleted {storage_key}")

    async def close(self):
        """No-op for local provider (for interface consistency)."""
        logger.debug("LocalStorageProvider closed (no-op).")
