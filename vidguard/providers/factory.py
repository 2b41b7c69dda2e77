from typing import Dict, Optional, Type
from loguru import logger

from .base import StorageProvider, VideoStoreProvider
from .custom_providers import LocalStorageProvider, InMemoryVideoStore
from ..exceptions import ConfigurationException
from ..config.settings import VidGuardConfig


class ProviderFactory:
    """Factory class for creating provider instances."""

    _storage_providers: Dict[str, Type[StorageProvider]] = {
        'local': LocalStorageProvider,
    }

    _video_store_providers: Dict[str, Type[VideoStoreProvider]] = {
        'memory': InMemoryVideoStore,
    }

    @classmethod
    def create_storage_provider(
        cls, provider_name: str = None, config: Optional[VidGuardConfig] = None
    ) -> StorageProvider:
        """
        Create storage provider instance.

        Args:
            provider_name: Name of the provider (optional, defaults to config)
            config: Root configuration (optional, loaded from the environment)

        Returns:
            StorageProvider instance

        Raises:
            ConfigurationException: If provider is not supported
        """
        config = config or VidGuardConfig()
        if provider_name is None:
            provider_name = config.storage.provider

        if provider_name not in cls._storage_providers:
            raise ConfigurationException(
                f"Unknown storage provider: {provider_name}. "
                f"Supported providers: {list(cls._storage_providers.keys())}"
            )

        provider_class = cls._storage_providers[provider_name]
        logger.info(f"Creating storage provider: {provider_name}")
        return provider_class({"base_path": config.storage.upload_dir})

    @classmethod
    def create_video_store_provider(
        cls, provider_name: str = None, config: Optional[VidGuardConfig] = None
    ) -> VideoStoreProvider:
        """Create video record store instance."""
        config = config or VidGuardConfig()
        if provider_name is None:
            provider_name = config.storage.video_store

        if provider_name not in cls._video_store_providers:
            raise ConfigurationException(
                f"Unknown video store provider: {provider_name}. "
                f"Supported providers: {list(cls._video_store_providers.keys())}"
            )

        provider_class = cls._video_store_providers[provider_name]
        logger.info(f"Creating video store provider: {provider_name}")
        return provider_class({})

    @classmethod
    def register_storage_provider(cls, name: str, provider_class: Type[StorageProvider]):
        """Register a new storage provider."""
        cls._storage_providers[name] = provider_class

    @classmethod
    def register_video_store_provider(cls, name: str, provider_class: Type[VideoStoreProvider]):
        """Register a new video store provider."""
        cls._video_store_providers[name] = provider_class

    @classmethod
    def get_supported_providers(cls) -> Dict[str, list]:
        """Get list of supported providers for each service."""
        return {
            'storage': list(cls._storage_providers.keys()),
            'video_store': list(cls._video_store_providers.keys()),
        }


# Global factory instance
provider_factory = ProviderFactory()
