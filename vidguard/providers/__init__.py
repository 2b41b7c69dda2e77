"""Provider system for vidguard."""

from .base import StorageProvider, VideoStoreProvider, ProgressSink
from .factory import ProviderFactory, provider_factory
from .custom_providers import LocalStorageProvider, InMemoryVideoStore

__all__ = [
    # Base classes
    'StorageProvider',
    'VideoStoreProvider',
    'ProgressSink',
    # Factory
    'ProviderFactory',
    'provider_factory',
    # Local providers
    'LocalStorageProvider',
    'InMemoryVideoStore',
]
