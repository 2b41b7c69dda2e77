from .storage_provider import StorageProvider
from .video_store_provider import VideoStoreProvider
from .progress_sink import ProgressSink

__all__ = [
    'StorageProvider',
    'VideoStoreProvider',
    'ProgressSink',
]
