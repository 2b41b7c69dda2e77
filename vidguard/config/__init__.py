from .settings import VidGuardConfig, SensitivityConfig, StorageConfig, LoggingConfig

__all__ = ["VidGuardConfig", "SensitivityConfig", "StorageConfig", "LoggingConfig"]
