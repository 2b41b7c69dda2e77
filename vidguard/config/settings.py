from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, PrivateAttr, field_validator, model_validator
from typing import List, Optional, Tuple
from dotenv import load_dotenv, find_dotenv


class SensitivityConfig(BaseSettings):
    """
    Sensitivity pipeline configuration.

    Two historical pipeline variants disagreed on the frame cap (10 vs 30) and
    on the threshold pair (0.7/0.5 vs 0.4/0.4). Both are exposed here so a
    deployment can pick either without touching code.
    """

    frame_interval_seconds: float = Field(default=5.0, gt=0, description="Seconds between sampled frames")
    max_frames: int = Field(default=10, ge=1, description="Upper bound on sampled frames per video")
    fallback_timestamp_seconds: float = Field(default=1.0, ge=0, description="Timestamp used when duration is unknown")
    frame_extension: str = Field(default=".jpg", description="Image extension of extracted frames")
    extraction_timeout_seconds: float = Field(default=60.0, gt=0, description="Timeout per ffmpeg invocation")
    max_score_threshold: float = Field(default=0.7, ge=0, le=1, description="Flag if any frame exceeds this")
    mean_score_threshold: float = Field(default=0.5, ge=0, le=1, description="Flag if the mean exceeds this")
    scoring_workers: int = Field(default=4, ge=1, description="Parallel frame scorers per run")
    size_risk_table: List[Tuple[int, float]] = Field(
        default=[(5_000, 0.1), (50_000, 0.3), (200_000, 0.6)],
        description="(exclusive upper bound in bytes, risk) breakpoints, ascending",
    )
    size_risk_cap: float = Field(default=0.8, ge=0, le=1, description="Risk for frames above the last breakpoint")

    model_config = SettingsConfigDict(
        env_prefix="SENSITIVITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )

    def __init__(self, **kwargs):
        # Force load environment variables before validation
        load_dotenv(find_dotenv())
        super().__init__(**kwargs)

    @field_validator("frame_extension")
    @classmethod
    def _normalize_extension(cls, v: str) -> str:
        v = v.strip().lower()
        return v if v.startswith(".") else f".{v}"

    @model_validator(mode="after")
    def _check_size_table(self):
        bounds = [bound for bound, _ in self.size_risk_table]
        if bounds != sorted(bounds):
            raise ValueError("size_risk_table breakpoints must be ascending")
        for _, risk in self.size_risk_table:
            if not 0.0 <= risk <= self.size_risk_cap:
                raise ValueError("size_risk_table risks must lie in [0, size_risk_cap]")
        return self


class StorageConfig(BaseSettings):
    """Local storage configuration."""

    provider: str = Field(default="local")
    upload_dir: str = Field(default="./uploads")
    temp_dir: str = Field(default="./temp")
    video_store: str = Field(default="memory")
    max_upload_mb: int = Field(default=500, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )

    def __init__(self, **kwargs):
        load_dotenv(find_dotenv())
        super().__init__(**kwargs)


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    enable_file_logging: bool = Field(default=False)
    max_file_size: str = Field(default="10 MB")
    retention_days: int = Field(default=7)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )


class VidGuardConfig(BaseSettings):
    """Main configuration class."""

    # Application settings
    app_name: str = Field(default="VidGuard")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    _sensitivity: Optional[SensitivityConfig] = PrivateAttr(default=None)
    _storage: Optional[StorageConfig] = PrivateAttr(default=None)
    _logging: Optional[LoggingConfig] = PrivateAttr(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
        case_sensitive=False
    )

    def __init__(self, **kwargs):
        # Force load environment variables before initializing
        load_dotenv(find_dotenv())
        super().__init__(**kwargs)

    @property
    def sensitivity(self) -> SensitivityConfig:
        if self._sensitivity is None:
            self._sensitivity = SensitivityConfig()
        return self._sensitivity

    @property
    def storage(self) -> StorageConfig:
        if self._storage is None:
            self._storage = StorageConfig()
        return self._storage

    @property
    def logging(self) -> LoggingConfig:
        if self._logging is None:
            self._logging = LoggingConfig()
        return self._logging
