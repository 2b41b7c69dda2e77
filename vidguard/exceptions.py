from typing import Dict, Optional


class VidGuardException(Exception):
    """Base exception for the vidguard service."""

    def __init__(self, message: str, error_code: str = None, details: Dict = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ProviderException(VidGuardException):
    """Raised when a storage or record-store provider fails."""
    pass


class ConfigurationException(VidGuardException):
    """Raised when configuration is invalid."""
    pass


class ValidationException(VidGuardException):
    """Raised when input validation fails."""
    pass


class ResourceNotFoundException(VidGuardException):
    """Raised when requested resource is not found."""
    pass


class ProbeException(VidGuardException):
    """Raised when video metadata cannot be read."""
    pass


class ExtractionException(VidGuardException):
    """Raised when frames cannot be extracted from a video."""

    def __init__(self, message: str, original: Optional[BaseException] = None, details: Dict = None):
        details = dict(details or {})
        if original is not None:
            details.setdefault("original_exception", type(original).__name__)
        super().__init__(message, error_code="EXTRACTION_FAILED", details=details)
        self.original = original


class PersistenceException(VidGuardException):
    """Raised when a video record cannot be written."""
    pass


class PipelineBusyException(VidGuardException):
    """Raised when a sensitivity run is already active for a video."""
    pass
