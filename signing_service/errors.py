"""
Error types for the signing service.

The core surfaces these to its caller; the HTTP layer maps them to status
codes (unsupported algorithm -> 400, device not found -> 404,
sign failed -> 500).
"""

from typing import Optional


class SigningServiceError(Exception):
    """Base class for all signing service errors."""


class UnsupportedAlgorithmError(SigningServiceError):
    """Raised when the signer factory receives an unknown algorithm tag."""

    def __init__(self, algorithm: str):
        self.algorithm = algorithm
        super().__init__(f"unsupported algorithm: {algorithm!r}")


class DeviceNotFoundError(SigningServiceError):
    """Raised when a device identity is not present in the registry."""

    def __init__(self, device_id):
        self.device_id = device_id
        super().__init__(f"signature device not found: {device_id}")


class SignFailedError(SigningServiceError):
    """Raised when the underlying algorithm fails to produce a signature."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ConfigurationError(SigningServiceError):
    """Raised when environment configuration is invalid."""
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")
