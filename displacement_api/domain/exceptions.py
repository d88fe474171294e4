"""Custom exceptions for displacement_api domain.

This module defines domain-specific exceptions to replace generic exceptions
and provide better error handling and debugging.
"""


class DisplacementAPIError(Exception):
    """Base exception for all displacement_api errors."""

    pass


# ============================================================================
# Configuration errors
# ============================================================================


class ConfigurationError(DisplacementAPIError):
    """Raised when configuration cannot be loaded at all.

    Examples:
    - Non-numeric TICK_INTERVAL_SECONDS
    - Roster file missing or malformed
    """

    def __init__(self, message: str, field: str | None = None, value: object = None):
        super().__init__(message)
        self.field = field
        self.value = value


class ConfigurationInvariantViolation(UserWarning):
    """Warned when loaded configuration breaks an invariant but is still usable.

    Examples:
    - Category allocation weights not summing to ~1.0
    - An entity referencing an undefined category (entity is excluded)
    """

    pass


# ============================================================================
# External service errors
# ============================================================================


class ExternalServiceError(DisplacementAPIError):
    """Base class for external service errors."""

    pass


class UpstreamFetchError(ExternalServiceError):
    """Raised when a single external series could not be retrieved.

    Examples:
    - HTTP error from FRED
    - Response with no numeric observations
    """

    def __init__(self, message: str, series_id: str, category: str | None = None):
        super().__init__(message)
        self.series_id = series_id
        self.category = category


# ============================================================================
# Storage errors
# ============================================================================


class StorageError(DisplacementAPIError):
    """Base class for storage-related errors."""

    pass


class StorageReadError(StorageError):
    """Raised when reading from the state store fails."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class StorageWriteError(StorageError):
    """Raised when writing to the state store fails."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


# ============================================================================
# Transport errors
# ============================================================================


class TransportError(DisplacementAPIError):
    """Raised when a viewer connection cannot accept a message."""

    pass
