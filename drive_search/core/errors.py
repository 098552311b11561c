"""Error taxonomy shared by services and providers."""


class DriveSearchError(Exception):
    """Base class for all drive-search errors."""


class ConfigurationError(DriveSearchError):
    """Required root identifier or provider credentials are missing."""


class ProviderUnavailable(DriveSearchError):
    """An external provider is unreachable or rejected the request."""


class EmbeddingError(ProviderUnavailable):
    """Embedding provider failed or timed out."""


class MalformedProviderResponse(DriveSearchError):
    """Provider answered, but not with the expected shape."""


class BuildError(DriveSearchError):
    """Index build failed as a whole; the previous snapshot stays active."""

    MISSING_ROOT = "missing_root"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    SOURCE_FAILURE = "source_failure"
    CONFIGURATION = "configuration_error"
    MALFORMED_RESPONSE = "malformed_response"

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class InvalidQueryError(DriveSearchError, ValueError):
    """Request-level validation failure (missing, non-text or too long query)."""


class InternalError(DriveSearchError):
    """Unexpected failure inside retrieval."""
