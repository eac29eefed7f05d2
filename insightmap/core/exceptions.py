"""Custom exception hierarchy."""


class AppError(Exception):
    """Base exception for application errors."""

    status_code: int = 500

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class InvalidInput(AppError):
    """Raised when a submission lacks text content or an owner identity."""

    status_code = 400


class OwnershipMismatch(AppError):
    """Raised when a caller-supplied owner differs from the authenticated user."""

    status_code = 403


class StorageFailure(AppError):
    """Raised when a persistence operation fails."""

    status_code = 500


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class AnalysisError(AppError):
    """Failures recorded against a submission instead of aborting it."""

    status_code = 502


class NoCredentialAvailable(AnalysisError):
    """No caller credential and no configured fallback credential."""

    status_code = 500


class LLMError(AnalysisError):
    """Base exception for model invocation failures."""
    pass


class CredentialRejected(LLMError):
    """The provider refused the credential (401/403)."""
    pass


class ProviderUnavailable(LLMError):
    """Network error, timeout, rate limit or 5xx from the provider."""
    pass


class EmptyResponse(LLMError):
    """The provider call succeeded but produced no content."""
    pass


class MalformedExtraction(AnalysisError):
    """The model output is not valid JSON or does not match the extraction schema."""
    pass
