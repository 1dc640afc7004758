"""Custom exception classes for the generation studio."""

from typing import Optional

from ..models.enums import ErrorKind


class CineGenError(Exception):
    """Base exception for all studio errors."""
    kind = ErrorKind.UNEXPECTED


class ConfigurationError(CineGenError):
    """Configuration or initialization errors."""
    pass


class APIError(CineGenError):
    """Base class for API-related errors."""
    pass


class ProviderError(APIError):
    """Generic provider API error with status code."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} error: {message}")


class CredentialError(ProviderError):
    """The backend rejected the API key."""
    kind = ErrorKind.CREDENTIAL

    def __init__(self, provider: str, message: str = "Authentication failed", status_code: int = 401):
        super().__init__(provider, f"chave API inválida ou sem permissão ({message})", status_code)


class CredentialMissing(CineGenError):
    """No API key selected; the run aborts without touching state."""
    kind = ErrorKind.CREDENTIAL


class EnhancementFailure(CineGenError):
    """The enhancement backend returned no usable text."""
    kind = ErrorKind.ENHANCEMENT


class ParseFailure(EnhancementFailure):
    """Structured enhancement response was not valid JSON for the schema."""
    kind = ErrorKind.PARSE


class NoMediaProduced(CineGenError):
    """Image backend answered without an image part."""
    kind = ErrorKind.NO_MEDIA


class VideoGenerationFailure(CineGenError):
    """Video operation finished without a usable URI."""
    kind = ErrorKind.VIDEO_GENERATION


def error_kind_of(exc: BaseException) -> ErrorKind:
    """Typed kind of any exception raised during a run."""
    if isinstance(exc, CineGenError):
        return exc.kind
    return ErrorKind.UNEXPECTED
