"""Data models and schemas for the generation studio."""

from .schemas import (
    EnhancementResult,
    MediaResult,
    GenerationStatus,
    VideoOperation,
    SessionSnapshot,
    GenerateRequest,
    CredentialRequest,
)
from .enums import (
    MediaType,
    GenerationPhase,
    ErrorKind,
)

__all__ = [
    "EnhancementResult",
    "MediaResult",
    "GenerationStatus",
    "VideoOperation",
    "SessionSnapshot",
    "GenerateRequest",
    "CredentialRequest",
    "MediaType",
    "GenerationPhase",
    "ErrorKind",
]
