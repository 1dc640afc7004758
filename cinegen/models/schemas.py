"""Pydantic schemas for data validation."""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import ErrorKind, GenerationPhase, MediaType


class EnhancementResult(BaseModel):
    """Enhanced prompt plus two variations and technical suggestions.

    Field aliases are the keys the enhancement schema asks the backend for.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    final_prompt: str = Field(..., alias="prompt_final")
    variation_one: str = Field(..., alias="variacao_1")
    variation_two: str = Field(..., alias="variacao_2")
    suggestions: List[str]

    @property
    def variations(self) -> List[str]:
        return [self.variation_one, self.variation_two]


class MediaResult(BaseModel):
    """Most recent generated media; replaced wholesale on each run."""
    model_config = ConfigDict(frozen=True)

    type: MediaType
    url: str
    prompt: str


class GenerationStatus(BaseModel):
    """Transient progress state shown to the user."""
    model_config = ConfigDict(frozen=True)

    is_enhancing: bool = False
    is_generating_media: bool = False
    progress_message: str = ""
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @model_validator(mode="after")
    def _phases_are_exclusive(self):
        if self.is_enhancing and self.is_generating_media:
            raise ValueError("enhancing and generating cannot both be active")
        if self.error is not None and (self.is_enhancing or self.is_generating_media):
            raise ValueError("error can only be set while idle")
        return self

    @property
    def phase(self) -> GenerationPhase:
        if self.is_enhancing:
            return GenerationPhase.ENHANCING
        if self.is_generating_media:
            return GenerationPhase.GENERATING
        return GenerationPhase.IDLE

    @property
    def is_busy(self) -> bool:
        return self.is_enhancing or self.is_generating_media

    @property
    def offers_credential_reselect(self) -> bool:
        return self.error_kind == ErrorKind.CREDENTIAL


class VideoOperation(BaseModel):
    """Long-running video job as reported by the backend."""
    name: str
    done: bool = False
    video_uri: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "VideoOperation":
        """Build from the backend's operation JSON."""
        samples = (
            (payload.get("response") or {})
            .get("generateVideoResponse", {})
            .get("generatedSamples")
            or []
        )
        video_uri = None
        if samples:
            video_uri = (samples[0].get("video") or {}).get("uri")

        error = payload.get("error")
        return cls(
            name=payload.get("name", ""),
            done=bool(payload.get("done", False)),
            video_uri=video_uri,
            error=error.get("message") if isinstance(error, dict) else error,
        )


class SessionSnapshot(BaseModel):
    """Everything the page needs to render after a state transition."""
    status: GenerationStatus
    phase: GenerationPhase
    mode: MediaType
    media_result: Optional[MediaResult] = None
    enhancement: Optional[EnhancementResult] = None
    needs_credential: bool = False
    offers_credential_reselect: bool = False


class GenerateRequest(BaseModel):
    """Body of POST /api/generate."""
    prompt: str = ""
    mode: MediaType = MediaType.IMAGE
    reference_image: Optional[str] = None


class CredentialRequest(BaseModel):
    """Body of POST /api/credential."""
    api_key: str = Field(..., min_length=1)
