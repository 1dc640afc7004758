"""Enumerations for the generation studio."""

from enum import Enum


class MediaType(str, Enum):
    """Kind of media a run produces."""
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


class GenerationPhase(str, Enum):
    """Phase of the current generation run."""
    IDLE = "idle"
    ENHANCING = "enhancing"
    GENERATING = "generating"


class ErrorKind(str, Enum):
    """Typed failure category surfaced to the page."""
    CREDENTIAL = "credential"
    ENHANCEMENT = "enhancement"
    PARSE = "parse"
    NO_MEDIA = "no_media"
    VIDEO_GENERATION = "video_generation"
    UNEXPECTED = "unexpected"
