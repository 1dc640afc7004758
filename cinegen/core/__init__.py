"""Core business logic components."""

from .prompt_enhancer import PromptEnhancer
from .image_generator import ImageGenerator
from .video_generator import VideoGenerator
from .credentials import CredentialStore, SessionCredentialStore
from .orchestrator import GenerationSession

__all__ = [
    "PromptEnhancer",
    "ImageGenerator",
    "VideoGenerator",
    "CredentialStore",
    "SessionCredentialStore",
    "GenerationSession",
]
