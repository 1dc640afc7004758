"""Orchestrator sequencing enhancement and media generation for a session."""

import asyncio
import time
from typing import Callable, List, Optional

from .prompt_enhancer import PromptEnhancer
from .image_generator import ImageGenerator
from .video_generator import VideoGenerator
from .credentials import CredentialStore
from ..models.schemas import (
    EnhancementResult,
    GenerationStatus,
    MediaResult,
    SessionSnapshot,
)
from ..models.enums import ErrorKind, MediaType
from ..utils.logger import get_logger
from ..utils.errors import CredentialMissing, error_kind_of

logger = get_logger(__name__)

PROGRESS_ENHANCING = "Analisando sua solicitação e aprimorando detalhes..."
PROGRESS_VIDEO_FROM_IMAGE = "Animando sua imagem com Veo (isso pode levar 1-2 minutos)..."
PROGRESS_VIDEO = "Renderizando vídeo cinematográfico (isso pode levar 1-2 minutos)..."
PROGRESS_IMAGE = "Renderizando imagem em alta definição..."

FALLBACK_VIDEO_PROMPT = "Cinematic slow motion movement"
GENERIC_ERROR_MESSAGE = "Ocorreu um erro inesperado."
CANCELLED_MESSAGE = "Geração cancelada."

SnapshotListener = Callable[[SessionSnapshot], None]


def generation_progress_message(mode: MediaType, has_reference_image: bool) -> str:
    if mode == MediaType.VIDEO:
        return PROGRESS_VIDEO_FROM_IMAGE if has_reference_image else PROGRESS_VIDEO
    return PROGRESS_IMAGE


class GenerationSession:
    """Single-user generation session.

    State moves Idle -> Enhancing -> Generating -> Idle (with or without an
    error). Picking a variation enters Generating directly. Only one run may
    be in flight; callers check ``is_busy`` before starting another.
    """

    def __init__(
        self,
        enhancer: PromptEnhancer,
        image_generator: ImageGenerator,
        video_generator: VideoGenerator,
        credentials: CredentialStore,
        mode: MediaType = MediaType.IMAGE,
    ):
        """
        Initialize session.

        Args:
            enhancer: PromptEnhancer instance
            image_generator: ImageGenerator instance
            video_generator: VideoGenerator instance
            credentials: Key selection capability
            mode: Initial media mode
        """
        self.enhancer = enhancer
        self.image_generator = image_generator
        self.video_generator = video_generator
        self.credentials = credentials
        self.mode = mode

        self.status = GenerationStatus()
        self.media_result: Optional[MediaResult] = None
        self.enhancement: Optional[EnhancementResult] = None

        self._listeners: List[SnapshotListener] = []

    @property
    def is_busy(self) -> bool:
        return self.status.is_busy

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every transition."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> SessionSnapshot:
        needs_credential = self.credentials.api_key is None
        return SessionSnapshot(
            status=self.status,
            phase=self.status.phase,
            mode=self.mode,
            media_result=self.media_result,
            enhancement=self.enhancement,
            needs_credential=needs_credential,
            offers_credential_reselect=self.status.offers_credential_reselect,
        )

    def _set_status(self, **fields):
        self.status = GenerationStatus(**fields)
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(
                    f"Status listener failed: {e}",
                    extra={"phase": snapshot.phase.value},
                    exc_info=True
                )

    async def _require_api_key(self) -> str:
        if not await self.credentials.has_selected_key():
            if not await self.credentials.open_select_key():
                raise CredentialMissing("No API key selected")
        api_key = self.credentials.api_key
        if not api_key:
            raise CredentialMissing("No API key selected")
        return api_key

    async def run_generation(
        self,
        user_input: str,
        mode: MediaType,
        reference_image: Optional[str] = None,
        skip_enhancement: bool = False,
    ) -> Optional[MediaResult]:
        """
        Enhance (unless skipped) and generate media for one request.

        Args:
            user_input: Raw user text, or a variation when skip_enhancement is set
            mode: Image or video
            reference_image: Optional base64 image for image-to-video
            skip_enhancement: Use user_input verbatim as the final prompt

        Returns:
            The new MediaResult, or None when the run failed or was aborted
        """
        try:
            api_key = await self._require_api_key()
        except CredentialMissing:
            logger.info("Generation aborted: no API key selected")
            return None

        start_time = time.time()
        self.mode = mode
        self.media_result = None

        logger.info(
            "Starting generation",
            extra={
                "mode": mode.value,
                "skip_enhancement": skip_enhancement,
                "has_reference_image": bool(reference_image),
                "input_length": len(user_input),
            }
        )

        try:
            final_prompt = user_input

            if not skip_enhancement:
                self._set_status(is_enhancing=True, progress_message=PROGRESS_ENHANCING)

                if user_input.strip():
                    enhancement = await self.enhancer.enhance(user_input, api_key)
                    self.enhancement = enhancement
                    final_prompt = enhancement.final_prompt
                elif reference_image:
                    final_prompt = FALLBACK_VIDEO_PROMPT

            self._set_status(
                is_generating_media=True,
                progress_message=generation_progress_message(mode, bool(reference_image)),
            )

            if mode == MediaType.VIDEO:
                url = await self.video_generator.generate(final_prompt, api_key, reference_image)
            else:
                url = await self.image_generator.generate(final_prompt, api_key)

            self.media_result = MediaResult(type=mode, url=url, prompt=final_prompt)
            self._set_status()

            logger.info(
                "Generation complete",
                extra={
                    "mode": mode.value,
                    "prompt": final_prompt[:200],
                    "processing_time_seconds": round(time.time() - start_time, 1),
                }
            )

            return self.media_result

        except asyncio.CancelledError:
            logger.warning("Generation cancelled", extra={"mode": mode.value})
            self._set_status(error=CANCELLED_MESSAGE, error_kind=ErrorKind.UNEXPECTED)
            raise

        except Exception as e:
            logger.error(
                f"Generation failed: {type(e).__name__}",
                extra={
                    "mode": mode.value,
                    "error": str(e),
                    "processing_time_seconds": round(time.time() - start_time, 1),
                },
                exc_info=True,
            )
            self.media_result = None
            self._set_status(
                error=str(e) or GENERIC_ERROR_MESSAGE,
                error_kind=error_kind_of(e),
            )
            return None

    async def select_variation(self, index: int, mode: Optional[MediaType] = None) -> Optional[MediaResult]:
        """
        Generate from one of the two offered variations without enhancing.

        The reference image of the previous run is not carried over.

        Args:
            index: 1 or 2
            mode: Media mode; defaults to the session's current mode

        Raises:
            LookupError: If there is no enhancement or the index is out of range
        """
        if self.enhancement is None:
            raise LookupError("No variations available")
        if index not in (1, 2):
            raise LookupError(f"Unknown variation {index}")

        variation = self.enhancement.variations[index - 1]

        logger.info("Variation selected", extra={"variation": index})

        return await self.run_generation(
            variation,
            mode or self.mode,
            reference_image=None,
            skip_enhancement=True,
        )
