"""Video generation with fixed-interval operation polling."""

import asyncio
import time
from typing import Awaitable, Callable, Optional
from urllib.parse import quote

from ..providers.gemini import GeminiClient
from ..models.schemas import VideoOperation
from ..utils.logger import get_logger
from ..utils.errors import VideoGenerationFailure
from ..utils.images import parse_reference_image

logger = get_logger(__name__)


def append_api_key(uri: str, api_key: str) -> str:
    """Add the key as the trailing query parameter; the raw URI needs auth to download."""
    separator = "&" if "?" in uri else "?"
    return f"{uri}{separator}key={quote(api_key, safe='')}"


class VideoGenerator:
    """Text-to-video and image-to-video generation."""

    def __init__(
        self,
        gemini_client: GeminiClient,
        model: str = "veo-3.1-fast-generate-preview",
        aspect_ratio: str = "16:9",
        resolution: str = "1080p",
        number_of_videos: int = 1,
        default_mime_type: str = "image/png",
        poll_interval: float = 5.0,
        max_wait: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize video generator.

        Args:
            gemini_client: Gemini API client
            model: Veo model name
            poll_interval: Seconds between operation status checks
            max_wait: Optional polling deadline in seconds; None polls until done
            sleep: Awaitable used between polls
            clock: Monotonic clock used for the deadline
        """
        self.client = gemini_client
        self.model = model
        self.aspect_ratio = aspect_ratio
        self.resolution = resolution
        self.number_of_videos = number_of_videos
        self.default_mime_type = default_mime_type
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self._sleep = sleep
        self._clock = clock

    def build_payload(self, prompt: str, reference_image: Optional[str] = None) -> dict:
        instance = {"prompt": prompt}

        if reference_image:
            image = parse_reference_image(reference_image, self.default_mime_type)
            instance["image"] = {
                "bytesBase64Encoded": image.data,
                "mimeType": image.mime_type,
            }

        return {
            "instances": [instance],
            "parameters": {
                "aspectRatio": self.aspect_ratio,
                "resolution": self.resolution,
                "sampleCount": self.number_of_videos,
            },
        }

    async def generate(
        self,
        prompt: str,
        api_key: str,
        reference_image: Optional[str] = None,
    ) -> str:
        """
        Generate a video and return a fetchable URL.

        Args:
            prompt: Finalized prompt
            api_key: Currently selected API key
            reference_image: Optional base64 image, with or without data URL header

        Returns:
            Video URI with the key appended as a query parameter

        Raises:
            VideoGenerationFailure: If the finished operation has no video URI
        """
        logger.info(
            f"Submitting video to {self.model}",
            extra={
                "model": self.model,
                "prompt": prompt[:200],
                "image_to_video": bool(reference_image),
            }
        )

        submitted = await self.client.start_video_generation(
            self.model, self.build_payload(prompt, reference_image), api_key
        )
        operation = VideoOperation.from_response(submitted)

        operation = await self.wait_for_operation(operation, api_key)

        if operation.error or not operation.video_uri:
            logger.error(
                "Video operation finished without a video",
                extra={"operation": operation.name, "error": operation.error}
            )
            message = "Falha na geração do vídeo."
            if operation.error:
                message = f"{message} {operation.error}"
            raise VideoGenerationFailure(message)

        logger.info(
            "Video generated",
            extra={"model": self.model, "operation": operation.name}
        )

        return append_api_key(operation.video_uri, api_key)

    async def wait_for_operation(self, operation: VideoOperation, api_key: str) -> VideoOperation:
        """Re-fetch the operation every poll_interval seconds until it is done."""
        deadline = self._clock() + self.max_wait if self.max_wait else None
        polls = 0

        while not operation.done:
            if deadline is not None and self._clock() >= deadline:
                raise VideoGenerationFailure(
                    f"Falha na geração do vídeo: tempo limite de {self.max_wait:g}s excedido."
                )

            await self._sleep(self.poll_interval)

            payload = await self.client.get_operation(operation.name, api_key)
            operation = VideoOperation.from_response({"name": operation.name, **payload})
            polls += 1

            logger.info(
                "Video operation polled",
                extra={"operation": operation.name, "poll": polls, "done": operation.done}
            )

        return operation
