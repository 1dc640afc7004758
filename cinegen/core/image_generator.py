"""Image generation component."""

from ..providers.gemini import GeminiClient
from ..utils.logger import get_logger
from ..utils.errors import NoMediaProduced
from ..utils.images import to_data_url

logger = get_logger(__name__)


class ImageGenerator:
    """Generates a single 16:9 high-resolution still."""

    def __init__(
        self,
        gemini_client: GeminiClient,
        model: str = "gemini-3-pro-image-preview",
        aspect_ratio: str = "16:9",
        image_size: str = "2K",
    ):
        self.client = gemini_client
        self.model = model
        self.aspect_ratio = aspect_ratio
        self.image_size = image_size

    def build_payload(self, prompt: str) -> dict:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "imageConfig": {
                    "aspectRatio": self.aspect_ratio,
                    "imageSize": self.image_size,
                },
            },
        }

    async def generate(self, prompt: str, api_key: str) -> str:
        """
        Generate an image for a finalized prompt.

        Returns:
            ``data:image/png;base64,...`` URL of the first inline image part

        Raises:
            NoMediaProduced: If no part carries image data
        """
        logger.info(
            f"Generating image with {self.model}",
            extra={"model": self.model, "prompt": prompt[:200]}
        )

        response = await self.client.generate_content(self.model, self.build_payload(prompt), api_key)

        candidates = response.get("candidates") or []
        parts = []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []

        for part in parts:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                logger.info(
                    "Image generated",
                    extra={"model": self.model, "size_kb": round(len(inline["data"]) * 3 / 4 / 1024, 1)}
                )
                return to_data_url(inline["data"], "image/png")

        logger.warning(
            "Image response had no image part",
            extra={
                "model": self.model,
                "finish_reason": candidates[0].get("finishReason") if candidates else None,
                "block_reason": (response.get("promptFeedback") or {}).get("blockReason"),
            }
        )
        raise NoMediaProduced(
            "Nenhuma imagem gerada. O prompt pode ter violado as diretrizes de segurança."
        )
