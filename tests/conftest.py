"""Pytest configuration and shared fixtures."""

import base64
import io
import json
from typing import AsyncGenerator, List, Optional

import httpx
import pytest
import pytest_asyncio
from PIL import Image

from cinegen.providers import GeminiClient
from cinegen.core import (
    PromptEnhancer,
    ImageGenerator,
    VideoGenerator,
    SessionCredentialStore,
    GenerationSession,
)
from cinegen.models import EnhancementResult

BASE_URL = "https://gemini.test/v1beta"
API_KEY = "test-key"


class FakeGeminiBackend:
    """Routes httpx requests to canned responses and records them."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes = []

    def on(self, method: str, path_suffix: str, *responses: httpx.Response):
        """Queue responses for a route; the last one repeats."""
        self._routes.append((method, path_suffix, list(responses)))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for method, suffix, queue in self._routes:
            if request.method == method and request.url.path.endswith(suffix):
                return queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(404, json={"error": {"code": 404, "message": "no route"}})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, path_suffix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path_suffix)]

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def text_response(text: str) -> httpx.Response:
    return httpx.Response(200, json={
        "candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]
    })


def enhancement_response(**overrides) -> httpx.Response:
    payload = {
        "prompt_final": "A hyperrealistic cat riding a skateboard, golden hour, 35mm",
        "variacao_1": "A cat skateboarding through neon Tokyo at night",
        "variacao_2": "A cat on a skateboard in a sunlit California skatepark",
        "suggestions": ["Use a low camera angle", "Add motion blur"],
    }
    payload.update(overrides)
    return text_response(json.dumps(payload))


def operation_response(name: str, done: bool = False, uri: Optional[str] = None) -> httpx.Response:
    payload = {"name": name}
    if done:
        payload["done"] = True
        samples = [{"video": {"uri": uri}}] if uri else []
        payload["response"] = {"generateVideoResponse": {"generatedSamples": samples}}
    return httpx.Response(200, json=payload)


def png_data_url() -> str:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), (200, 30, 30)).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("utf-8")


@pytest.fixture
def backend() -> FakeGeminiBackend:
    return FakeGeminiBackend()


@pytest_asyncio.fixture
async def gemini_client(backend) -> AsyncGenerator[GeminiClient, None]:
    """Create and initialize a Gemini client backed by the fake backend."""
    client = GeminiClient(base_url=BASE_URL, transport=backend.transport)
    await client.initialize()
    yield client
    await client.close()


class RecordingSleep:
    """Stands in for asyncio.sleep; records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


# ============================================================================
# Fakes for orchestrator tests
# ============================================================================

class FakeEnhancer:
    def __init__(self, result: Optional[EnhancementResult] = None, error: Optional[Exception] = None):
        self.result = result or EnhancementResult(
            prompt_final="A hyperrealistic...",
            variacao_1="Variation one text",
            variacao_2="Variation two text",
            suggestions=["Try dusk lighting"],
        )
        self.error = error
        self.calls = []

    async def enhance(self, user_input, api_key):
        self.calls.append((user_input, api_key))
        if self.error:
            raise self.error
        return self.result


class FakeImageGenerator:
    def __init__(self, url: str = "data:image/png;base64,AAAA", error: Optional[Exception] = None):
        self.url = url
        self.error = error
        self.calls = []

    async def generate(self, prompt, api_key):
        self.calls.append((prompt, api_key))
        if self.error:
            raise self.error
        return self.url


class FakeVideoGenerator:
    def __init__(self, url: str = "https://video.test/v.mp4?alt=media&key=test-key", error: Optional[Exception] = None):
        self.url = url
        self.error = error
        self.calls = []

    async def generate(self, prompt, api_key, reference_image=None):
        self.calls.append((prompt, api_key, reference_image))
        if self.error:
            raise self.error
        return self.url


@pytest.fixture
def enhancer() -> FakeEnhancer:
    return FakeEnhancer()


@pytest.fixture
def image_generator() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def video_generator() -> FakeVideoGenerator:
    return FakeVideoGenerator()


@pytest.fixture
def credentials() -> SessionCredentialStore:
    return SessionCredentialStore(api_key=API_KEY)


@pytest.fixture
def session(enhancer, image_generator, video_generator, credentials) -> GenerationSession:
    return GenerationSession(
        enhancer=enhancer,
        image_generator=image_generator,
        video_generator=video_generator,
        credentials=credentials,
    )


@pytest.fixture
def real_enhancer(gemini_client) -> PromptEnhancer:
    return PromptEnhancer(gemini_client, model="gemini-2.5-flash")


@pytest.fixture
def real_image_generator(gemini_client) -> ImageGenerator:
    return ImageGenerator(gemini_client, model="gemini-3-pro-image-preview")


@pytest.fixture
def real_video_generator(gemini_client, fake_sleep) -> VideoGenerator:
    return VideoGenerator(gemini_client, model="veo-test", sleep=fake_sleep)
