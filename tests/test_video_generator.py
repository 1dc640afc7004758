"""Tests for the video generation client and its polling loop."""

import httpx
import pytest

from cinegen.core.video_generator import VideoGenerator, append_api_key
from cinegen.utils.errors import VideoGenerationFailure
from cinegen.utils.images import parse_reference_image, strip_data_url_prefix

from conftest import API_KEY, operation_response

OPERATION = "models/veo-test/operations/op-1"
VIDEO_URI = "https://gemini.test/v1beta/files/abc:download?alt=media"


def submit_route(backend, done=False, uri=None):
    backend.on("POST", "veo-test:predictLongRunning", operation_response(OPERATION, done=done, uri=uri))


class TestReferenceImage:
    """Data URL handling for image-to-video."""

    def test_strip_prefix_yields_same_payload(self):
        raw = "iVBORw0KGgoAAAANSUhEUg=="
        assert strip_data_url_prefix("data:image/png;base64," + raw) == raw
        assert strip_data_url_prefix(raw) == raw

    def test_strip_is_idempotent(self):
        once = strip_data_url_prefix("data:image/jpeg;base64,/9j/4AAQ")
        assert strip_data_url_prefix(once) == once == "/9j/4AAQ"

    def test_mime_type_from_header_or_default(self):
        assert parse_reference_image("data:image/jpeg;base64,/9j/").mime_type == "image/jpeg"
        assert parse_reference_image("/9j/").mime_type == "image/png"


class TestAppendApiKey:

    def test_uri_with_query_gets_ampersand(self):
        assert append_api_key(VIDEO_URI, API_KEY) == VIDEO_URI + "&key=test-key"

    def test_uri_without_query_gets_question_mark(self):
        assert append_api_key("https://x.test/v.mp4", API_KEY) == "https://x.test/v.mp4?key=test-key"


@pytest.mark.asyncio
async def test_text_to_video_payload(backend, real_video_generator):
    submit_route(backend, done=True, uri=VIDEO_URI)

    await real_video_generator.generate("A slow dolly shot", API_KEY)

    body = backend.body(0)
    assert body["instances"] == [{"prompt": "A slow dolly shot"}]
    assert body["parameters"] == {"aspectRatio": "16:9", "resolution": "1080p", "sampleCount": 1}


@pytest.mark.asyncio
async def test_image_to_video_sends_same_bytes_with_or_without_prefix(backend, real_video_generator):
    submit_route(backend, done=True, uri=VIDEO_URI)
    raw = "iVBORw0KGgoAAAANSUhEUg=="

    await real_video_generator.generate("Animate", API_KEY, "data:image/png;base64," + raw)
    await real_video_generator.generate("Animate", API_KEY, raw)

    with_prefix = backend.body(0)["instances"][0]["image"]
    without_prefix = backend.body(1)["instances"][0]["image"]
    assert with_prefix == without_prefix == {"bytesBase64Encoded": raw, "mimeType": "image/png"}


@pytest.mark.asyncio
async def test_polls_once_per_interval_until_done(backend, real_video_generator, fake_sleep):
    submit_route(backend)
    backend.on(
        "GET", "operations/op-1",
        operation_response(OPERATION),
        operation_response(OPERATION),
        operation_response(OPERATION, done=True, uri=VIDEO_URI),
    )

    url = await real_video_generator.generate("A slow dolly shot", API_KEY)

    assert url == VIDEO_URI + "&key=test-key"
    assert fake_sleep.delays == [5.0, 5.0, 5.0]
    assert len(backend.calls_to("operations/op-1")) == 3
    assert backend.calls_to(":generateContent") == []
    assert all(r.headers["x-goog-api-key"] == API_KEY for r in backend.requests)


@pytest.mark.asyncio
async def test_already_done_operation_is_not_polled(backend, real_video_generator, fake_sleep):
    submit_route(backend, done=True, uri=VIDEO_URI)

    await real_video_generator.generate("A slow dolly shot", API_KEY)

    assert fake_sleep.delays == []
    assert len(backend.requests) == 1


@pytest.mark.asyncio
async def test_done_without_uri_raises(backend, real_video_generator):
    submit_route(backend)
    backend.on("GET", "operations/op-1", operation_response(OPERATION, done=True))

    with pytest.raises(VideoGenerationFailure) as exc_info:
        await real_video_generator.generate("A slow dolly shot", API_KEY)

    assert "Falha na geração do vídeo." in str(exc_info.value)


@pytest.mark.asyncio
async def test_operation_error_raises(backend, real_video_generator):
    submit_route(backend)
    backend.on("GET", "operations/op-1", httpx.Response(200, json={
        "name": OPERATION, "done": True, "error": {"code": 3, "message": "Prompt rejected"}
    }))

    with pytest.raises(VideoGenerationFailure) as exc_info:
        await real_video_generator.generate("A slow dolly shot", API_KEY)

    assert "Prompt rejected" in str(exc_info.value)


@pytest.mark.asyncio
async def test_optional_deadline_stops_polling(backend, gemini_client, fake_sleep):
    submit_route(backend)
    backend.on("GET", "operations/op-1", operation_response(OPERATION))

    ticks = iter([0.0, 5.0, 10.0])
    generator = VideoGenerator(
        gemini_client,
        model="veo-test",
        max_wait=10,
        sleep=fake_sleep,
        clock=lambda: next(ticks),
    )

    with pytest.raises(VideoGenerationFailure):
        await generator.generate("A slow dolly shot", API_KEY)

    assert len(backend.calls_to("operations/op-1")) == 1
