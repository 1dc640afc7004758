"""Tests for the image generation client."""

import httpx
import pytest

from cinegen.utils.errors import NoMediaProduced

from conftest import API_KEY


@pytest.mark.asyncio
async def test_returns_png_data_url_from_first_inline_part(backend, real_image_generator):
    backend.on("POST", "gemini-3-pro-image-preview:generateContent", httpx.Response(200, json={
        "candidates": [{"content": {"parts": [
            {"text": "Here is your image"},
            {"inlineData": {"mimeType": "image/jpeg", "data": "AAAA"}},
            {"inlineData": {"mimeType": "image/png", "data": "BBBB"}},
        ]}}]
    }))

    url = await real_image_generator.generate("A hyperrealistic...", API_KEY)

    assert url == "data:image/png;base64,AAAA"


@pytest.mark.asyncio
async def test_requests_cinematic_aspect_and_2k(backend, real_image_generator):
    backend.on("POST", ":generateContent", httpx.Response(200, json={
        "candidates": [{"content": {"parts": [{"inlineData": {"data": "AAAA"}}]}}]
    }))

    await real_image_generator.generate("A hyperrealistic...", API_KEY)

    body = backend.body()
    assert body["contents"][0]["parts"][0]["text"] == "A hyperrealistic..."
    assert body["generationConfig"]["imageConfig"] == {"aspectRatio": "16:9", "imageSize": "2K"}


@pytest.mark.asyncio
async def test_no_image_part_raises_no_media_produced(backend, real_image_generator):
    backend.on("POST", ":generateContent", httpx.Response(200, json={
        "candidates": [{"finishReason": "IMAGE_SAFETY", "content": {"parts": [{"text": "I can't draw that"}]}}]
    }))

    with pytest.raises(NoMediaProduced) as exc_info:
        await real_image_generator.generate("something forbidden", API_KEY)

    assert "diretrizes de segurança" in str(exc_info.value)


@pytest.mark.asyncio
async def test_blocked_prompt_without_candidates(backend, real_image_generator):
    backend.on("POST", ":generateContent", httpx.Response(200, json={
        "promptFeedback": {"blockReason": "SAFETY"}
    }))

    with pytest.raises(NoMediaProduced):
        await real_image_generator.generate("something forbidden", API_KEY)
