"""Main FastAPI application entry point."""

import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from . import __version__
from .api import health, studio
from .providers import GeminiClient
from .core import (
    PromptEnhancer,
    ImageGenerator,
    VideoGenerator,
    SessionCredentialStore,
    GenerationSession,
)
from .utils.config import Config, load_config
from .utils.logger import get_logger

logger = get_logger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def build_session(
    config: Config,
    gemini: GeminiClient,
    credentials: SessionCredentialStore,
) -> GenerationSession:
    """Wire the generation clients and the orchestrator from configuration."""
    enhancer = PromptEnhancer(
        gemini_client=gemini,
        model=config.enhancement.model,
    )

    image_generator = ImageGenerator(
        gemini_client=gemini,
        model=config.image.model,
        aspect_ratio=config.image.aspect_ratio,
        image_size=config.image.image_size,
    )

    video_generator = VideoGenerator(
        gemini_client=gemini,
        model=config.video.model,
        aspect_ratio=config.video.aspect_ratio,
        resolution=config.video.resolution,
        number_of_videos=config.video.number_of_videos,
        default_mime_type=config.video.default_mime_type,
        poll_interval=config.video.poll_interval_seconds,
        max_wait=config.video_poll_timeout_seconds,
    )

    return GenerationSession(
        enhancer=enhancer,
        image_generator=image_generator,
        video_generator=video_generator,
        credentials=credentials,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown.

    Builds the Gemini client and the session on startup, cancels any
    in-flight run and closes the client on shutdown.
    """
    logger.info("Application starting up...")

    try:
        config = getattr(app.state, "config", None) or load_config()

        gemini = GeminiClient(
            base_url=config.gemini_base_url,
            timeout=config.timeout_gemini_seconds,
            transport=getattr(app.state, "gemini_transport", None),
        )
        await gemini.initialize()

        credentials = SessionCredentialStore(api_key=config.api_key)
        session = build_session(config, gemini, credentials)

        app.state.config = config
        app.state.gemini = gemini
        app.state.credentials = credentials
        app.state.session = session
        app.state.generation_task = None

    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    logger.info("Application startup complete")

    yield

    logger.info("Application shutting down...")

    task = app.state.generation_task
    if task is not None and not task.done():
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    await gemini.close()

    logger.info("Application shutdown complete")


def create_app(cors_origins: Optional[List[str]] = None) -> FastAPI:
    app = FastAPI(
        title="CineGen Studio",
        description="Prompt-enhanced image and video generation",
        version=__version__,
        lifespan=lifespan,
    )

    if cors_origins is None:
        cors_origins = Config(**os.environ).cors_allow_origins

    # The page is served from the same origin; other origins must be listed
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["Content-Type"],
        )
        logger.info("CORS enabled", extra={"origins": cors_origins})

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(studio.router, prefix="/api", tags=["studio"])

    @app.get("/", include_in_schema=False)
    async def index():
        """The single page."""
        return FileResponse(STATIC_DIR / "index.html")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))

    uvicorn.run(
        "cinegen.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
        log_level="info",
    )
