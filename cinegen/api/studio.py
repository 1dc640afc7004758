"""Generation endpoints used by the single page."""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from ..core.credentials import SessionCredentialStore
from ..core.orchestrator import GenerationSession
from ..models.enums import MediaType
from ..models.schemas import CredentialRequest, GenerateRequest, SessionSnapshot
from ..utils.images import InvalidReferenceImage, validate_reference_image
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCIES
# ============================================================================

async def get_session(request: Request) -> GenerationSession:
    """Dependency to get the generation session from app state."""
    return request.app.state.session


async def get_credentials(request: Request) -> SessionCredentialStore:
    """Dependency to get the credential store from app state."""
    return request.app.state.credentials


def _run_in_flight(request: Request, session: GenerationSession) -> bool:
    task: Optional[asyncio.Task] = getattr(request.app.state, "generation_task", None)
    return session.is_busy or (task is not None and not task.done())


def _start_run(request: Request, coro) -> asyncio.Task:
    task = asyncio.create_task(coro)
    request.app.state.generation_task = task
    return task


# ============================================================================
# STATE
# ============================================================================

@router.get("/state", response_model=SessionSnapshot)
async def get_state(session: GenerationSession = Depends(get_session)):
    """Current snapshot; the page polls this while a run is in flight."""
    return session.snapshot()


# ============================================================================
# GENERATION
# ============================================================================

@router.post("/generate", response_model=SessionSnapshot, status_code=202)
async def generate(
    body: GenerateRequest,
    request: Request,
    session: GenerationSession = Depends(get_session),
):
    """Start a run: enhance the prompt, then render image or video."""
    if not body.prompt.strip() and not body.reference_image:
        raise HTTPException(status_code=400, detail="Descreva a cena ou envie uma imagem de referência.")

    if _run_in_flight(request, session):
        raise HTTPException(status_code=409, detail="Uma geração já está em andamento.")

    mode = body.mode
    if body.reference_image:
        try:
            validate_reference_image(body.reference_image)
        except InvalidReferenceImage as e:
            raise HTTPException(status_code=400, detail=str(e))

        # A reference image is only used for animation
        if mode != MediaType.VIDEO:
            logger.info("Reference image attached, switching to video mode")
            mode = MediaType.VIDEO

    _start_run(
        request,
        session.run_generation(body.prompt, mode, body.reference_image, skip_enhancement=False),
    )

    logger.info(
        "Generation scheduled",
        extra={"mode": mode.value, "has_reference_image": bool(body.reference_image)}
    )

    return session.snapshot()


@router.post("/variations/{index}", response_model=SessionSnapshot, status_code=202)
async def select_variation(
    index: int,
    request: Request,
    mode: Optional[MediaType] = None,
    session: GenerationSession = Depends(get_session),
):
    """Render one of the two offered variations, skipping enhancement."""
    if session.enhancement is None or index not in (1, 2):
        raise HTTPException(status_code=404, detail="Variação não encontrada.")

    if _run_in_flight(request, session):
        raise HTTPException(status_code=409, detail="Uma geração já está em andamento.")

    _start_run(request, session.select_variation(index, mode))

    return session.snapshot()


@router.post("/cancel", response_model=SessionSnapshot)
async def cancel_generation(
    request: Request,
    session: GenerationSession = Depends(get_session),
):
    """Cancel the in-flight run, including a pending video poll."""
    task: Optional[asyncio.Task] = getattr(request.app.state, "generation_task", None)
    if task is None or task.done():
        raise HTTPException(status_code=409, detail="Nenhuma geração em andamento.")

    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass

    return session.snapshot()


# ============================================================================
# CREDENTIAL
# ============================================================================

@router.post("/credential", response_model=SessionSnapshot)
async def select_credential(
    body: CredentialRequest,
    session: GenerationSession = Depends(get_session),
    credentials: SessionCredentialStore = Depends(get_credentials),
):
    """Select the API key used from the next backend call on."""
    credentials.set_key(body.api_key)
    return session.snapshot()


@router.delete("/credential", response_model=SessionSnapshot)
async def clear_credential(
    session: GenerationSession = Depends(get_session),
    credentials: SessionCredentialStore = Depends(get_credentials),
):
    credentials.clear()
    return session.snapshot()
