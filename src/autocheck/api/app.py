"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, File, HTTPException, Request, Response, UploadFile, status

from autocheck.api.schemas import (
    AssessmentView,
    GlobalView,
    RoomsAdded,
    RoomView,
    SessionCreated,
    SessionView,
)
from autocheck.app_logging import configure_logging
from autocheck.containers import AppContainer
from autocheck.domain.rooms import GlobalSummary, Phase, RoomEntry, RoomImage
from autocheck.services.registry import RoomRegistry
from autocheck.services.scoring import score_band

PERFECT_SCORE = 100


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/sessions", status_code=status.HTTP_201_CREATED)
    async def start_session(request: Request) -> SessionCreated:
        """Start a session with an empty room registry."""
        state_container: AppContainer = request.app.state.container
        session_id = state_container.session_service.start_session()
        return SessionCreated(session_id=session_id)

    @app.get("/sessions/{session_id}")
    async def get_session(
        session_id: UUID, request: Request, wait: bool = False
    ) -> SessionView:
        """Return every room and the aggregate score for a session."""
        state_container: AppContainer = request.app.state.container
        registry = _require_registry(state_container, session_id)
        if wait:
            finished = await registry.wait_idle(
                state_container.settings.assessment_timeout_seconds
            )
            if not finished:
                logger.warning(
                    "Timed out waiting for assessments",
                    extra={"session_id": str(session_id)},
                )
        return _session_view(session_id, registry)

    @app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def end_session(session_id: UUID, request: Request) -> None:
        """End a session and release everything it holds."""
        state_container: AppContainer = request.app.state.container
        if not await state_container.session_service.end_session(session_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    @app.post("/sessions/{session_id}/rooms", status_code=status.HTTP_202_ACCEPTED)
    async def add_rooms(
        session_id: UUID,
        request: Request,
        files: list[UploadFile] = File(...),
    ) -> RoomsAdded:
        """Add one room per uploaded photo and start assessing each."""
        state_container: AppContainer = request.app.state.container
        registry = _require_registry(state_container, session_id)
        images = [await _read_image(state_container, upload) for upload in files]
        room_ids = registry.add_many(images)
        return RoomsAdded(room_ids=room_ids)

    @app.put(
        "/sessions/{session_id}/rooms/{room_id}/image",
        status_code=status.HTTP_202_ACCEPTED,
    )
    async def retake_room(
        session_id: UUID,
        room_id: UUID,
        request: Request,
        file: UploadFile = File(...),
    ) -> RoomView:
        """Replace a room's photo and reassess it."""
        state_container: AppContainer = request.app.state.container
        registry = _require_registry(state_container, session_id)
        image = await _read_image(state_container, file)
        if not registry.retake(room_id, image):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        entry = registry.get(room_id)
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _room_view(session_id, entry)

    @app.delete(
        "/sessions/{session_id}/rooms/{room_id}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def remove_room(session_id: UUID, room_id: UUID, request: Request) -> None:
        """Remove one room from the session."""
        state_container: AppContainer = request.app.state.container
        registry = _require_registry(state_container, session_id)
        if not registry.remove(room_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    @app.delete(
        "/sessions/{session_id}/rooms", status_code=status.HTTP_204_NO_CONTENT
    )
    async def reset_rooms(session_id: UUID, request: Request) -> None:
        """Remove every room from the session."""
        state_container: AppContainer = request.app.state.container
        registry = _require_registry(state_container, session_id)
        registry.reset_all()

    @app.get("/sessions/{session_id}/previews/{handle}")
    async def get_preview(session_id: UUID, handle: str, request: Request) -> Response:
        """Serve the image behind a live preview handle of this session."""
        state_container: AppContainer = request.app.state.container
        registry = _require_registry(state_container, session_id)
        image = registry.get_preview(handle)
        if image is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return Response(content=image.data, media_type=image.mime_type)

    return app


def _require_registry(container: AppContainer, session_id: UUID) -> RoomRegistry:
    """Return the session registry or raise 404."""
    registry = container.session_service.get_registry(session_id)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Unknown session"
        )
    return registry


async def _read_image(container: AppContainer, upload: UploadFile) -> RoomImage:
    """Read an uploaded photo, rejecting non-images and oversized files."""
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Not an image: {upload.filename}",
        )
    limit = container.settings.max_upload_bytes
    data = await upload.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"Image too large: {upload.filename}",
        )
    return RoomImage(data=data, mime_type=content_type, filename=upload.filename)


def _session_view(session_id: UUID, registry: RoomRegistry) -> SessionView:
    entries = registry.entries()
    return SessionView(
        session_id=session_id,
        rooms=[_room_view(session_id, entry) for entry in entries],
        summary=_global_view(registry.summary()),
    )


def _room_view(session_id: UUID, entry: RoomEntry) -> RoomView:
    result = None
    if entry.result is not None:
        result = AssessmentView(
            room_label=entry.result.room_label,
            score=entry.result.score,
            band=score_band(entry.result.score),
            perfect=entry.result.perfect,
            summary=entry.result.summary,
            issues=list(entry.result.issues),
            tips=list(entry.result.tips),
        )
    return RoomView(
        id=entry.id,
        status=entry.status,
        preview_url=f"/sessions/{session_id}/previews/{entry.preview}",
        filename=entry.image.filename,
        result=result,
        error_message=entry.error_message,
    )


def _global_view(summary: GlobalSummary) -> GlobalView:
    return GlobalView(
        score=summary.score,
        phase=summary.phase,
        band=score_band(summary.score),
        headline=_headline(summary),
        certified=summary.phase is Phase.RESULTS and summary.score == PERFECT_SCORE,
    )


def _headline(summary: GlobalSummary) -> str:
    """Return the top-level status line for the current phase and score."""
    if summary.phase is Phase.IDLE:
        return "Upload photos of every room to get started."
    if summary.phase is Phase.ANALYZING:
        return "Analyzing remaining rooms..."
    if summary.score == PERFECT_SCORE:
        return "The apartment is spotless. All set."
    return "Some areas need attention to reach perfection."
