"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import BackgroundTasks, FastAPI, Request, status
from fastapi.responses import JSONResponse, Response

from past_forward.api.models import (
    AcceptedResponse,
    AnimateRequest,
    CreateSessionRequest,
    DecadeResponse,
    EditRequest,
    SessionResponse,
)
from past_forward.app_logging import configure_logging
from past_forward.containers import AppContainer
from past_forward.domain.decades import DECADES
from past_forward.domain.errors import (
    IncompleteBatchError,
    InvalidInputError,
    SessionNotFoundError,
    SessionPersistenceError,
)
from past_forward.domain.media import EncodedMedia
from past_forward.services.sessions import SessionService


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

    @app.exception_handler(InvalidInputError)
    async def invalid_input(_request: Request, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.exception_handler(SessionNotFoundError)
    async def not_found(_request: Request, exc: SessionNotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(IncompleteBatchError)
    async def incomplete(_request: Request, exc: IncompleteBatchError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "unfinished": exc.unfinished},
        )

    @app.exception_handler(SessionPersistenceError)
    async def persistence(
        _request: Request, exc: SessionPersistenceError
    ) -> JSONResponse:
        logger.error("Session storage unavailable: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Session storage is unavailable"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/decades")
    async def list_decades() -> list[DecadeResponse]:
        """Return the supported decades in display order."""
        return [DecadeResponse.from_domain(decade) for decade in DECADES]

    @app.post("/sessions", status_code=status.HTTP_201_CREATED)
    async def create_session(
        payload: CreateSessionRequest, request: Request, background: BackgroundTasks
    ) -> SessionResponse:
        """Create a session and generate its decades in the background."""
        state_container: AppContainer = request.app.state.container
        image = EncodedMedia.from_data_url(payload.image)
        store = await state_container.session_service.start_session(
            image, payload.decades
        )
        background.add_task(
            state_container.session_service.process,
            store.session_id,
            payload.concurrency,
        )
        return SessionResponse.from_domain(store.snapshot())

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: UUID, request: Request) -> SessionResponse:
        """Return the current state of a session."""
        state_container: AppContainer = request.app.state.container
        session = await state_container.session_service.get_session(session_id)
        return SessionResponse.from_domain(session)

    @app.post(
        "/sessions/{session_id}/decades/{decade}/regenerate",
        status_code=status.HTTP_202_ACCEPTED,
    )
    async def regenerate(
        session_id: UUID, decade: str, request: Request, background: BackgroundTasks
    ) -> AcceptedResponse:
        """Regenerate one decade from the source photo."""
        service = await _require_decade(request, session_id, decade)
        background.add_task(service.regenerate, session_id, decade)
        return AcceptedResponse(session_id=session_id, decade=decade)

    @app.post(
        "/sessions/{session_id}/decades/{decade}/edit",
        status_code=status.HTTP_202_ACCEPTED,
    )
    async def edit(  # noqa: PLR0913
        session_id: UUID,
        decade: str,
        payload: EditRequest,
        request: Request,
        background: BackgroundTasks,
    ) -> AcceptedResponse:
        """Apply a free-text edit to a finished decade image."""
        if not payload.instruction.strip():
            raise InvalidInputError("An edit instruction is required")
        service = await _require_decade(request, session_id, decade)
        background.add_task(service.apply_edit, session_id, decade, payload.instruction)
        return AcceptedResponse(session_id=session_id, decade=decade)

    @app.post(
        "/sessions/{session_id}/decades/{decade}/animate",
        status_code=status.HTTP_202_ACCEPTED,
    )
    async def animate(  # noqa: PLR0913
        session_id: UUID,
        decade: str,
        payload: AnimateRequest,
        request: Request,
        background: BackgroundTasks,
    ) -> AcceptedResponse:
        """Create a short video for a finished decade image."""
        service = await _require_decade(request, session_id, decade)
        background.add_task(service.animate, session_id, decade, payload.aspect_ratio)
        return AcceptedResponse(session_id=session_id, decade=decade)

    @app.post(
        "/sessions/{session_id}/decades/{decade}/narrate",
        status_code=status.HTTP_202_ACCEPTED,
    )
    async def narrate(
        session_id: UUID, decade: str, request: Request, background: BackgroundTasks
    ) -> AcceptedResponse:
        """Create a spoken era narration for a finished decade image."""
        service = await _require_decade(request, session_id, decade)
        background.add_task(service.narrate, session_id, decade)
        return AcceptedResponse(session_id=session_id, decade=decade)

    @app.get("/sessions/{session_id}/album")
    async def album(session_id: UUID, request: Request) -> Response:
        """Download the album page once every decade is done."""
        state_container: AppContainer = request.app.state.container
        album_media = await state_container.session_service.export_album(session_id)
        return Response(
            content=album_media.data,
            media_type=album_media.mime_type,
            headers={
                "Content-Disposition": 'attachment; filename="past-forward-album.jpg"'
            },
        )

    return app


async def _require_decade(
    request: Request, session_id: UUID, decade: str
) -> SessionService:
    """Resolve the session service after checking the decade belongs to the session."""
    state_container: AppContainer = request.app.state.container
    service = state_container.session_service
    store = await service.get_store(session_id)
    store.get(decade)
    return service
