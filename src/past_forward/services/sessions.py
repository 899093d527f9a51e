"""Session facade used by the HTTP layer."""

import asyncio
import logging
from dataclasses import dataclass, field
from uuid import UUID

from past_forward.domain.decades import DECADE_LABELS
from past_forward.domain.errors import SessionNotFoundError, SessionPersistenceError
from past_forward.domain.media import EncodedMedia
from past_forward.domain.sessions import SessionRecord
from past_forward.services.album import AlbumService
from past_forward.services.scheduler import GenerationScheduler
from past_forward.services.state import SessionRepository, SessionStateStore

_logger = logging.getLogger(__name__)


@dataclass
class SessionService:
    """Keeps live session stores and routes operations to the scheduler."""

    scheduler: GenerationScheduler
    album_service: AlbumService
    repository: SessionRepository | None = None
    default_decades: tuple[str, ...] = DECADE_LABELS
    _stores: dict[UUID, SessionStateStore] = field(default_factory=dict, repr=False)

    async def start_session(
        self, image: EncodedMedia, decades: list[str] | None = None
    ) -> SessionStateStore:
        """Create a session with every requested decade pending."""
        store = await SessionStateStore.create(
            decades or self.default_decades, image, repository=self.repository
        )
        self._stores[store.session_id] = store
        _logger.info(
            "Session %s started with %s decades", store.session_id, len(store.decades)
        )
        return store

    async def process(
        self, session_id: UUID, concurrency: int | None = None
    ) -> SessionRecord:
        """Run the whole batch for a session and return the final snapshot."""
        store = await self.get_store(session_id)
        await self.scheduler.run_batch(store, concurrency)
        await store.flush()
        return store.snapshot()

    async def run_batch(
        self,
        decades: list[str] | None,
        image: EncodedMedia,
        concurrency: int | None = None,
    ) -> SessionRecord:
        """Create a session and generate all of its decades."""
        store = await self.start_session(image, decades)
        return await self.process(store.session_id, concurrency)

    async def get_store(self, session_id: UUID) -> SessionStateStore:
        """Return the live store, restoring it from the repository if needed."""
        store = self._stores.get(session_id)
        if store is not None:
            return store
        if self.repository is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        try:
            record = await asyncio.to_thread(self.repository.get_session, session_id)
        except Exception as exc:
            raise SessionPersistenceError(
                f"Failed to load session {session_id}: {exc}"
            ) from exc
        if record is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        store = SessionStateStore.restore(record, repository=self.repository)
        self._stores[session_id] = store
        _logger.info("Session %s restored from storage", session_id)
        return store

    async def get_session(self, session_id: UUID) -> SessionRecord:
        """Return a snapshot of a session."""
        store = await self.get_store(session_id)
        return store.snapshot()

    async def regenerate(self, session_id: UUID, decade: str) -> bool:
        store = await self.get_store(session_id)
        started = await self.scheduler.regenerate(store, decade)
        await store.flush()
        return started

    async def apply_edit(self, session_id: UUID, decade: str, instruction: str) -> bool:
        store = await self.get_store(session_id)
        started = await self.scheduler.apply_edit(store, decade, instruction)
        await store.flush()
        return started

    async def animate(self, session_id: UUID, decade: str, aspect_ratio: str) -> bool:
        store = await self.get_store(session_id)
        started = await self.scheduler.animate(store, decade, aspect_ratio)
        await store.flush()
        return started

    async def narrate(self, session_id: UUID, decade: str) -> bool:
        store = await self.get_store(session_id)
        started = await self.scheduler.narrate(store, decade)
        await store.flush()
        return started

    async def export_album(self, session_id: UUID) -> EncodedMedia:
        """Assemble the album for a fully generated session."""
        store = await self.get_store(session_id)
        return await asyncio.to_thread(self.album_service.export, store.snapshot())

    async def close(self) -> None:
        """Flush and stop every store's mirror writer."""
        for store in list(self._stores.values()):
            await store.close()
