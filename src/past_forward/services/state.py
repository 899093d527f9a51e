"""Authoritative per-session decade state with an optional durable mirror."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from past_forward.domain.decades import normalize_decades
from past_forward.domain.errors import (
    INTERRUPTED_MESSAGE,
    InvalidInputError,
    SessionPersistenceError,
)
from past_forward.domain.generation import (
    Facet,
    FacetStatus,
    GenerationItem,
    GenerationStatus,
)
from past_forward.domain.media import EncodedMedia, validate_image
from past_forward.domain.sessions import SessionRecord

_logger = logging.getLogger(__name__)

ItemTransform = Callable[[GenerationItem], GenerationItem | None]
ProgressListener = Callable[[str, GenerationItem], None]


class SessionRepository(Protocol):
    """Persistence interface for generation sessions."""

    def create_session(self, session: SessionRecord) -> None:
        """Persist a new session record with its seeded items."""

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""

    def replace_item(self, session_id: UUID, decade: str, item: GenerationItem) -> None:
        """Replace the stored item for one decade."""


@dataclass
class SessionStateStore:
    """Owns one session's decade map; all writes go through ``update``."""

    session_id: UUID
    created_at: datetime
    source_image: EncodedMedia
    decades: tuple[str, ...]
    repository: SessionRepository | None = None
    _items: dict[str, GenerationItem] = field(default_factory=dict, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _listeners: list[ProgressListener] = field(default_factory=list, repr=False)
    _mirror_queue: asyncio.Queue | None = field(default=None, repr=False)
    _mirror_task: asyncio.Task | None = field(default=None, repr=False)

    @classmethod
    async def create(
        cls,
        decades: list[str] | tuple[str, ...],
        source_image: EncodedMedia,
        repository: SessionRepository | None = None,
    ) -> "SessionStateStore":
        """Validate input, persist the session record and seed pending items."""
        labels = normalize_decades(decades)
        image = validate_image(source_image)
        store = cls(
            session_id=uuid4(),
            created_at=datetime.now(tz=UTC),
            source_image=image,
            decades=labels,
            repository=repository,
        )
        store._items = {decade: GenerationItem() for decade in labels}
        if repository is not None:
            try:
                await asyncio.to_thread(repository.create_session, store.snapshot())
            except Exception as exc:
                raise SessionPersistenceError(
                    f"Failed to create session record: {exc}"
                ) from exc
        return store

    @classmethod
    def restore(
        cls, record: SessionRecord, repository: SessionRepository | None = None
    ) -> "SessionStateStore":
        """Rebuild a store from a persisted record."""
        store = cls(
            session_id=record.id,
            created_at=record.created_at,
            source_image=record.source_image,
            decades=record.decades,
            repository=repository,
        )
        store._items = {
            decade: _settle_interrupted(record.items.get(decade))
            for decade in record.decades
        }
        return store

    def snapshot(self) -> SessionRecord:
        """Return a consistent copy of the session."""
        return SessionRecord(
            id=self.session_id,
            created_at=self.created_at,
            source_image=self.source_image,
            decades=self.decades,
            items=dict(self._items),
        )

    def get(self, decade: str) -> GenerationItem:
        """Return the current item for a requested decade."""
        try:
            return self._items[decade]
        except KeyError:
            raise InvalidInputError(
                f"Decade {decade!r} is not part of this session"
            ) from None

    def progress(self) -> tuple[int, int]:
        """Return (finished, requested) counts for the primary image."""
        return self.snapshot().completed_count(), len(self.decades)

    def is_complete(self) -> bool:
        """Return true when every requested decade is done or failed."""
        return self.snapshot().is_complete()

    def subscribe(self, listener: ProgressListener) -> None:
        """Register a callback invoked after every item transition."""
        self._listeners.append(listener)

    async def update(self, decade: str, transform: ItemTransform) -> GenerationItem:
        """Apply a transform to one decade's item as a single serialized write.

        The transform receives the current item and returns its replacement,
        or ``None`` to keep the current item.
        """
        async with self._lock:
            current = self.get(decade)
            updated = transform(current)
            if updated is None or updated == current:
                return current
            self._items[decade] = updated
        self._publish(decade, updated)
        return updated

    async def begin(
        self,
        decade: str,
        guard: Callable[[GenerationItem], bool],
        transform: ItemTransform,
    ) -> GenerationItem | None:
        """Atomically check a guard and apply a transform.

        Returns the new item, or ``None`` when the guard refused.
        """
        async with self._lock:
            current = self.get(decade)
            if not guard(current):
                return None
            updated = transform(current)
            if updated is None:
                return None
            self._items[decade] = updated
        self._publish(decade, updated)
        return updated

    async def flush(self) -> None:
        """Wait until every queued mirror write has been attempted."""
        if self._mirror_task is None or self._mirror_task.done():
            return
        if self._mirror_queue is not None:
            await self._mirror_queue.join()

    async def close(self) -> None:
        """Flush and stop the mirror writer."""
        await self.flush()
        if self._mirror_task is not None:
            self._mirror_task.cancel()
            try:
                await self._mirror_task
            except asyncio.CancelledError:
                pass
            self._mirror_task = None
            self._mirror_queue = None

    def _publish(self, decade: str, item: GenerationItem) -> None:
        for listener in list(self._listeners):
            try:
                listener(decade, item)
            except Exception:
                _logger.exception("Progress listener failed", extra={"decade": decade})
        if self.repository is not None:
            self._enqueue_mirror_write(decade, item)

    def _enqueue_mirror_write(self, decade: str, item: GenerationItem) -> None:
        if self._mirror_task is None or self._mirror_task.done():
            # A writer bound to a finished event loop leaves its backlog behind.
            backlog = []
            while self._mirror_queue is not None and not self._mirror_queue.empty():
                backlog.append(self._mirror_queue.get_nowait())
            self._mirror_queue = asyncio.Queue()
            for entry in backlog:
                self._mirror_queue.put_nowait(entry)
            self._mirror_task = asyncio.create_task(self._mirror_writer())
        self._mirror_queue.put_nowait((decade, item))

    async def _mirror_writer(self) -> None:
        """Write queued transitions in order; failures never reach callers."""
        queue = self._mirror_queue
        assert queue is not None
        repository = self.repository
        assert repository is not None
        while True:
            decade, item = await queue.get()
            try:
                await asyncio.to_thread(
                    repository.replace_item, self.session_id, decade, item
                )
            except Exception:
                _logger.exception(
                    "Failed to persist session item",
                    extra={"session_id": str(self.session_id), "decade": decade},
                )
            finally:
                queue.task_done()


def _settle_interrupted(item: GenerationItem | None) -> GenerationItem:
    """Turn work that was in flight when the session was saved into errors."""
    if item is None or item.status == GenerationStatus.PENDING:
        revision = item.revision if item else 0
        return GenerationItem(revision=revision).to_error(INTERRUPTED_MESSAGE)
    for facet in (Facet.VIDEO, Facet.AUDIO):
        status, _, _ = item.facet_state(facet)
        if status == FacetStatus.PENDING:
            item = item.with_facet(facet, FacetStatus.ERROR, error=INTERRUPTED_MESSAGE)
    return item
