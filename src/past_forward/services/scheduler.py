"""Bounded-concurrency scheduling of decade generation work."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace

from past_forward.domain.decades import get_decade, style_hint_for
from past_forward.domain.errors import (
    GenerationFailedError,
    InvalidInputError,
    NoImageReturnedError,
    user_message,
)
from past_forward.domain.generation import (
    Facet,
    FacetStatus,
    GenerationItem,
    GenerationStatus,
)
from past_forward.domain.media import EncodedMedia
from past_forward.services.generation import GenerationClient
from past_forward.services.prompts import build_fallback_prompt, build_primary_prompt
from past_forward.services.state import SessionStateStore

_logger = logging.getLogger(__name__)

ArtifactProducer = Callable[[EncodedMedia], Awaitable[EncodedMedia]]


@dataclass
class GenerationScheduler:
    """Runs decade batches and single-item operations against a session store."""

    client: GenerationClient
    concurrency: int = 2

    async def run_batch(
        self, store: SessionStateStore, concurrency: int | None = None
    ) -> None:
        """Generate every requested decade with at most ``concurrency`` in flight.

        Every decade is reset to pending before the first worker starts.
        Failures are recorded per decade and never abort sibling work.
        """
        limit = self.concurrency if concurrency is None else concurrency
        if limit < 1:
            raise InvalidInputError("Concurrency must be at least 1")
        decades = store.decades
        if not decades:
            raise InvalidInputError("At least one decade must be requested")

        for decade in decades:
            await store.update(decade, lambda item: item.to_pending())

        queue: asyncio.Queue[str] = asyncio.Queue()
        for decade in decades:
            queue.put_nowait(decade)

        async def worker() -> None:
            while True:
                try:
                    decade = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                await self._generate_into(store, decade, store.get(decade).revision)

        await asyncio.gather(*(worker() for _ in range(min(limit, len(decades)))))
        finished, total = store.progress()
        _logger.info(
            "Batch finished for session %s: %s/%s decades",
            store.session_id,
            finished,
            total,
        )

    async def regenerate(self, store: SessionStateStore, decade: str) -> bool:
        """Regenerate one decade; returns False when it is already in flight."""
        started = await store.begin(
            decade, lambda item: not item.is_busy, lambda item: item.to_pending()
        )
        if started is None:
            _logger.info("Regenerate ignored for %s: already pending", decade)
            return False
        await self._generate_into(store, decade, started.revision)
        return True

    async def apply_edit(
        self, store: SessionStateStore, decade: str, instruction: str
    ) -> bool:
        """Edit a finished image; returns False when the edit was not started.

        A successful edit replaces the image and resets video and audio to
        idle. A failed edit restores the previous item with a notice.
        """
        if not instruction or not instruction.strip():
            raise InvalidInputError("An edit instruction is required")
        captured: list[GenerationItem] = []

        def start(item: GenerationItem) -> GenerationItem:
            captured.append(item)
            return item.to_pending()

        started = await store.begin(
            decade,
            lambda item: item.status == GenerationStatus.DONE and not item.is_busy,
            start,
        )
        if started is None:
            _logger.info("Edit ignored for %s: image not ready", decade)
            return False
        previous = captured[0]
        source = previous.result_image
        assert source is not None
        try:
            edited = await self.client.edit_image(source, instruction)
        except Exception as exc:
            _logger.exception("Edit failed for %s", decade)
            message = user_message(exc)
            await store.update(
                decade,
                lambda item: _settle(
                    item,
                    started.revision,
                    lambda current: replace(
                        previous, notice=message, revision=current.revision
                    ),
                ),
            )
            return True
        await store.update(
            decade,
            lambda item: _settle(
                item, started.revision, lambda current: current.to_done(edited)
            ),
        )
        return True

    async def animate(
        self, store: SessionStateStore, decade: str, aspect_ratio: str
    ) -> bool:
        """Create a short video for a finished image."""
        return await self._run_facet(
            store,
            decade,
            Facet.VIDEO,
            lambda image: self.client.generate_video(image, decade, aspect_ratio),
        )

    async def narrate(self, store: SessionStateStore, decade: str) -> bool:
        """Create an era narration for a finished image."""
        return await self._run_facet(
            store,
            decade,
            Facet.AUDIO,
            lambda _image: self.client.generate_audio_narration(decade),
        )

    async def _generate_into(
        self, store: SessionStateStore, decade: str, revision: int
    ) -> None:
        """Generate one decade and record the outcome in the store."""
        try:
            image = await self._generate_with_fallback(store.source_image, decade)
        except Exception as exc:
            _logger.exception("Failed to generate image for %s", decade)
            message = user_message(exc)
            await store.update(
                decade,
                lambda item: _settle(
                    item, revision, lambda current: current.to_error(message)
                ),
            )
            return
        await store.update(
            decade,
            lambda item: _settle(item, revision, lambda current: current.to_done(image)),
        )

    async def _generate_with_fallback(
        self, source_image: EncodedMedia, decade: str
    ) -> EncodedMedia:
        """Try the primary prompt, escalating once to the fallback prompt."""
        style_hint = get_decade(decade).style_hint
        try:
            return await self.client.generate_image(
                source_image, build_primary_prompt(decade, style_hint)
            )
        except NoImageReturnedError as primary_error:
            _logger.warning(
                "Primary prompt for %s was likely blocked, trying fallback", decade
            )
            try:
                return await self.client.generate_image(
                    source_image, build_fallback_prompt(decade, style_hint_for(decade))
                )
            except Exception as fallback_error:
                raise GenerationFailedError(
                    primary_error, fallback_error
                ) from fallback_error

    async def _run_facet(
        self,
        store: SessionStateStore,
        decade: str,
        facet: Facet,
        produce: ArtifactProducer,
    ) -> bool:
        started = await store.begin(
            decade,
            lambda item: _facet_ready(item, facet),
            lambda item: item.with_facet(facet, FacetStatus.PENDING),
        )
        if started is None:
            _logger.info("%s ignored for %s: not ready or pending", facet, decade)
            return False
        image = started.result_image
        assert image is not None
        try:
            artifact = await produce(image)
        except Exception as exc:
            _logger.exception("%s generation failed for %s", facet, decade)
            message = user_message(exc)
            await store.update(
                decade,
                lambda item: _settle(
                    item,
                    started.revision,
                    lambda current: current.with_facet(
                        facet, FacetStatus.ERROR, error=message
                    ),
                ),
            )
            return True
        await store.update(
            decade,
            lambda item: _settle(
                item,
                started.revision,
                lambda current: current.with_facet(
                    facet, FacetStatus.DONE, result=artifact
                ),
            ),
        )
        return True


def _facet_ready(item: GenerationItem, facet: Facet) -> bool:
    if item.status != GenerationStatus.DONE:
        return False
    status, _, _ = item.facet_state(facet)
    return status != FacetStatus.PENDING


def _settle(
    item: GenerationItem,
    revision: int,
    transition: Callable[[GenerationItem], GenerationItem],
) -> GenerationItem | None:
    """Apply a completion only if the base image has not changed meanwhile."""
    if item.revision != revision:
        _logger.warning(
            "Discarding stale result (revision %s, current %s)", revision, item.revision
        )
        return None
    return transition(item)
