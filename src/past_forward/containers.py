"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from past_forward.adapters.gemini_generation_backend import GeminiGenerationBackend
from past_forward.adapters.pillow_album_assembler import PillowAlbumAssembler
from past_forward.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from past_forward.config import Settings, parse_decade_list
from past_forward.services.album import AlbumService
from past_forward.services.generation import GenerationClient
from past_forward.services.scheduler import GenerationScheduler
from past_forward.services.sessions import SessionService
from past_forward.services.state import SessionRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    generation_client: GenerationClient
    scheduler: GenerationScheduler
    album_service: AlbumService
    session_service: SessionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    repository: SessionRepository | None = None
    if resolved_settings.supabase_url and resolved_settings.supabase_service_key:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        repository = SupabaseSessionRepository(supabase_client)
    backend = GeminiGenerationBackend.create(resolved_settings.gemini_api_key)
    generation_client = GenerationClient(
        backend=backend,
        image_model=resolved_settings.image_model,
        text_model=resolved_settings.text_model,
        tts_model=resolved_settings.tts_model,
        tts_voice=resolved_settings.tts_voice,
        video_model=resolved_settings.video_model,
        video_resolution=resolved_settings.video_resolution,
        retry_attempts=resolved_settings.retry_attempts,
        retry_initial_delay_seconds=resolved_settings.retry_initial_delay_seconds,
        video_poll_interval_seconds=resolved_settings.video_poll_interval_seconds,
    )
    scheduler = GenerationScheduler(
        client=generation_client,
        concurrency=resolved_settings.generation_concurrency,
    )
    album_service = AlbumService(PillowAlbumAssembler())
    session_service = SessionService(
        scheduler=scheduler,
        album_service=album_service,
        repository=repository,
        default_decades=parse_decade_list(resolved_settings.default_decades),
    )

    async def close_resources() -> None:
        await session_service.close()
        await backend.close()

    return AppContainer(
        settings=resolved_settings,
        generation_client=generation_client,
        scheduler=scheduler,
        album_service=album_service,
        session_service=session_service,
        close_resources=close_resources,
    )
