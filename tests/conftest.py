"""Shared test fixtures."""

import asyncio
import io
from dataclasses import dataclass, field
from uuid import UUID

import pytest
from PIL import Image

from past_forward.adapters.pillow_album_assembler import PillowAlbumAssembler
from past_forward.config import Settings
from past_forward.containers import AppContainer
from past_forward.domain.decades import DECADE_LABELS
from past_forward.domain.generation import GenerationItem
from past_forward.domain.media import EncodedMedia
from past_forward.domain.sessions import SessionRecord
from past_forward.services.album import AlbumService
from past_forward.services.generation import (
    GenerationBackend,
    GenerationClient,
    ImageResponse,
    VideoOperation,
)
from past_forward.services.scheduler import GenerationScheduler
from past_forward.services.sessions import SessionService
from past_forward.services.state import SessionRepository


def make_png(color: tuple[int, int, int] = (120, 80, 40), size: int = 8) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (size, size), color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_image(color: tuple[int, int, int] = (120, 80, 40)) -> EncodedMedia:
    return EncodedMedia(mime_type="image/png", data=make_png(color))


class FakeServiceError(Exception):
    """Exception shaped like an SDK API error carrying a status code."""

    def __init__(self, code: int, message: str = "backend failure") -> None:
        super().__init__(f"{code} {message}")
        self.code = code


def _decade_in(prompt: str) -> str | None:
    for label in DECADE_LABELS:
        if label in prompt:
            return label
    return None


def _prompt_kind(prompt: str, image_only: bool) -> str:
    if image_only:
        return "edit"
    if prompt.startswith("You are an expert"):
        return "primary"
    return "fallback"


@dataclass
class FakeGenerationBackend(GenerationBackend):
    """Scripted backend that records calls and tracks concurrent requests.

    ``image_results`` maps a decade to the outcomes of successive image calls:
    an ``ImageResponse`` is returned, an exception is raised. When the script
    runs out the call succeeds with a generated picture.
    """

    image_results: dict[str, list[object]] = field(default_factory=dict)
    edit_results: list[object] = field(default_factory=list)
    script_text: str | None = "Tune in to the swinging sounds of the era!"
    speech: EncodedMedia | Exception | None = field(
        default_factory=lambda: EncodedMedia("audio/L16;rate=24000", b"\x00\x01" * 32)
    )
    video_steps: list[VideoOperation] = field(
        default_factory=lambda: [
            VideoOperation(name="operations/1", done=False),
            VideoOperation(
                name="operations/1", done=True, video_uri="https://files/video.mp4"
            ),
        ]
    )
    video_start_error: Exception | None = None
    video_bytes: bytes = b"\x00\x00\x00\x18ftypmp42"
    delay: float = 0.0
    calls: list[tuple[str | None, str]] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0
    release: asyncio.Event | None = None

    async def render_image(
        self, *, model: str, image: EncodedMedia, prompt: str, image_only: bool
    ) -> ImageResponse:
        decade = _decade_in(prompt)
        kind = _prompt_kind(prompt, image_only)
        self.calls.append((decade, kind))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.release is not None:
                await self.release.wait()
            await asyncio.sleep(self.delay)
            if kind == "edit":
                outcome = self.edit_results.pop(0) if self.edit_results else None
            else:
                script = self.image_results.get(decade or "", [])
                outcome = script.pop(0) if script else None
        finally:
            self.in_flight -= 1
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, ImageResponse):
            return outcome
        return ImageResponse(image=make_image((200, 180, 150)))

    async def write_text(self, *, model: str, prompt: str) -> str | None:
        self.calls.append((_decade_in(prompt), "script"))
        return self.script_text

    async def synthesize_speech(
        self, *, model: str, text: str, voice: str
    ) -> EncodedMedia | None:
        self.calls.append((None, f"speech:{voice}"))
        if isinstance(self.speech, Exception):
            raise self.speech
        return self.speech

    async def start_video(  # noqa: PLR0913
        self,
        *,
        model: str,
        image: EncodedMedia,
        prompt: str,
        aspect_ratio: str,
        resolution: str,
    ) -> VideoOperation:
        self.calls.append((_decade_in(prompt), f"video:{aspect_ratio}"))
        if self.video_start_error is not None:
            raise self.video_start_error
        return self.video_steps.pop(0)

    async def poll_video(self, operation: VideoOperation) -> VideoOperation:
        return self.video_steps.pop(0) if self.video_steps else operation

    async def download_video(self, uri: str) -> bytes:
        return self.video_bytes


@dataclass
class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[UUID, SessionRecord] = field(default_factory=dict)
    writes: list[tuple[str, GenerationItem]] = field(default_factory=list)
    fail_create: bool = False
    fail_writes: bool = False

    def create_session(self, session: SessionRecord) -> None:
        if self.fail_create:
            raise ConnectionError("database unavailable")
        self.sessions[session.id] = session

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        return self.sessions.get(session_id)

    def replace_item(self, session_id: UUID, decade: str, item: GenerationItem) -> None:
        if self.fail_writes:
            raise ConnectionError("database unavailable")
        self.writes.append((decade, item))
        session = self.sessions[session_id]
        items = dict(session.items)
        items[decade] = item
        self.sessions[session_id] = SessionRecord(
            id=session.id,
            created_at=session.created_at,
            source_image=session.source_image,
            decades=session.decades,
            items=items,
        )


def build_client(
    backend: FakeGenerationBackend, sleep: RecordingSleep | None = None
) -> GenerationClient:
    return GenerationClient(backend=backend, sleep=sleep or RecordingSleep())


@pytest.fixture
def settings() -> Settings:
    return Settings(
        gemini_api_key="gemini-key",
        supabase_url=None,
        supabase_service_key=None,
    )


@pytest.fixture
def source_image() -> EncodedMedia:
    return make_image()


@pytest.fixture
def backend() -> FakeGenerationBackend:
    return FakeGenerationBackend()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def generation_client(
    backend: FakeGenerationBackend, sleep: RecordingSleep
) -> GenerationClient:
    return build_client(backend, sleep)


@pytest.fixture
def scheduler(generation_client: GenerationClient) -> GenerationScheduler:
    return GenerationScheduler(client=generation_client, concurrency=2)


@pytest.fixture
def repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def container(
    settings: Settings,
    generation_client: GenerationClient,
    scheduler: GenerationScheduler,
    repository: InMemorySessionRepository,
) -> AppContainer:
    album_service = AlbumService(PillowAlbumAssembler(photo_size=40, border=4))
    session_service = SessionService(
        scheduler=scheduler,
        album_service=album_service,
        repository=repository,
    )

    async def close_resources() -> None:
        await session_service.close()

    return AppContainer(
        settings=settings,
        generation_client=generation_client,
        scheduler=scheduler,
        album_service=album_service,
        session_service=session_service,
        close_resources=close_resources,
    )
