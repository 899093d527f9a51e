"""Generation client: retries, validation and failure classification."""

import asyncio
import io
import logging
import wave
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from past_forward.domain.errors import (
    AudioGenerationError,
    EditFailedError,
    GenerationExhaustedError,
    GenerationServiceError,
    InvalidInputError,
    NoImageReturnedError,
    VideoCredentialsError,
    VideoGenerationError,
)
from past_forward.domain.generation import ASPECT_RATIOS
from past_forward.domain.media import EncodedMedia, validate_image
from past_forward.services.prompts import (
    build_narration_script_prompt,
    build_video_prompt,
)

_logger = logging.getLogger(__name__)

_CREDENTIAL_SIGNATURES = ("Requested entity was not found", "API key not valid")
_PCM_SAMPLE_RATE = 24000


@dataclass(frozen=True)
class ImageResponse:
    """Outcome of an image request: inline image data or a text reply."""

    image: EncodedMedia | None
    text: str | None = None


@dataclass(frozen=True)
class VideoOperation:
    """Snapshot of a long-running video generation request."""

    name: str
    done: bool
    video_uri: str | None = None
    error: str | None = None
    handle: object | None = field(default=None, compare=False, repr=False)


class GenerationBackend(Protocol):
    """Interface for the external image, text, speech and video service."""

    async def render_image(
        self, *, model: str, image: EncodedMedia, prompt: str, image_only: bool
    ) -> ImageResponse:
        """Send one source image with an instruction and return the reply."""

    async def write_text(self, *, model: str, prompt: str) -> str | None:
        """Return generated text for a prompt."""

    async def synthesize_speech(
        self, *, model: str, text: str, voice: str
    ) -> EncodedMedia | None:
        """Return synthesized speech for a script."""

    async def start_video(  # noqa: PLR0913
        self,
        *,
        model: str,
        image: EncodedMedia,
        prompt: str,
        aspect_ratio: str,
        resolution: str,
    ) -> VideoOperation:
        """Start a video generation operation."""

    async def poll_video(self, operation: VideoOperation) -> VideoOperation:
        """Refresh the status of a video operation."""

    async def download_video(self, uri: str) -> bytes:
        """Fetch generated video bytes from a content URI."""


@dataclass
class GenerationClient:
    """Wraps the generation backend with the retry and failure policy."""

    backend: GenerationBackend
    image_model: str = "gemini-2.5-flash-image"
    text_model: str = "gemini-2.5-flash"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    tts_voice: str = "Kore"
    video_model: str = "veo-3.1-fast-generate-preview"
    video_resolution: str = "720p"
    retry_attempts: int = 3
    retry_initial_delay_seconds: float = 1.0
    video_poll_interval_seconds: float = 10.0
    video_max_polls: int = 60
    sleep: Callable[[float], Awaitable[None]] = field(
        default=asyncio.sleep, repr=False
    )

    async def generate_image(
        self, source_image: EncodedMedia, prompt: str
    ) -> EncodedMedia:
        """Generate a restyled image, retrying transient service failures."""
        image = validate_image(source_image)
        if not prompt or not prompt.strip():
            raise InvalidInputError("A generation prompt is required")
        response = await self._call_with_retry(
            lambda: self.backend.render_image(
                model=self.image_model, image=image, prompt=prompt, image_only=False
            ),
            action="generate_image",
        )
        return _require_image(response)

    async def edit_image(
        self, source_image: EncodedMedia, instruction: str
    ) -> EncodedMedia:
        """Apply a free-text edit to an image in a single attempt."""
        image = validate_image(source_image)
        if not instruction or not instruction.strip():
            raise InvalidInputError("An edit instruction is required")
        try:
            response = await self.backend.render_image(
                model=self.image_model,
                image=image,
                prompt=instruction.strip(),
                image_only=True,
            )
            return _require_image(response)
        except Exception as exc:
            raise EditFailedError(f"The model failed to edit the image: {exc}") from exc

    async def generate_audio_narration(self, decade: str) -> EncodedMedia:
        """Write a short era script and synthesize it with the fixed voice."""
        prompt = build_narration_script_prompt(decade)
        try:
            script = await self.backend.write_text(model=self.text_model, prompt=prompt)
        except Exception as exc:
            raise AudioGenerationError(f"Narration script failed: {exc}") from exc
        if not script or not script.strip():
            raise AudioGenerationError("Text model returned no narration script")

        try:
            audio = await self.backend.synthesize_speech(
                model=self.tts_model, text=script.strip(), voice=self.tts_voice
            )
        except Exception as exc:
            raise AudioGenerationError(f"Speech synthesis failed: {exc}") from exc
        if audio is None or not audio.data:
            raise AudioGenerationError("TTS model did not return audio data")
        return _as_wav(audio)

    async def generate_video(
        self, source_image: EncodedMedia, decade: str, aspect_ratio: str
    ) -> EncodedMedia:
        """Generate a short clip from an image and poll until it is ready."""
        image = validate_image(source_image)
        if aspect_ratio not in ASPECT_RATIOS:
            raise InvalidInputError(f"Unsupported aspect ratio: {aspect_ratio}")
        prompt = build_video_prompt(decade)
        try:
            operation = await self.backend.start_video(
                model=self.video_model,
                image=image,
                prompt=prompt,
                aspect_ratio=aspect_ratio,
                resolution=self.video_resolution,
            )
            polls = 0
            while not operation.done:
                if polls >= self.video_max_polls:
                    raise VideoGenerationError(
                        f"Video operation {operation.name} did not finish in time"
                    )
                await self.sleep(self.video_poll_interval_seconds)
                operation = await self.backend.poll_video(operation)
                polls += 1
            if operation.error:
                raise VideoGenerationError(f"Video operation failed: {operation.error}")
            if not operation.video_uri:
                raise VideoGenerationError(
                    "Video generation completed, but no download link was found"
                )
            data = await self.backend.download_video(operation.video_uri)
        except VideoGenerationError:
            raise
        except Exception as exc:
            if _is_credentials_error(exc):
                raise VideoCredentialsError(
                    f"Video service rejected the API key: {exc}"
                ) from exc
            raise VideoGenerationError(f"Video generation failed: {exc}") from exc
        if not data:
            raise VideoGenerationError("Video download returned no content")
        return EncodedMedia(mime_type="video/mp4", data=data)

    async def _call_with_retry(
        self, func: Callable[[], Awaitable[ImageResponse]], *, action: str
    ) -> ImageResponse:
        """Call the backend, backing off exponentially on transient failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_initial_delay_seconds),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(_logger, logging.WARNING),
            sleep=self.sleep,
        )
        try:
            return await retrying(func)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            assert last_error is not None
            raise GenerationExhaustedError(
                exc.last_attempt.attempt_number, last_error
            ) from last_error
        except Exception as exc:
            _logger.warning(
                "Generation %s failed (status=%s)",
                action,
                _status_code_from_exception(exc) or "n/a",
            )
            raise GenerationServiceError(f"{action} failed: {exc}") from exc


def _require_image(response: ImageResponse) -> EncodedMedia:
    if response.image is not None and response.image.data:
        return response.image
    _logger.warning("Model returned no image: %s", response.text)
    raise NoImageReturnedError(response.text)


def _status_code_from_exception(exc: BaseException) -> int | None:
    """Extract an HTTP-like status code from an exception, if available."""
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None


def _is_transient(exc: BaseException) -> bool:
    status_code = _status_code_from_exception(exc)
    if status_code is not None and 500 <= status_code < 600:  # noqa: PLR2004
        return True
    message = str(exc)
    return "INTERNAL" in message or '"code":500' in message


def _is_credentials_error(exc: BaseException) -> bool:
    if _status_code_from_exception(exc) in {401, 403}:
        return True
    message = str(exc)
    return any(signature in message for signature in _CREDENTIAL_SIGNATURES)


def _as_wav(audio: EncodedMedia) -> EncodedMedia:
    """Wrap raw 16-bit mono PCM from the TTS model in a WAV container."""
    mime = audio.mime_type.lower()
    if not (mime.startswith("audio/l16") or mime.startswith("audio/pcm")):
        return audio
    rate = _PCM_SAMPLE_RATE
    for param in mime.split(";")[1:]:
        key, _, value = param.strip().partition("=")
        if key == "rate" and value.isdigit():
            rate = int(value)
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(audio.data)
    return EncodedMedia(mime_type="audio/wav", data=buffer.getvalue())
