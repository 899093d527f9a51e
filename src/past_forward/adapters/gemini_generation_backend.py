"""Google Gemini backend for image, text, speech and video generation."""

from dataclasses import dataclass

import httpx
from google import genai
from google.genai import types

from past_forward.domain.media import EncodedMedia, detect_image_mime_type
from past_forward.services.generation import (
    GenerationBackend,
    ImageResponse,
    VideoOperation,
)


@dataclass
class GeminiGenerationBackend(GenerationBackend):
    """Generation backend using the google-genai SDK."""

    client: genai.Client
    api_key: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str) -> "GeminiGenerationBackend":
        """Create a backend with a managed httpx session for video downloads."""
        return cls(
            client=genai.Client(api_key=api_key),
            api_key=api_key,
            http_client=httpx.AsyncClient(),
        )

    async def render_image(
        self, *, model: str, image: EncodedMedia, prompt: str, image_only: bool
    ) -> ImageResponse:
        """Send the source image and instruction to the image model."""
        config = (
            types.GenerateContentConfig(response_modalities=["IMAGE"])
            if image_only
            else None
        )
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=[
                types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
                types.Part.from_text(text=prompt),
            ],
            config=config,
        )
        texts: list[str] = []
        for part in _response_parts(response):
            if part.inline_data is not None and part.inline_data.data:
                data = part.inline_data.data
                mime_type = part.inline_data.mime_type or detect_image_mime_type(data)
                return ImageResponse(image=EncodedMedia(mime_type=mime_type, data=data))
            if part.text:
                texts.append(part.text)
        return ImageResponse(image=None, text="".join(texts) or None)

    async def write_text(self, *, model: str, prompt: str) -> str | None:
        """Generate plain text."""
        response = await self.client.aio.models.generate_content(
            model=model, contents=prompt
        )
        return response.text

    async def synthesize_speech(
        self, *, model: str, text: str, voice: str
    ) -> EncodedMedia | None:
        """Synthesize speech with a prebuilt voice."""
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=text,
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(
                            voice_name=voice
                        )
                    )
                ),
            ),
        )
        for part in _response_parts(response):
            if part.inline_data is not None and part.inline_data.data:
                return EncodedMedia(
                    mime_type=part.inline_data.mime_type or "audio/L16;rate=24000",
                    data=part.inline_data.data,
                )
        return None

    async def start_video(  # noqa: PLR0913
        self,
        *,
        model: str,
        image: EncodedMedia,
        prompt: str,
        aspect_ratio: str,
        resolution: str,
    ) -> VideoOperation:
        """Start a long-running image-to-video operation."""
        operation = await self.client.aio.models.generate_videos(
            model=model,
            prompt=prompt,
            image=types.Image(image_bytes=image.data, mime_type=image.mime_type),
            config=types.GenerateVideosConfig(
                number_of_videos=1,
                resolution=resolution,
                aspect_ratio=aspect_ratio,
            ),
        )
        return _to_video_operation(operation)

    async def poll_video(self, operation: VideoOperation) -> VideoOperation:
        """Refresh a video operation."""
        refreshed = await self.client.aio.operations.get(operation.handle)
        return _to_video_operation(refreshed)

    async def download_video(self, uri: str) -> bytes:
        """Download generated video bytes, authenticating with the API key."""
        response = await self.http_client.get(
            uri,
            headers={"x-goog-api-key": self.api_key},
            follow_redirects=True,
            timeout=120,
        )
        response.raise_for_status()
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _response_parts(response: types.GenerateContentResponse) -> list[types.Part]:
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return []
    return list(candidates[0].content.parts or [])


def _to_video_operation(operation: types.GenerateVideosOperation) -> VideoOperation:
    uri = None
    result = operation.response
    if result is not None and result.generated_videos:
        video = result.generated_videos[0].video
        uri = video.uri if video is not None else None
    error = str(operation.error) if operation.error else None
    return VideoOperation(
        name=operation.name or "",
        done=bool(operation.done),
        video_uri=uri,
        error=error,
        handle=operation,
    )
