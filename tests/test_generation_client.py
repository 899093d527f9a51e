"""Tests for the generation client retry and failure policy."""

import asyncio
import io
import wave

import pytest

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
from past_forward.domain.media import EncodedMedia
from past_forward.services.generation import ImageResponse, VideoOperation
from tests.conftest import FakeServiceError, make_image


def test_generate_image_returns_inline_image(
    generation_client, backend, source_image
) -> None:
    result = asyncio.run(generation_client.generate_image(source_image, "1950s look"))

    assert result.mime_type == "image/png"
    assert result.data
    assert len(backend.calls) == 1


def test_generate_image_retries_transient_errors_with_backoff(
    generation_client, backend, sleep, source_image
) -> None:
    backend.image_results["1970s"] = [FakeServiceError(503), FakeServiceError(500)]

    result = asyncio.run(generation_client.generate_image(source_image, "the 1970s"))

    assert result.data
    assert len(backend.calls) == 3
    assert sleep.delays == [1.0, 2.0]


def test_generate_image_exhausts_after_three_attempts(
    generation_client, backend, sleep, source_image
) -> None:
    backend.image_results["1970s"] = [FakeServiceError(503) for _ in range(3)]

    with pytest.raises(GenerationExhaustedError) as exc_info:
        asyncio.run(generation_client.generate_image(source_image, "the 1970s"))

    assert exc_info.value.attempts == 3
    assert len(backend.calls) == 3
    assert sleep.delays == [1.0, 2.0]


def test_internal_signature_counts_as_transient(
    generation_client, backend, sleep, source_image
) -> None:
    backend.image_results["1980s"] = [RuntimeError('{"status":"INTERNAL"}')]

    asyncio.run(generation_client.generate_image(source_image, "the 1980s"))

    assert sleep.delays == [1.0]


def test_non_transient_error_is_not_retried(
    generation_client, backend, sleep, source_image
) -> None:
    backend.image_results["1980s"] = [FakeServiceError(400, "bad request")]

    with pytest.raises(GenerationServiceError):
        asyncio.run(generation_client.generate_image(source_image, "the 1980s"))

    assert len(backend.calls) == 1
    assert sleep.delays == []


def test_text_only_reply_raises_no_image(
    generation_client, backend, source_image
) -> None:
    backend.image_results["1960s"] = [ImageResponse(image=None, text="I can't do that")]

    with pytest.raises(NoImageReturnedError) as exc_info:
        asyncio.run(generation_client.generate_image(source_image, "the 1960s"))

    assert exc_info.value.text == "I can't do that"
    assert len(backend.calls) == 1


def test_invalid_input_fails_fast(generation_client, backend) -> None:
    with pytest.raises(InvalidInputError):
        asyncio.run(
            generation_client.generate_image(
                EncodedMedia("text/plain", b"hello"), "the 1960s"
            )
        )
    with pytest.raises(InvalidInputError):
        asyncio.run(generation_client.generate_image(make_image(), "   "))

    assert backend.calls == []


def test_edit_image_wraps_failures(generation_client, backend, source_image) -> None:
    backend.edit_results = [FakeServiceError(500)]

    with pytest.raises(EditFailedError):
        asyncio.run(generation_client.edit_image(source_image, "add a hat"))

    assert backend.calls == [(None, "edit")]


def test_edit_image_rejects_empty_instruction(generation_client, source_image) -> None:
    with pytest.raises(InvalidInputError):
        asyncio.run(generation_client.edit_image(source_image, " "))


def test_audio_narration_wraps_pcm_in_wav(generation_client, backend) -> None:
    audio = asyncio.run(generation_client.generate_audio_narration("1940s"))

    assert audio.mime_type == "audio/wav"
    with wave.open(io.BytesIO(audio.data), "rb") as wav:
        assert wav.getframerate() == 24000
        assert wav.getnchannels() == 1
    assert (None, "speech:Kore") in backend.calls


def test_audio_narration_requires_script(generation_client, backend) -> None:
    backend.script_text = "  "

    with pytest.raises(AudioGenerationError):
        asyncio.run(generation_client.generate_audio_narration("1940s"))


def test_audio_narration_requires_audio(generation_client, backend) -> None:
    backend.speech = None

    with pytest.raises(AudioGenerationError):
        asyncio.run(generation_client.generate_audio_narration("1940s"))


def test_video_polls_until_done(
    generation_client, backend, sleep, source_image
) -> None:
    video = asyncio.run(
        generation_client.generate_video(source_image, "1930s", "16:9")
    )

    assert video.mime_type == "video/mp4"
    assert video.data == backend.video_bytes
    assert sleep.delays == [10.0]
    assert ("1930s", "video:16:9") in backend.calls


def test_video_rejects_unknown_aspect_ratio(generation_client, source_image) -> None:
    with pytest.raises(InvalidInputError):
        asyncio.run(generation_client.generate_video(source_image, "1930s", "4:3"))


def test_video_without_link_fails(generation_client, backend, source_image) -> None:
    backend.video_steps = [VideoOperation(name="operations/2", done=True)]

    with pytest.raises(VideoGenerationError) as exc_info:
        asyncio.run(generation_client.generate_video(source_image, "1930s", "9:16"))

    assert not isinstance(exc_info.value, VideoCredentialsError)


def test_video_times_out_after_max_polls(
    generation_client, backend, sleep, source_image
) -> None:
    generation_client.video_max_polls = 2
    backend.video_steps = [VideoOperation(name="operations/3", done=False)]

    with pytest.raises(VideoGenerationError):
        asyncio.run(generation_client.generate_video(source_image, "1930s", "9:16"))

    assert len(sleep.delays) == 2


def test_video_credentials_error_is_distinguished(
    generation_client, backend, source_image
) -> None:
    backend.video_start_error = RuntimeError("404 Requested entity was not found.")

    with pytest.raises(VideoCredentialsError):
        asyncio.run(generation_client.generate_video(source_image, "1930s", "9:16"))


def test_video_forbidden_status_is_credentials_error(
    generation_client, backend, source_image
) -> None:
    backend.video_start_error = FakeServiceError(403, "permission denied")

    with pytest.raises(VideoCredentialsError):
        asyncio.run(generation_client.generate_video(source_image, "1930s", "9:16"))
