"""Tests for album export."""

import io
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import pytest
from PIL import Image

from past_forward.adapters.pillow_album_assembler import PillowAlbumAssembler
from past_forward.domain.errors import IncompleteBatchError
from past_forward.domain.generation import GenerationItem
from past_forward.domain.media import EncodedMedia
from past_forward.domain.sessions import SessionRecord
from past_forward.services.album import AlbumAssembler, AlbumService
from tests.conftest import make_image


@dataclass
class RecordingAssembler(AlbumAssembler):
    calls: list[list[str]] = field(default_factory=list)

    def assemble(self, images: dict[str, EncodedMedia]) -> EncodedMedia:
        self.calls.append(list(images))
        return EncodedMedia("image/jpeg", b"album")


def _session(items: dict[str, GenerationItem]) -> SessionRecord:
    return SessionRecord(
        id=uuid4(),
        created_at=datetime.now(tz=UTC),
        source_image=make_image(),
        decades=tuple(items),
        items=items,
    )


def test_export_refuses_incomplete_batch() -> None:
    assembler = RecordingAssembler()
    session = _session(
        {
            "1950s": GenerationItem().to_done(make_image()),
            "1960s": GenerationItem(),
            "1970s": GenerationItem().to_error("failed"),
        }
    )

    with pytest.raises(IncompleteBatchError) as exc_info:
        AlbumService(assembler).export(session)

    assert exc_info.value.unfinished == ["1960s", "1970s"]
    assert assembler.calls == []


def test_export_passes_images_in_request_order() -> None:
    assembler = RecordingAssembler()
    session = _session(
        {
            "1980s": GenerationItem().to_done(make_image()),
            "1920s": GenerationItem().to_done(make_image()),
        }
    )

    album = AlbumService(assembler).export(session)

    assert album.data == b"album"
    assert assembler.calls == [["1980s", "1920s"]]


def test_pillow_assembler_renders_jpeg_grid() -> None:
    assembler = PillowAlbumAssembler(
        columns=2,
        photo_size=40,
        border=4,
        caption_height=20,
        gutter=10,
        header_height=30,
    )
    images = {
        "1920s": make_image((255, 0, 0)),
        "1950s": make_image((0, 255, 0)),
        "1980s": make_image((0, 0, 255)),
    }

    album = assembler.assemble(images)

    assert album.mime_type == "image/jpeg"
    with Image.open(io.BytesIO(album.data)) as page:
        assert page.format == "JPEG"
        card_width = 40 + 2 * 4
        card_height = 40 + 4 + 20
        assert page.size == (2 * card_width + 3 * 10, 30 + 2 * (card_height + 10))


def test_pillow_assembler_requires_images() -> None:
    with pytest.raises(ValueError):
        PillowAlbumAssembler().assemble({})
