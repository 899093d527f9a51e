"""Album export for completed sessions."""

import logging
from dataclasses import dataclass
from typing import Protocol

from past_forward.domain.errors import IncompleteBatchError
from past_forward.domain.media import EncodedMedia
from past_forward.domain.sessions import SessionRecord

_logger = logging.getLogger(__name__)


class AlbumAssembler(Protocol):
    """Interface for composing decade images into one artifact."""

    def assemble(self, images: dict[str, EncodedMedia]) -> EncodedMedia:
        """Compose an ordered decade -> image mapping into an album."""


@dataclass
class AlbumService:
    """Checks a session is complete and hands its images to the assembler."""

    assembler: AlbumAssembler

    def export(self, session: SessionRecord) -> EncodedMedia:
        """Build the album, refusing while any requested decade is unfinished."""
        unfinished = session.unfinished()
        if unfinished:
            raise IncompleteBatchError(unfinished)
        images: dict[str, EncodedMedia] = {}
        for decade in session.decades:
            image = session.items[decade].result_image
            assert image is not None
            images[decade] = image
        album = self.assembler.assemble(images)
        _logger.info(
            "Album exported for session %s with %s images", session.id, len(images)
        )
        return album
