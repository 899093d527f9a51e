"""Domain models for generation sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from past_forward.domain.generation import GenerationItem, GenerationStatus
from past_forward.domain.media import EncodedMedia


@dataclass(frozen=True)
class SessionRecord:
    """Represents a generation session: one source photo and its decades."""

    id: UUID
    created_at: datetime
    source_image: EncodedMedia
    decades: tuple[str, ...]
    items: dict[str, GenerationItem] = field(default_factory=dict)

    def completed_count(self) -> int:
        """Count requested decades whose image finished."""
        return sum(
            1
            for decade in self.decades
            if decade in self.items and self.items[decade].is_terminal
        )

    def is_complete(self) -> bool:
        """Return true when every requested decade is done or failed."""
        return self.completed_count() == len(self.decades)

    def unfinished(self) -> list[str]:
        """Return requested decades that are not done, in request order."""
        return [
            decade
            for decade in self.decades
            if decade not in self.items
            or self.items[decade].status != GenerationStatus.DONE
        ]
