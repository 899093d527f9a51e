"""Per-decade generation state."""

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Literal

from past_forward.domain.media import EncodedMedia

AspectRatio = Literal["9:16", "16:9"]
ASPECT_RATIOS: tuple[str, ...] = ("9:16", "16:9")


class GenerationStatus(StrEnum):
    """Status of the primary image."""

    PENDING = "pending"
    DONE = "done"
    ERROR = "error"


class FacetStatus(StrEnum):
    """Status of a secondary artifact layered onto a finished image."""

    IDLE = "idle"
    PENDING = "pending"
    DONE = "done"
    ERROR = "error"


class Facet(StrEnum):
    """Artifact kinds attached to a decade."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


TERMINAL_STATUSES = frozenset({GenerationStatus.DONE, GenerationStatus.ERROR})


@dataclass(frozen=True)
class GenerationItem:
    """Immutable snapshot of one decade's generation outcome."""

    status: GenerationStatus = GenerationStatus.PENDING
    result_image: EncodedMedia | None = None
    error_detail: str | None = None
    notice: str | None = None
    video_status: FacetStatus = FacetStatus.IDLE
    video_result: EncodedMedia | None = None
    video_error: str | None = None
    audio_status: FacetStatus = FacetStatus.IDLE
    audio_result: EncodedMedia | None = None
    audio_error: str | None = None
    revision: int = 0

    def __post_init__(self) -> None:
        done = self.status == GenerationStatus.DONE
        if done != (self.result_image is not None):
            raise ValueError("result_image must be set exactly when status is done")
        if (self.status == GenerationStatus.ERROR) != (self.error_detail is not None):
            raise ValueError("error_detail must be set exactly when status is error")
        if self.notice is not None and not done:
            raise ValueError("notice is only allowed on done items")
        for facet in (Facet.VIDEO, Facet.AUDIO):
            status, result, error = self.facet_state(facet)
            if status in {FacetStatus.PENDING, FacetStatus.DONE} and not done:
                raise ValueError(f"{facet} cannot be {status} before the image is done")
            if (status == FacetStatus.DONE) != (result is not None):
                raise ValueError(f"{facet} result must be set exactly when done")
            if (status == FacetStatus.ERROR) != (error is not None):
                raise ValueError(f"{facet} error must be set exactly when error")

    @property
    def is_terminal(self) -> bool:
        """Return true when the primary image finished, either way."""
        return self.status in TERMINAL_STATUSES

    @property
    def is_busy(self) -> bool:
        """Return true when any facet has an operation in flight."""
        return (
            self.status == GenerationStatus.PENDING
            or self.video_status == FacetStatus.PENDING
            or self.audio_status == FacetStatus.PENDING
        )

    def facet_state(
        self, facet: Facet
    ) -> tuple[FacetStatus, EncodedMedia | None, str | None]:
        """Return status, result and error for a secondary facet."""
        if facet == Facet.VIDEO:
            return self.video_status, self.video_result, self.video_error
        if facet == Facet.AUDIO:
            return self.audio_status, self.audio_result, self.audio_error
        raise ValueError(f"{facet} is not a secondary facet")

    def to_pending(self) -> "GenerationItem":
        """Reset for a new base image, invalidating secondary artifacts."""
        return GenerationItem(revision=self.revision + 1)

    def to_done(self, image: EncodedMedia) -> "GenerationItem":
        """Record a finished image; secondary artifacts stay as they are."""
        return replace(
            self,
            status=GenerationStatus.DONE,
            result_image=image,
            error_detail=None,
            notice=None,
        )

    def to_error(self, message: str) -> "GenerationItem":
        """Record a failed image."""
        return replace(
            self,
            status=GenerationStatus.ERROR,
            result_image=None,
            error_detail=message,
            notice=None,
        )

    def with_facet(
        self,
        facet: Facet,
        status: FacetStatus,
        result: EncodedMedia | None = None,
        error: str | None = None,
    ) -> "GenerationItem":
        """Return a copy with one secondary facet replaced."""
        if facet == Facet.VIDEO:
            return replace(
                self, video_status=status, video_result=result, video_error=error
            )
        if facet == Facet.AUDIO:
            return replace(
                self, audio_status=status, audio_result=result, audio_error=error
            )
        raise ValueError(f"{facet} is not a secondary facet")
