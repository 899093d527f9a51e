"""Pydantic request and response models for the HTTP API."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from past_forward.domain.decades import Decade
from past_forward.domain.generation import AspectRatio, GenerationItem
from past_forward.domain.media import EncodedMedia
from past_forward.domain.sessions import SessionRecord


class CreateSessionRequest(BaseModel):
    """Source photo plus an optional decade selection."""

    image: str = Field(description="Source photo as a base64 data URL")
    decades: list[str] | None = None
    concurrency: int | None = Field(default=None, ge=1)


class EditRequest(BaseModel):
    """Free-text edit instruction."""

    instruction: str = Field(min_length=1)


class AnimateRequest(BaseModel):
    """Video framing for an animation request."""

    aspect_ratio: AspectRatio = "9:16"


class DecadeResponse(BaseModel):
    """Decade catalogue entry."""

    label: str
    description: str
    style_hint: str

    @classmethod
    def from_domain(cls, decade: Decade) -> "DecadeResponse":
        return cls(
            label=decade.label,
            description=decade.description,
            style_hint=decade.style_hint,
        )


class FacetResponse(BaseModel):
    """Secondary artifact state."""

    status: str
    url: str | None = None
    error: str | None = None


class ItemResponse(BaseModel):
    """State of one decade."""

    decade: str
    status: str
    image_url: str | None = None
    error: str | None = None
    notice: str | None = None
    video: FacetResponse
    audio: FacetResponse

    @classmethod
    def from_domain(cls, decade: str, item: GenerationItem) -> "ItemResponse":
        return cls(
            decade=decade,
            status=item.status.value,
            image_url=_data_url(item.result_image),
            error=item.error_detail,
            notice=item.notice,
            video=FacetResponse(
                status=item.video_status.value,
                url=_data_url(item.video_result),
                error=item.video_error,
            ),
            audio=FacetResponse(
                status=item.audio_status.value,
                url=_data_url(item.audio_result),
                error=item.audio_error,
            ),
        )


class SessionResponse(BaseModel):
    """Snapshot of a session and its progress."""

    id: UUID
    created_at: datetime
    completed: int
    total: int
    is_complete: bool
    items: list[ItemResponse]

    @classmethod
    def from_domain(cls, session: SessionRecord) -> "SessionResponse":
        return cls(
            id=session.id,
            created_at=session.created_at,
            completed=session.completed_count(),
            total=len(session.decades),
            is_complete=session.is_complete(),
            items=[
                ItemResponse.from_domain(decade, session.items[decade])
                for decade in session.decades
            ],
        )


class AcceptedResponse(BaseModel):
    """Acknowledgement for background work."""

    status: Literal["accepted"] = "accepted"
    session_id: UUID
    decade: str


def _data_url(media: EncodedMedia | None) -> str | None:
    return media.to_data_url() if media is not None else None
