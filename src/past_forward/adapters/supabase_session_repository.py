"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from past_forward.domain.generation import (
    FacetStatus,
    GenerationItem,
    GenerationStatus,
)
from past_forward.domain.media import EncodedMedia
from past_forward.domain.sessions import SessionRecord
from past_forward.services.state import SessionRepository


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for generation sessions.

    Sessions live in ``generation_sessions``; each decade's item is one row of
    ``generation_items`` keyed by (session_id, decade), so replacing an item
    never rewrites its siblings.
    """

    client: Client

    def create_session(self, session: SessionRecord) -> None:
        """Insert the session row and its seeded items."""
        response = (
            self.client.table("generation_sessions")
            .insert(
                {
                    "id": str(session.id),
                    "created_at": session.created_at.isoformat(),
                    "source_image": session.source_image.to_data_url(),
                    "decade_list": list(session.decades),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create session")
        if session.items:
            self.client.table("generation_items").insert(
                [
                    _item_row(session.id, decade, item)
                    for decade, item in session.items.items()
                ]
            ).execute()

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session with its items, if present."""
        response = (
            self.client.table("generation_sessions")
            .select("id, created_at, source_image, decade_list")
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        items_response = (
            self.client.table("generation_items")
            .select("decade, item_json")
            .eq("session_id", str(session_id))
            .execute()
        )
        items = {
            item_row["decade"]: item_from_json(item_row["item_json"])
            for item_row in items_response.data or []
        }
        return SessionRecord(
            id=UUID(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            source_image=EncodedMedia.from_data_url(row["source_image"]),
            decades=tuple(row["decade_list"]),
            items=items,
        )

    def replace_item(self, session_id: UUID, decade: str, item: GenerationItem) -> None:
        """Upsert the row for one decade."""
        self.client.table("generation_items").upsert(
            _item_row(session_id, decade, item), on_conflict="session_id,decade"
        ).execute()


def _item_row(session_id: UUID, decade: str, item: GenerationItem) -> dict[str, object]:
    return {
        "session_id": str(session_id),
        "decade": decade,
        "item_json": item_to_json(item),
        "updated_at": datetime.now(tz=UTC).isoformat(),
    }


def item_to_json(item: GenerationItem) -> dict[str, object]:
    """Serialize an item with media as data URLs."""
    return {
        "status": item.status.value,
        "result_image": _media_to_json(item.result_image),
        "error_detail": item.error_detail,
        "notice": item.notice,
        "video_status": item.video_status.value,
        "video_result": _media_to_json(item.video_result),
        "video_error": item.video_error,
        "audio_status": item.audio_status.value,
        "audio_result": _media_to_json(item.audio_result),
        "audio_error": item.audio_error,
        "revision": item.revision,
    }


def item_from_json(payload: dict[str, object]) -> GenerationItem:
    """Rebuild an item serialized by ``item_to_json``."""
    return GenerationItem(
        status=GenerationStatus(str(payload.get("status", "pending"))),
        result_image=_media_from_json(payload.get("result_image")),
        error_detail=_optional_str(payload.get("error_detail")),
        notice=_optional_str(payload.get("notice")),
        video_status=FacetStatus(str(payload.get("video_status", "idle"))),
        video_result=_media_from_json(payload.get("video_result")),
        video_error=_optional_str(payload.get("video_error")),
        audio_status=FacetStatus(str(payload.get("audio_status", "idle"))),
        audio_result=_media_from_json(payload.get("audio_result")),
        audio_error=_optional_str(payload.get("audio_error")),
        revision=int(payload.get("revision", 0)),
    )


def _media_to_json(media: EncodedMedia | None) -> str | None:
    return media.to_data_url() if media is not None else None


def _media_from_json(value: object) -> EncodedMedia | None:
    if not isinstance(value, str) or not value:
        return None
    return EncodedMedia.from_data_url(value)


def _optional_str(value: object) -> str | None:
    return str(value) if value is not None else None
