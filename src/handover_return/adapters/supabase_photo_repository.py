"""Supabase-backed photo evidence repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from handover_return.adapters.supabase_rows import parse_datetime
from handover_return.domain.sessions import PhotoRecord
from handover_return.services.sessions import PhotoRepository


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for photo metadata persistence."""

    client: Client

    def create_photo(self, photo: PhotoRecord) -> PhotoRecord:
        """Create a photo metadata row and return it."""
        response = (
            self.client.table("session_photos")
            .insert(
                {
                    "id": str(photo.id),
                    "session_id": str(photo.session_id),
                    "url": photo.url,
                    "category": photo.category,
                    "caption": photo.caption,
                    "uploaded_at": photo.uploaded_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create photo metadata")
        return _parse_row(response.data[0])

    def list_photos(self, session_id: UUID) -> list[PhotoRecord]:
        """Return photos of a session in upload order."""
        response = (
            self.client.table("session_photos")
            .select("id, session_id, url, category, caption, uploaded_at")
            .eq("session_id", str(session_id))
            .order("uploaded_at", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> PhotoRecord:
    return PhotoRecord(
        id=UUID(str(row["id"])),
        session_id=UUID(str(row["session_id"])),
        url=str(row["url"]),
        category=str(row["category"]),
        caption=row.get("caption"),
        uploaded_at=parse_datetime(row["uploaded_at"]),
    )
