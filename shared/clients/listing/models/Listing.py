"""Backend-independent listing model."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

PUBLISHED_STATUS = "publish"


class SyncMarker(BaseModel):
    """
    Per-listing record of whether and when the listing was last synced to the vector store.

    Once external_vector_id is known, every later upsert of the listing reuses it.
    """
    synced: bool = False
    synced_at: datetime | None = None
    external_vector_id: str | None = None


class Listing(BaseModel):
    """
    Represents a single directory listing as returned by a listing client.
    """
    id: int
    title: str = ""
    content: str = ""
    post_type: str = ""
    status: str = ""
    permalink: str | None = None

    # taxonomies
    type_ids: list[int] = []
    type_names: list[str] = []
    category_names: list[str] = []
    location_names: list[str] = []

    # label -> value, in form order
    custom_fields: dict[str, str] = {}
    meta: dict[str, Any] = {}

    ai_blocked: bool = False
    sync_marker: SyncMarker = SyncMarker()

    def is_published(self) -> bool:
        return self.status == PUBLISHED_STATUS
