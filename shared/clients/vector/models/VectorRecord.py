"""VectorRecord model: one listing as stored in a vector backend."""

from typing import Any

from pydantic import BaseModel


class VectorRecord(BaseModel):
    """A listing's indexable representation.

    Attributes:
        id:          External reference id of an existing record, or None on
                     first insert (the backend then assigns or derives one).
        listing_id:  Stable id of the source listing. Always mirrored into
                     metadata["post_id"] by the backends.
        text:        Title, body and custom fields as plain text.
        metadata:    Open string-keyed map (category, type, location, status, ...).
        vector:      Client-side embedding; None when the backend embeds server-side.
    """

    id: str | None = None
    listing_id: int
    text: str = ""
    metadata: dict[str, Any] = {}
    vector: list[float] | None = None


class UpsertResult(BaseModel):
    """Outcome of a single upsert.

    Attributes:
        listing_id:   Source listing of the record.
        external_id:  Id under which the backend now holds the record, None if
                      the backend did not report one.
        reused:       True when external_id is the id sent with the request
                      (update in place), False when the backend assigned a new one.
    """

    listing_id: int
    external_id: str | None = None
    reused: bool = False
