from typing import Any

from pydantic import BaseModel


class VectorMatch(BaseModel):
    """A single query hit, in backend relevance order.

    Attributes:
        id:          Backend record id.
        score:       Relevance score as reported by the backend.
        listing_id:  Source listing id, read from a top-level field or from the
                     nested metadata; None when the hit carries none.
        metadata:    Backend-specific metadata of the hit.
    """

    id: str = ""
    score: float = 0.0
    listing_id: int | None = None
    metadata: dict[str, Any] = {}
