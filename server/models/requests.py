from typing import Literal

from pydantic import BaseModel


class ChatTurn(BaseModel):
    role: str = ""
    content: str = ""


class ChatRequest(BaseModel):
    # optional so that a missing message reaches the chat validation instead of a 422
    message: str | None = None
    conversation: list[ChatTurn] = []


class BulkSyncRequest(BaseModel):
    post_ids: list[int] = []


class ListingWebhookRequest(BaseModel):
    listing_id: int
    action: Literal["save", "delete"] = "save"
