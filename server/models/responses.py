from pydantic import BaseModel

from shared.clients.listing.models.Listing import Listing


class ChatResponse(BaseModel):
    success: bool
    response: str | None = None
    error_kind: str | None = None
    message: str | None = None


class ListingItem(BaseModel):
    id: int
    title: str
    content: str
    permalink: str | None = None
    custom_fields: dict[str, str] = {}

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingItem":
        return cls(
            id=listing.id,
            title=listing.title,
            content=listing.content,
            permalink=listing.permalink,
            custom_fields=listing.custom_fields,
        )


class SettingsSaveResponse(BaseModel):
    success: bool
    settings: dict


class ProviderInfo(BaseModel):
    engine: str
    configured: bool
    available: dict[str, str]


class WebhookAccepted(BaseModel):
    status: str
    listing_id: int
    action: str
