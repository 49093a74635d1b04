from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import ListingItem
from shared.clients.listing.models.ListingType import ListingStatus, ListingType

router = APIRouter(tags=["listings"])


@router.get("/listings")
async def get_listings(request: Request) -> list[ListingItem]:
    """Return the cached published listings that back the fallback chat context."""
    listings = await request.app.state.context_service.get_listings()
    return [ListingItem.from_listing(listing) for listing in listings]


@router.get("/directory-types")
async def get_directory_types(request: Request, _: None = Depends(verify_api_key)) -> list[ListingType]:
    """Return all directory types, used to populate the sync type filter."""
    listing_client = await request.app.state.listing_manager.get_client()
    return await listing_client.do_fetch_listing_types()


@router.get("/listing-statuses")
async def get_listing_statuses(request: Request, _: None = Depends(verify_api_key)) -> list[ListingStatus]:
    """Return all listing statuses, used to populate the sync status filter."""
    listing_client = await request.app.state.listing_manager.get_client()
    return await listing_client.do_fetch_listing_statuses()
