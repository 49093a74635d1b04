from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from server.dependencies.auth import verify_api_key
from server.models.requests import BulkSyncRequest, ListingWebhookRequest
from server.models.responses import WebhookAccepted
from shared.models.sync import BulkSyncResult

router = APIRouter(tags=["sync"])


@router.post("/bulk-sync", response_model=BulkSyncResult)
async def bulk_sync(
    request: Request,
    body: BulkSyncRequest,
    _: None = Depends(verify_api_key),
):
    """Sync the given listings (or all eligible listings) to the vector store.

    Args:
        request (Request): FastAPI request (provides app.state.sync_service).
        body (BulkSyncRequest): The listing ids, empty for all eligible listings.
        _ (None): Auth dependency result (unused).

    Returns:
        BulkSyncResult: Aggregate counts. Answered with 400 when no listing was found.
    """
    sync_service = request.app.state.sync_service
    result = await sync_service.do_batch_upsert(body.post_ids)
    if result.total == 0:
        return JSONResponse(status_code=400, content=result.model_dump())
    return result


@router.post("/webhook/listing")
async def webhook_listing(
    request: Request,
    body: ListingWebhookRequest,
    background_tasks: BackgroundTasks,
    _: None = Depends(verify_api_key),
) -> WebhookAccepted:
    """Accept a listing save/delete notification from the site and process it in the background.

    Args:
        request (Request): FastAPI request (provides app.state.sync_service).
        body (ListingWebhookRequest): The listing id and the action.
        background_tasks (BackgroundTasks): FastAPI background task queue.
        _ (None): Auth dependency result (unused).

    Returns:
        WebhookAccepted: Acknowledgement payload.
    """
    sync_service = request.app.state.sync_service
    if body.action == "delete":
        background_tasks.add_task(sync_service.do_remove_listing, body.listing_id)
    else:
        background_tasks.add_task(sync_service.handle_listing_saved, body.listing_id)
    return WebhookAccepted(status="accepted", listing_id=body.listing_id, action=body.action)
