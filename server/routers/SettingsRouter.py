from fastapi import APIRouter, Body, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import SettingsSaveResponse

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
async def get_settings(request: Request, _: None = Depends(verify_api_key)) -> dict:
    """Return the assistant settings with every secret masked."""
    return request.app.state.settings_manager.get_masked()


@router.post("")
async def save_settings(
    request: Request,
    body: dict = Body(...),
    _: None = Depends(verify_api_key),
) -> SettingsSaveResponse:
    """Merge a partial settings update.

    Blank or masked secrets keep their stored value. Invalid values
    (e.g. temperature outside 0..1) are rejected with 400.

    Args:
        request (Request): FastAPI request (provides app.state.settings_manager).
        body (dict): The changed settings.
        _ (None): Auth dependency result (unused).

    Returns:
        SettingsSaveResponse: The saved settings, masked.
    """
    settings_manager = request.app.state.settings_manager
    success = settings_manager.save(body)
    return SettingsSaveResponse(success=success, settings=settings_manager.get_masked())
